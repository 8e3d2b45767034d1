"""
Message Attachments

Immutable attachment values and the ordered, duplicate-free collection
a SecureMessage carries.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from ..exceptions import InputError, UnsupportedOperationError
from .content_type import ContentType

logger = logging.getLogger(__name__)


def _content_type_for(name: Optional[str], media_type: Union[str, ContentType, None]) -> ContentType:
    if media_type is None:
        content_type = ContentType()
    elif isinstance(media_type, ContentType):
        content_type = media_type
    else:
        content_type = ContentType.parse(media_type)

    if name is not None:
        content_type = content_type.with_name(name)
    return content_type


@dataclass(frozen=True)
class Attachment:
    """A named binary payload with its content type."""
    content: bytes
    content_type: ContentType

    def __post_init__(self):
        if self.content is None:
            raise InputError("Attachment content is missing")
        if self.content_type is None:
            raise InputError("Attachment content type is missing")
        object.__setattr__(self, "content", bytes(self.content))

    @property
    def name(self) -> Optional[str]:
        return self.content_type.name

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        name: Optional[str] = None,
        media_type: Union[str, ContentType, None] = None,
    ) -> "Attachment":
        if content is None:
            raise InputError("Attachment content is missing")
        return cls(content=content, content_type=_content_type_for(name, media_type))

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO,
        name: Optional[str] = None,
        media_type: Union[str, ContentType, None] = None,
    ) -> "Attachment":
        """Read a whole binary stream from its start."""
        if stream is None:
            raise InputError("Attachment stream is missing")

        try:
            if stream.seekable():
                stream.seek(0)
            content = stream.read()
        except OSError as e:
            raise InputError(f"Unable to read attachment stream: {e}") from e

        return cls.from_bytes(content, name, media_type)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        media_type: Union[str, ContentType, None] = None,
    ) -> "Attachment":
        """Read a file; the attachment is named after the file."""
        if path is None:
            raise InputError("Attachment path is missing")

        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InputError(f"Unable to read attachment {path}: {e}") from e

        logger.debug("Loaded attachment %s (%d bytes)", path.name, len(content))
        return cls.from_bytes(content, path.name, media_type)


class AttachmentCollection:
    """
    Ordered set of attachments.

    Adding an attachment equal to one already present is a no-op.
    Bulk copy-out is not supported.
    """

    def __init__(self, attachments: Optional[List[Attachment]] = None):
        self._attachments: List[Attachment] = []
        for attachment in attachments or []:
            self.add(attachment)

    def add(self, attachment: Attachment) -> bool:
        """
        Add an attachment.

        Returns:
            True if added, False if an equal attachment was already present
        """
        if not isinstance(attachment, Attachment):
            raise InputError(f"Expected Attachment, got {type(attachment).__name__}")
        if attachment in self._attachments:
            return False
        self._attachments.append(attachment)
        return True

    def remove(self, attachment: Attachment) -> bool:
        try:
            self._attachments.remove(attachment)
        except ValueError:
            return False
        return True

    def contains(self, attachment: Attachment) -> bool:
        return attachment in self._attachments

    def clear(self) -> None:
        self._attachments.clear()

    def copy_to(self, target, index: int = 0) -> None:
        raise UnsupportedOperationError(
            "copy_to is not supported by AttachmentCollection."
        )

    def __contains__(self, attachment) -> bool:
        return self.contains(attachment)

    def __iter__(self) -> Iterator[Attachment]:
        return iter(self._attachments)

    def __len__(self) -> int:
        return len(self._attachments)

    def __repr__(self) -> str:
        names = [a.name for a in self._attachments]
        return f"AttachmentCollection({names!r})"
