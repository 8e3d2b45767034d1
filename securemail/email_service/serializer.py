"""
Envelope Serialization

Turns the final ContentEnvelope into the content part handed to the
mail transport.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..config import Settings, get_settings
from .content_type import ContentType
from .envelope import ContentEnvelope, TransferEncoding, wrap_base64

logger = logging.getLogger(__name__)


_LEADING_DOT = re.compile(rb"^\.", re.MULTILINE)


def dot_stuff(body: bytes) -> bytes:
    """Double the leading '.' of every line."""
    return _LEADING_DOT.sub(b"..", body)


@dataclass(frozen=True)
class SerializedContent:
    """Content part ready to be attached to a transport message."""
    content_type: ContentType
    transfer_encoding: TransferEncoding
    body: bytes
    encoded: bool = False

    @property
    def content_type_header(self) -> str:
        return str(self.content_type)

    @property
    def transfer_encoding_header(self) -> str:
        return self.transfer_encoding.value

    def encoded_body(self, settings: Optional[Settings] = None) -> bytes:
        """Body as it goes on the wire, base64-wrapped once if still raw."""
        if self.transfer_encoding is TransferEncoding.BASE64 and not self.encoded:
            settings = settings or get_settings()
            return wrap_base64(self.body, settings.base64_line_length, settings.line_break)
        return self.body


def serialize_content(
    content: ContentEnvelope,
    is_multipart: bool,
    settings: Optional[Settings] = None,
) -> SerializedContent:
    """
    Produce the transport-ready content part.

    Args:
        content: Final envelope of the pipeline
        is_multipart: Whether the message is multipart (attachments or
            signed, and not encrypted); adds the MIME preamble

    Returns:
        SerializedContent with header values and body bytes
    """
    settings = settings or get_settings()

    body = content.body
    if content.transfer_encoding is TransferEncoding.SEVEN_BIT:
        body = dot_stuff(body)

    if is_multipart:
        preamble = settings.multipart_preamble + settings.line_break * 2
        body = preamble.encode("ascii") + body

    logger.debug(
        "Serialized %s content, %d bytes, transfer encoding %s",
        content.content_type.media_type, len(body), content.transfer_encoding.value
    )

    return SerializedContent(
        content_type=content.content_type,
        transfer_encoding=content.transfer_encoding,
        body=body,
        encoded=content.encoded,
    )
