"""
Content Envelope

The unit passed between pipeline stages: body bytes, content type,
transfer encoding, and whether the body already holds base64 text.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import Settings, get_settings
from .content_type import ContentType


class TransferEncoding(str, Enum):
    BASE64 = "base64"
    SEVEN_BIT = "7bit"


def wrap_base64(data: bytes, line_length: int = 76, line_break: str = "\r\n") -> bytes:
    """
    Base64-encode data, breaking lines every `line_length` characters.

    No line break follows the last line.
    """
    encoded = base64.b64encode(data)
    lines = [encoded[i:i + line_length] for i in range(0, len(encoded), line_length)]
    return line_break.encode("ascii").join(lines)


@dataclass(frozen=True)
class ContentEnvelope:
    body: bytes
    content_type: ContentType
    transfer_encoding: TransferEncoding
    encoded: bool = False

    @classmethod
    def create(
        cls,
        body: bytes,
        content_type: ContentType,
        transfer_encoding: TransferEncoding,
        encode_body: bool,
        settings: Optional[Settings] = None,
    ) -> "ContentEnvelope":
        """
        Build an envelope, base64-encoding the body when asked to.

        Encoding only happens for base64 transfer, and only here, so a
        body is never encoded twice.
        """
        if encode_body and transfer_encoding is TransferEncoding.BASE64:
            settings = settings or get_settings()
            body = wrap_base64(body, settings.base64_line_length, settings.line_break)
            return cls(body, content_type, transfer_encoding, encoded=True)

        return cls(bytes(body), content_type, transfer_encoding, encoded=False)

    @property
    def is_multipart(self) -> bool:
        return self.content_type.is_multipart

    def header_block(self, line_break: str = "\r\n") -> bytes:
        """Content-Type and Content-Transfer-Encoding lines plus the blank line."""
        return (
            f"Content-Type: {self.content_type}{line_break}"
            f"Content-Transfer-Encoding: {self.transfer_encoding.value}{line_break}"
            f"{line_break}"
        ).encode("ascii")

    def to_mime_bytes(self, line_break: str = "\r\n") -> bytes:
        """Headers followed by body, exactly as embedded on the wire."""
        return self.header_block(line_break) + self.body
