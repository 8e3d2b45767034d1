"""
MIME Content-Type value

Immutable model of a Content-Type header: media type plus ordered
parameters (charset, boundary, name, protocol, ...).
"""

from dataclasses import dataclass
from email.message import Message
from email.utils import collapse_rfc2231_value, encode_rfc2231, quote
from typing import Optional, Tuple

from ..config import Settings
from ..crypto_engine.secure_random import generate_boundary
from ..exceptions import InputError


DEFAULT_MEDIA_TYPE = "application/octet-stream"

TSPECIALS = set('()<>@,;:\\"/[]?=')
ALWAYS_QUOTED = {"name", "filename"}


def _has_control_chars(value: str) -> bool:
    return any((ord(c) < 32 and c != "\t") or ord(c) == 127 for c in value)


def format_param(key: str, value: str) -> str:
    if not value.isascii():
        return f"{key}*={encode_rfc2231(value, 'utf-8')}"
    needs_quotes = (
        key in ALWAYS_QUOTED
        or not value
        or any(c in TSPECIALS or c.isspace() for c in value)
    )
    if needs_quotes:
        return f'{key}="{quote(value)}"'
    return f"{key}={value}"


@dataclass(frozen=True)
class ContentType:
    """A MIME media type with its parameters."""
    media_type: str = DEFAULT_MEDIA_TYPE
    parameters: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        media_type = self.media_type.strip().lower()
        if "/" not in media_type or _has_control_chars(media_type):
            raise InputError(f"Invalid media type: {self.media_type!r}")
        # Values are written into header lines verbatim
        for key, value in self.parameters:
            if _has_control_chars(key) or _has_control_chars(value):
                raise InputError(f"Control characters in Content-Type parameter {key!r}")
        object.__setattr__(self, "media_type", media_type)
        object.__setattr__(
            self,
            "parameters",
            tuple((k.lower(), v) for k, v in self.parameters),
        )

    @classmethod
    def parse(cls, value: str) -> "ContentType":
        """
        Parse a Content-Type header value.

        Args:
            value: e.g. 'multipart/signed; protocol="application/x-pkcs7-signature"'

        Returns:
            ContentType instance

        Raises:
            InputError: If no media type is present
        """
        if not value or not value.strip():
            return cls()

        header = Message()
        header["Content-Type"] = value
        params = header.get_params()

        media_type = params[0][0]
        parameters = []
        for key, param_value in params[1:]:
            if not key:
                continue
            parameters.append((key, collapse_rfc2231_value(param_value)))

        return cls(media_type=media_type, parameters=tuple(parameters))

    @property
    def main_type(self) -> str:
        return self.media_type.split("/", 1)[0]

    @property
    def is_multipart(self) -> bool:
        return self.main_type == "multipart"

    def get_param(self, key: str) -> Optional[str]:
        key = key.lower()
        for name, value in self.parameters:
            if name == key:
                return value
        return None

    @property
    def charset(self) -> Optional[str]:
        return self.get_param("charset")

    @property
    def boundary(self) -> Optional[str]:
        return self.get_param("boundary")

    @property
    def name(self) -> Optional[str]:
        return self.get_param("name")

    def with_param(self, key: str, value: Optional[str]) -> "ContentType":
        """Return a copy with `key` set to `value`, or removed when `value` is None."""
        key = key.lower()
        parameters = []
        replaced = False
        for name, current in self.parameters:
            if name != key:
                parameters.append((name, current))
            elif value is not None and not replaced:
                parameters.append((name, value))
                replaced = True

        if value is not None and not replaced:
            parameters.append((key, value))

        return ContentType(media_type=self.media_type, parameters=tuple(parameters))

    def with_charset(self, charset: Optional[str]) -> "ContentType":
        return self.with_param("charset", charset.lower() if charset else None)

    def with_name(self, name: Optional[str]) -> "ContentType":
        return self.with_param("name", name)

    def with_boundary(self, boundary: str) -> "ContentType":
        return self.with_param("boundary", boundary)

    def with_generated_boundary(self, settings: Optional[Settings] = None) -> "ContentType":
        """Return a copy carrying a freshly generated boundary token."""
        return self.with_boundary(generate_boundary(settings=settings))

    def __str__(self) -> str:
        parts = [self.media_type]
        parts.extend(format_param(k, v) for k, v in self.parameters)
        return "; ".join(parts)
