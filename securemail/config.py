"""
SecureMail Configuration

Manages MIME composition settings with environment variable support.
Wire-format constants live here so they are passed explicitly through the
pipeline instead of being process-wide globals.
"""

import codecs
import re
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_TOKEN_RE = re.compile(r"^[A-Za-z0-9_\-.]*$")


class Settings(BaseSettings):
    """Composition settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="SECUREMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Wire format
    line_break: str = "\r\n"
    base64_line_length: int = 76
    multipart_preamble: str = "This is a multi-part message in MIME format."

    # Body
    default_body_encoding: str = "us-ascii"

    # Boundaries
    boundary_prefix: str = "SecureMail_"
    boundary_entropy_bytes: int = 16

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("line_break")
    @classmethod
    def validate_line_break(cls, v: str) -> str:
        if v not in ("\r\n", "\n"):
            raise ValueError("line_break must be CRLF or LF")
        return v

    @field_validator("base64_line_length")
    @classmethod
    def validate_base64_line_length(cls, v: int) -> int:
        """MIME caps encoded lines at 76 characters; whole quanta only."""
        if v <= 0 or v > 76 or v % 4:
            raise ValueError("base64_line_length must be a positive multiple of 4, at most 76")
        return v

    @field_validator("default_body_encoding")
    @classmethod
    def validate_body_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown body encoding: {v}")
        return v.lower()

    @field_validator("boundary_prefix")
    @classmethod
    def validate_boundary_prefix(cls, v: str) -> str:
        if not _TOKEN_RE.match(v):
            raise ValueError("boundary_prefix may only contain letters, digits, '_', '-' and '.'")
        return v

    @field_validator("boundary_entropy_bytes")
    @classmethod
    def validate_boundary_entropy(cls, v: int) -> int:
        if v < 8:
            raise ValueError("boundary_entropy_bytes must be at least 8")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
