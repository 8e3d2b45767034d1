import logging
import secrets
from typing import Optional

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


def secure_random_hex(length: int) -> str:
    if length <= 0:
        raise ValueError("Length must be positive")
    byte_length = (length + 1) // 2
    return secrets.token_hex(byte_length)[:length]


def generate_boundary(
    prefix: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Generate a fresh MIME boundary token.

    The token is the configured prefix followed by hex digits from the
    system CSPRNG, so it never needs quoting and is never reused.

    Args:
        prefix: Overrides Settings.boundary_prefix
        settings: Settings to read prefix and entropy size from

    Returns:
        Boundary token without the leading hyphens
    """
    settings = settings or get_settings()
    if prefix is None:
        prefix = settings.boundary_prefix

    boundary = prefix + secure_random_hex(settings.boundary_entropy_bytes * 2)
    logger.debug("Generated MIME boundary %s", boundary)
    return boundary
