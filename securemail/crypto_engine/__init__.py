"""
Crypto Engine Package

Random boundary generation and the S/MIME signing/encryption provider.
"""

from .secure_random import generate_boundary, secure_random_hex
from .smime import (
    CmsCryptoProvider,
    CryptoProvider,
    SigningIdentity,
    load_certificate,
    SIGNATURE_MICALG,
    SIGNATURE_PROTOCOL,
)

__all__ = [
    "generate_boundary",
    "secure_random_hex",
    "CmsCryptoProvider",
    "CryptoProvider",
    "SigningIdentity",
    "load_certificate",
    "SIGNATURE_MICALG",
    "SIGNATURE_PROTOCOL",
]
