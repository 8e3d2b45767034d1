"""
SecureMail

S/MIME message body composition: plain, signed, encrypted, or
signed-then-encrypted MIME content ready for a mail transport.
"""

from .config import Settings, get_settings
from .crypto_engine import CmsCryptoProvider, CryptoProvider, SigningIdentity, load_certificate
from .email_service import (
    Attachment,
    Certificates,
    ContentType,
    DeliveryNotification,
    MailPriority,
    OutboundMessage,
    SecureAddress,
    SecureMessage,
    to_outbound_message,
)
from .exceptions import (
    ConfigurationError,
    CryptoOperationError,
    InputError,
    MissingCertificateError,
    SecureMailError,
    UnsupportedOperationError,
)

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "CmsCryptoProvider",
    "CryptoProvider",
    "SigningIdentity",
    "load_certificate",
    "Attachment",
    "Certificates",
    "ContentType",
    "DeliveryNotification",
    "MailPriority",
    "OutboundMessage",
    "SecureAddress",
    "SecureMessage",
    "to_outbound_message",
    "ConfigurationError",
    "CryptoOperationError",
    "InputError",
    "MissingCertificateError",
    "SecureMailError",
    "UnsupportedOperationError",
]
