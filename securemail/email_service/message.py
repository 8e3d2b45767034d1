"""
Secure Mail Message

Caller-owned message description. Composition reads it and never
mutates it.
"""

import logging
from enum import Enum, Flag
from typing import Dict, List, Optional, Union

from ..config import Settings, get_settings
from ..crypto_engine.smime import CmsCryptoProvider, CryptoProvider
from .addresses import SecureAddress, to_secure_address
from .attachments import AttachmentCollection
from .envelope import ContentEnvelope
from .mime_builder import build_unsigned_content, encrypt_content, sign_content

logger = logging.getLogger(__name__)

AddressValue = Union[str, SecureAddress]


class MailPriority(Enum):
    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"


class DeliveryNotification(Flag):
    NONE = 0
    ON_SUCCESS = 1
    ON_FAILURE = 2
    DELAY = 4
    NEVER = 8


def _address_list(values) -> List[SecureAddress]:
    if values is None:
        return []
    if isinstance(values, (str, SecureAddress)):
        values = [values]
    return [to_secure_address(v) for v in values]


class SecureMessage:
    """
    An email message that can be signed and/or encrypted before sending.

    Address fields accept SecureAddress values or plain strings such as
    'Alice <alice@example.com>'.
    """

    def __init__(
        self,
        from_address: Optional[AddressValue] = None,
        to: Union[AddressValue, List[AddressValue], None] = None,
        subject: str = "",
        body: Optional[str] = None,
    ):
        self.from_address = from_address
        self.sender: Optional[AddressValue] = None
        self.to: List[AddressValue] = _address_list(to)
        self.cc: List[AddressValue] = []
        self.bcc: List[AddressValue] = []
        self.reply_to: List[AddressValue] = []
        self.headers: Dict[str, str] = {}
        self.subject = subject
        self.body = body
        self.body_encoding: Optional[str] = None
        self.is_body_html = False
        self.priority = MailPriority.NORMAL
        self.delivery_notifications = DeliveryNotification.NONE
        self.attachments = AttachmentCollection()
        self.is_signed = False
        self.is_encrypted = False

    @property
    def from_address(self) -> Optional[SecureAddress]:
        return self._from_address

    @from_address.setter
    def from_address(self, value: Optional[AddressValue]) -> None:
        self._from_address = to_secure_address(value)

    @property
    def is_multipart(self) -> bool:
        """Encryption always collapses the body to one opaque part."""
        return not self.is_encrypted and (len(self.attachments) > 0 or self.is_signed)

    def sender_address(self) -> Optional[SecureAddress]:
        return to_secure_address(self.sender)

    def to_addresses(self) -> List[SecureAddress]:
        return _address_list(self.to)

    def cc_addresses(self) -> List[SecureAddress]:
        return _address_list(self.cc)

    def bcc_addresses(self) -> List[SecureAddress]:
        return _address_list(self.bcc)

    def reply_to_addresses(self) -> List[SecureAddress]:
        return _address_list(self.reply_to)

    def recipients(self) -> List[SecureAddress]:
        """All To, Cc and Bcc addresses in that order."""
        return self.to_addresses() + self.cc_addresses() + self.bcc_addresses()

    def build_content(
        self,
        crypto: Optional[CryptoProvider] = None,
        settings: Optional[Settings] = None,
    ) -> ContentEnvelope:
        """
        Run the composition pipeline: unsigned, then signed, then encrypted.

        Args:
            crypto: Signing/encryption provider, defaults to CmsCryptoProvider
            settings: Wire-format settings

        Returns:
            Final ContentEnvelope

        Raises:
            ConfigurationError: Missing sender or certificates
            InputError: Body cannot be encoded
        """
        settings = settings or get_settings()
        wrap = self.is_signed or self.is_encrypted
        if wrap and crypto is None:
            crypto = CmsCryptoProvider()

        content = build_unsigned_content(
            body=self.body,
            body_encoding=self.body_encoding,
            is_html=self.is_body_html,
            attachments=self.attachments,
            wrap=wrap,
            settings=settings,
        )

        if self.is_signed:
            content = sign_content(content, self.from_address, crypto, settings)

        if self.is_encrypted:
            content = encrypt_content(
                content, self.from_address, self.recipients(), crypto, settings
            )

        logger.debug(
            "Built %s content (signed=%s, encrypted=%s, attachments=%d)",
            content.content_type.media_type,
            self.is_signed, self.is_encrypted, len(self.attachments)
        )
        return content
