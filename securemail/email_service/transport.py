"""
Transport Conversion

Explicit conversion of a SecureMessage into the message handed to a mail
transport, with the composed body attached as its only content part.
"""

import logging
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Dict, List, Optional

from ..config import Settings, get_settings
from ..crypto_engine.smime import CryptoProvider
from .addresses import SecureAddress
from .message import DeliveryNotification, MailPriority, SecureMessage
from .serializer import SerializedContent, serialize_content

logger = logging.getLogger(__name__)


PRIORITY_HEADERS = {
    MailPriority.HIGH: (("X-Priority", "1"), ("Priority", "urgent"), ("Importance", "high")),
    MailPriority.LOW: (("X-Priority", "5"), ("Priority", "non-urgent"), ("Importance", "low")),
}

# Owned by OutboundMessage fields; Bcc is never written into the message
RESERVED_HEADERS = {
    "from", "sender", "to", "cc", "bcc", "reply-to", "subject",
    "mime-version", "content-type", "content-transfer-encoding",
}

NOTIFY_KEYWORDS = (
    (DeliveryNotification.ON_SUCCESS, "SUCCESS"),
    (DeliveryNotification.ON_FAILURE, "FAILURE"),
    (DeliveryNotification.DELAY, "DELAY"),
)


@dataclass
class OutboundMessage:
    """Envelope fields plus the single composed content part."""
    content: SerializedContent
    from_address: Optional[SecureAddress] = None
    sender: Optional[SecureAddress] = None
    to: List[SecureAddress] = field(default_factory=list)
    cc: List[SecureAddress] = field(default_factory=list)
    bcc: List[SecureAddress] = field(default_factory=list)
    reply_to: List[SecureAddress] = field(default_factory=list)
    subject: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    priority: MailPriority = MailPriority.NORMAL
    delivery_notifications: DeliveryNotification = DeliveryNotification.NONE

    def recipients(self) -> List[str]:
        """Envelope recipients for SMTP RCPT TO."""
        return [a.address for a in self.to + self.cc + self.bcc]

    def rcpt_options(self) -> List[str]:
        """DSN options for smtplib's rcpt_options."""
        notifications = self.delivery_notifications
        if DeliveryNotification.NEVER in notifications:
            return ["NOTIFY=NEVER"]

        keywords = [kw for flag, kw in NOTIFY_KEYWORDS if flag in notifications]
        if not keywords:
            return []
        return ["NOTIFY=" + ",".join(keywords)]

    def as_email_message(self, settings: Optional[Settings] = None) -> EmailMessage:
        """
        Build a standard library EmailMessage for smtplib.

        The composed body is set verbatim with its own Content-Type and
        Content-Transfer-Encoding headers. Custom headers never replace the
        address, subject, priority or content headers, and Bcc recipients
        only appear in recipients().
        """
        settings = settings or get_settings()
        message = EmailMessage()

        if self.from_address is not None:
            message["From"] = str(self.from_address)
        if self.sender is not None:
            message["Sender"] = str(self.sender)
        if self.to:
            message["To"] = ", ".join(str(a) for a in self.to)
        if self.cc:
            message["Cc"] = ", ".join(str(a) for a in self.cc)
        if self.reply_to:
            message["Reply-To"] = ", ".join(str(a) for a in self.reply_to)
        message["Subject"] = self.subject

        for name, value in PRIORITY_HEADERS.get(self.priority, ()):
            message[name] = value

        for name, value in self.headers.items():
            if name.lower() in RESERVED_HEADERS or name in message:
                logger.warning("Ignoring custom header %s; it is set by the message itself", name)
                continue
            message[name] = value

        message["MIME-Version"] = "1.0"
        message["Content-Type"] = self.content.content_type_header
        message["Content-Transfer-Encoding"] = self.content.transfer_encoding_header
        message.set_payload(self.content.encoded_body(settings).decode("ascii"))

        return message


def to_outbound_message(
    message: SecureMessage,
    crypto: Optional[CryptoProvider] = None,
    settings: Optional[Settings] = None,
) -> OutboundMessage:
    """
    Compose a SecureMessage into an OutboundMessage.

    Args:
        message: Message to compose; it is not modified
        crypto: Signing/encryption provider for signed or encrypted messages
        settings: Wire-format settings

    Returns:
        OutboundMessage whose content is the serialized S/MIME body

    Raises:
        ConfigurationError: Missing sender or certificates
        InputError: Body cannot be encoded
    """
    settings = settings or get_settings()

    content = message.build_content(crypto=crypto, settings=settings)
    serialized = serialize_content(content, message.is_multipart, settings)

    outbound = OutboundMessage(
        content=serialized,
        from_address=message.from_address,
        sender=message.sender_address(),
        to=message.to_addresses(),
        cc=message.cc_addresses(),
        bcc=message.bcc_addresses(),
        reply_to=message.reply_to_addresses(),
        subject=message.subject,
        headers=dict(message.headers),
        priority=message.priority,
        delivery_notifications=message.delivery_notifications,
    )

    logger.info(
        "Composed message for %d recipients as %s",
        len(outbound.recipients()), serialized.content_type.media_type
    )
    return outbound
