"""
Email Service Package

Builds plain, signed, encrypted, or signed-then-encrypted MIME bodies.
"""

from .addresses import Certificates, SecureAddress
from .attachments import Attachment, AttachmentCollection
from .content_type import ContentType
from .envelope import ContentEnvelope, TransferEncoding, wrap_base64
from .message import DeliveryNotification, MailPriority, SecureMessage
from .mime_builder import build_unsigned_content, encrypt_content, sign_content
from .serializer import SerializedContent, dot_stuff, serialize_content
from .transport import OutboundMessage, to_outbound_message

__all__ = [
    "Certificates",
    "SecureAddress",
    "Attachment",
    "AttachmentCollection",
    "ContentType",
    "ContentEnvelope",
    "TransferEncoding",
    "wrap_base64",
    "DeliveryNotification",
    "MailPriority",
    "SecureMessage",
    "build_unsigned_content",
    "encrypt_content",
    "sign_content",
    "SerializedContent",
    "dot_stuff",
    "serialize_content",
    "OutboundMessage",
    "to_outbound_message",
]
