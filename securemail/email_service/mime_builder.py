"""
S/MIME Body Builder

Builds the content envelopes of an outbound message in three stages:
- Unsigned content: a single text part, or multipart/mixed with attachments
- Signed content: multipart/signed with a detached PKCS#7 signature
- Encrypted content: application/pkcs7-mime enveloped data

Stages always run in that order. Each consumes one ContentEnvelope and
returns a new one.
"""

import codecs
import logging
from typing import Iterable, List, Optional

from cryptography import x509

from ..config import Settings, get_settings
from ..crypto_engine.smime import CryptoProvider, SIGNATURE_MICALG, SIGNATURE_PROTOCOL
from ..exceptions import ConfigurationError, InputError, MissingCertificateError
from .addresses import SecureAddress
from .attachments import Attachment
from .content_type import ContentType, format_param
from .envelope import ContentEnvelope, TransferEncoding, wrap_base64

logger = logging.getLogger(__name__)


SIGNATURE_FILENAME = "smime.p7s"
ENVELOPED_FILENAME = "smime.p7m"

SIGNATURE_CONTENT_TYPE = ContentType(
    SIGNATURE_PROTOCOL,
    (("name", SIGNATURE_FILENAME),),
)
ENVELOPED_CONTENT_TYPE = ContentType(
    "application/pkcs7-mime",
    (("smime-type", "enveloped-data"), ("name", ENVELOPED_FILENAME)),
)


class _MimeWriter:
    """Accumulates ASCII header lines and raw body bytes."""

    def __init__(self, line_break: str):
        self._chunks: List[bytes] = []
        self._line_break = line_break.encode("ascii")

    def line(self, text: str = "") -> "_MimeWriter":
        self._chunks.append(text.encode("ascii") + self._line_break)
        return self

    def raw(self, data: bytes) -> "_MimeWriter":
        self._chunks.append(data)
        return self

    def boundary(self, boundary: str, closing: bool = False) -> "_MimeWriter":
        return self.line(f"--{boundary}--" if closing else f"--{boundary}")

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


def build_unsigned_content(
    body: Optional[str] = None,
    body_encoding: Optional[str] = None,
    is_html: bool = False,
    attachments: Iterable[Attachment] = (),
    wrap: bool = False,
    settings: Optional[Settings] = None,
) -> ContentEnvelope:
    """
    Build the unsigned content envelope.

    Args:
        body: Message text; None is treated as empty
        body_encoding: Charset for the body, defaults to Settings.default_body_encoding
        is_html: Render as text/html instead of text/plain
        attachments: Attachments to add as multipart/mixed parts
        wrap: True if the result will be signed or encrypted

    Returns:
        Single base64 text part, or a 7bit multipart/mixed envelope

    Raises:
        ConfigurationError: If the body encoding is unknown
        InputError: If the body cannot be represented in the encoding
    """
    settings = settings or get_settings()
    line_break = settings.line_break
    charset = (body_encoding or settings.default_body_encoding).lower()

    try:
        codecs.lookup(charset)
    except LookupError:
        raise ConfigurationError(f"Unknown body encoding: {charset}")

    try:
        body_bytes = (body or "").encode(charset)
    except UnicodeEncodeError as e:
        raise InputError(f"Message body cannot be encoded as {charset}: {e}") from e

    attachments = list(attachments)

    text_type = ContentType("text/html" if is_html else "text/plain").with_charset(charset)

    # Content embedded in another structure has to be base64 text already
    body_content = ContentEnvelope.create(
        body_bytes,
        text_type,
        TransferEncoding.BASE64,
        encode_body=wrap or bool(attachments),
        settings=settings,
    )

    if not attachments:
        return body_content

    mixed_type = ContentType("multipart/mixed").with_generated_boundary(settings)
    boundary = mixed_type.boundary

    writer = _MimeWriter(line_break)
    writer.line()
    writer.boundary(boundary)
    writer.raw(body_content.to_mime_bytes(line_break)).line()

    for attachment in attachments:
        writer.boundary(boundary)
        writer.line(f"Content-Type: {attachment.content_type}")
        writer.line("Content-Transfer-Encoding: base64")
        if attachment.name:
            writer.line(f"Content-Disposition: attachment; {format_param('filename', attachment.name)}")
        writer.line()
        writer.raw(wrap_base64(attachment.content, settings.base64_line_length, line_break))
        writer.line().line()

    writer.boundary(boundary, closing=True)

    logger.debug(
        "Built multipart/mixed content with %d attachments, boundary %s",
        len(attachments), boundary
    )

    return ContentEnvelope.create(
        writer.getvalue(),
        mixed_type,
        TransferEncoding.SEVEN_BIT,
        encode_body=False,
    )


def sign_content(
    content: ContentEnvelope,
    signer: Optional[SecureAddress],
    crypto: CryptoProvider,
    settings: Optional[Settings] = None,
) -> ContentEnvelope:
    """
    Wrap content in multipart/signed with a detached signature.

    The signature covers the part headers and body exactly as they are
    written into the first part.

    Raises:
        ConfigurationError: If there is no signer or it has no signing certificate
    """
    settings = settings or get_settings()
    line_break = settings.line_break

    if signer is None:
        logger.warning("Cannot sign message without a sender address")
        raise ConfigurationError("Sender address not specified!")

    identity = signer.signing_identity
    if identity is None:
        logger.warning("No signing certificate for %s", signer.address)
        raise ConfigurationError(
            f"Signing certificate not specified for '{signer.address}'."
        )

    unsigned = content.to_mime_bytes(line_break)
    signature = crypto.sign(unsigned, identity, signer.encryption_certificate)

    signed_type = ContentType(
        "multipart/signed",
        (("protocol", SIGNATURE_PROTOCOL), ("micalg", SIGNATURE_MICALG)),
    ).with_generated_boundary(settings)
    boundary = signed_type.boundary

    writer = _MimeWriter(line_break)
    writer.boundary(boundary)
    writer.raw(unsigned).line()
    writer.boundary(boundary)
    writer.line(f"Content-Type: {SIGNATURE_CONTENT_TYPE}")
    writer.line("Content-Transfer-Encoding: base64")
    writer.line(f"Content-Disposition: attachment; {format_param('filename', SIGNATURE_FILENAME)}")
    writer.line("Content-Description: S/MIME Cryptographic Signature")
    writer.line()
    writer.raw(wrap_base64(signature, settings.base64_line_length, line_break))
    writer.line().line()
    writer.boundary(boundary, closing=True)

    logger.info("Signed message content for %s", signer.address)

    return ContentEnvelope.create(
        writer.getvalue(),
        signed_type,
        TransferEncoding.SEVEN_BIT,
        encode_body=False,
    )


def collect_encryption_certificates(
    sender: SecureAddress,
    recipients: Iterable[SecureAddress],
) -> List[x509.Certificate]:
    """
    Gather the sender's and every distinct recipient's encryption certificate.

    Raises:
        MissingCertificateError: For the first recipient without a certificate
    """
    certificates: List[x509.Certificate] = []
    if sender.encryption_certificate is not None:
        certificates.append(sender.encryption_certificate)

    seen = set()
    for recipient in recipients:
        if recipient.key in seen:
            continue
        seen.add(recipient.key)

        certificate = recipient.encryption_certificate
        if certificate is None:
            logger.warning("No encryption certificate for recipient %s", recipient.address)
            raise MissingCertificateError(recipient.address)

        if certificate not in certificates:
            certificates.append(certificate)

    return certificates


def encrypt_content(
    content: ContentEnvelope,
    sender: Optional[SecureAddress],
    recipients: Iterable[SecureAddress],
    crypto: CryptoProvider,
    settings: Optional[Settings] = None,
) -> ContentEnvelope:
    """
    Wrap content in an application/pkcs7-mime enveloped-data part.

    Every certificate is resolved before the provider is called, so a
    missing certificate never leaves partial ciphertext behind.

    Raises:
        ConfigurationError: If there is no sender or nobody to encrypt for
        MissingCertificateError: If a recipient has no encryption certificate
    """
    settings = settings or get_settings()

    if sender is None:
        logger.warning("Cannot encrypt message without a sender address")
        raise ConfigurationError("Sender address not specified!")

    certificates = collect_encryption_certificates(sender, recipients)
    if not certificates:
        raise ConfigurationError("No encryption certificates available for this message.")

    plaintext = content.to_mime_bytes(settings.line_break)
    enveloped = crypto.encrypt(plaintext, certificates)

    logger.info("Encrypted message content for %d certificates", len(certificates))

    return ContentEnvelope.create(
        enveloped,
        ENVELOPED_CONTENT_TYPE,
        TransferEncoding.BASE64,
        encode_body=False,
    )
