"""
S/MIME Cryptographic Provider

Detached CMS signatures and CMS enveloped data for S/MIME bodies.

The digest algorithm and certificate-chain policy are fixed protocol
constants so the output stays readable by common S/MIME clients:
- Signatures use SHA-256 (advertised as micalg=sha-256)
- The signer's whole certificate chain is embedded in every signature
- A signing-time attribute is always included
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    load_der_private_key,
    load_pem_private_key,
    pkcs7,
    pkcs12,
)

from ..exceptions import ConfigurationError, CryptoOperationError, InputError

logger = logging.getLogger(__name__)


SIGNATURE_HASH = hashes.SHA256
SIGNATURE_MICALG = "sha-256"
SIGNATURE_PROTOCOL = "application/x-pkcs7-signature"
INCLUDE_CERTIFICATE_CHAIN = True

SigningKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]


def load_certificate(data: bytes) -> x509.Certificate:
    """
    Load an X.509 certificate from PEM or DER bytes.

    Raises:
        InputError: If the data is not a certificate
    """
    if data is None:
        raise InputError("Certificate data is missing")
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise InputError(f"Unable to load certificate: {e}") from e


@dataclass(frozen=True)
class SigningIdentity:
    """Private signing key with its certificate and issuing chain."""
    certificate: x509.Certificate
    private_key: SigningKey
    chain: Tuple[x509.Certificate, ...] = ()

    def __post_init__(self):
        if not isinstance(self.private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise ConfigurationError("Signing key must be an RSA or EC private key")
        object.__setattr__(self, "chain", tuple(self.chain))

    @classmethod
    def from_pem(
        cls,
        certificate: bytes,
        private_key: bytes,
        password: Optional[bytes] = None,
        chain: Iterable[bytes] = (),
    ) -> "SigningIdentity":
        try:
            if private_key.lstrip().startswith(b"-----BEGIN"):
                key = load_pem_private_key(private_key, password)
            else:
                key = load_der_private_key(private_key, password)
        except (TypeError, ValueError) as e:
            raise InputError(f"Unable to load private key: {e}") from e

        return cls(
            certificate=load_certificate(certificate),
            private_key=key,
            chain=tuple(load_certificate(c) for c in chain),
        )

    @classmethod
    def from_pkcs12(cls, data: bytes, password: Optional[bytes] = None) -> "SigningIdentity":
        """Load a signing identity from a PKCS#12 (.p12/.pfx) bundle."""
        try:
            key, certificate, additional = pkcs12.load_key_and_certificates(data, password)
        except (TypeError, ValueError) as e:
            raise InputError(f"Unable to load PKCS#12 bundle: {e}") from e

        if key is None or certificate is None:
            raise InputError("PKCS#12 bundle does not contain a key and certificate")

        return cls(certificate=certificate, private_key=key, chain=tuple(additional or ()))


class CryptoProvider(ABC):
    """Computes signatures and enveloped data for the MIME pipeline."""

    @abstractmethod
    def sign(
        self,
        data: bytes,
        identity: SigningIdentity,
        encryption_certificate: Optional[x509.Certificate] = None,
    ) -> bytes:
        """Return a detached DER signature over exactly `data`."""
        pass

    @abstractmethod
    def encrypt(self, data: bytes, certificates: List[x509.Certificate]) -> bytes:
        """Return DER enveloped data readable by every certificate holder."""
        pass


class CmsCryptoProvider(CryptoProvider):
    """CMS/PKCS#7 provider backed by the cryptography package."""

    def sign(
        self,
        data: bytes,
        identity: SigningIdentity,
        encryption_certificate: Optional[x509.Certificate] = None,
    ) -> bytes:
        try:
            builder = (
                pkcs7.PKCS7SignatureBuilder()
                .set_data(data)
                .add_signer(identity.certificate, identity.private_key, SIGNATURE_HASH())
            )

            embedded = [identity.certificate]
            if INCLUDE_CERTIFICATE_CHAIN:
                for certificate in identity.chain:
                    if certificate not in embedded:
                        builder = builder.add_certificate(certificate)
                        embedded.append(certificate)

            # Recipients pick up the sender's encryption certificate from here
            if encryption_certificate is not None and encryption_certificate not in embedded:
                builder = builder.add_certificate(encryption_certificate)

            signature = builder.sign(
                Encoding.DER,
                [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary],
            )
        except (TypeError, ValueError) as e:
            logger.error("CMS signing failed: %s", e)
            raise CryptoOperationError(f"Signing failed: {e}") from e

        logger.debug("Signed %d bytes, signature is %d bytes", len(data), len(signature))
        return signature

    def encrypt(self, data: bytes, certificates: List[x509.Certificate]) -> bytes:
        if not certificates:
            raise ConfigurationError("At least one encryption certificate is required")

        try:
            builder = pkcs7.PKCS7EnvelopeBuilder().set_data(data)
            for certificate in certificates:
                builder = builder.add_recipient(certificate)
            enveloped = builder.encrypt(Encoding.DER, [pkcs7.PKCS7Options.Binary])
        except (TypeError, ValueError) as e:
            logger.error("CMS encryption failed: %s", e)
            raise CryptoOperationError(f"Encryption failed: {e}") from e

        logger.debug(
            "Encrypted %d bytes for %d certificates",
            len(data), len(certificates)
        )
        return enveloped
