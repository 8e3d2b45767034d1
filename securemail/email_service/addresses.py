"""
Secure Mail Addresses

An email address paired with an optional capability record holding the
owner's signing identity and encryption certificate.
"""

from dataclasses import dataclass
from email.utils import formataddr, parseaddr
from typing import Optional

from cryptography import x509

from ..crypto_engine.smime import SigningIdentity
from ..exceptions import InputError


@dataclass(frozen=True)
class Certificates:
    """S/MIME capabilities of an address owner."""
    signing: Optional[SigningIdentity] = None
    encryption: Optional[x509.Certificate] = None


NO_CERTIFICATES = Certificates()


@dataclass(frozen=True)
class SecureAddress:
    """Email address with optional S/MIME certificates."""
    address: str
    display_name: str = ""
    certificates: Optional[Certificates] = None

    def __post_init__(self):
        address = (self.address or "").strip()
        if "@" not in address or address.startswith("@") or address.endswith("@"):
            raise InputError(f"Invalid email address: {self.address!r}")
        object.__setattr__(self, "address", address)

    @classmethod
    def parse(
        cls,
        value: str,
        certificates: Optional[Certificates] = None,
    ) -> "SecureAddress":
        """Parse 'Display Name <user@host>' or a bare address."""
        display_name, address = parseaddr(value or "")
        return cls(address=address, display_name=display_name, certificates=certificates)

    @classmethod
    def with_shared_certificate(
        cls,
        address: str,
        identity: SigningIdentity,
        display_name: str = "",
    ) -> "SecureAddress":
        """Use one certificate for both signing and encryption."""
        return cls(
            address=address,
            display_name=display_name,
            certificates=Certificates(signing=identity, encryption=identity.certificate),
        )

    def capabilities(self) -> Certificates:
        return self.certificates or NO_CERTIFICATES

    @property
    def signing_identity(self) -> Optional[SigningIdentity]:
        return self.capabilities().signing

    @property
    def encryption_certificate(self) -> Optional[x509.Certificate]:
        return self.capabilities().encryption

    @property
    def can_sign(self) -> bool:
        return self.signing_identity is not None

    @property
    def can_encrypt(self) -> bool:
        return self.encryption_certificate is not None

    @property
    def key(self) -> str:
        """Case-insensitive identity used to de-duplicate recipients."""
        return self.address.lower()

    def __str__(self) -> str:
        return formataddr((self.display_name, self.address))


def to_secure_address(value) -> Optional[SecureAddress]:
    """Coerce a string or SecureAddress; None passes through."""
    if value is None or isinstance(value, SecureAddress):
        return value
    if isinstance(value, str):
        return SecureAddress.parse(value)
    raise InputError(f"Unsupported address value: {value!r}")
