import hashlib
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

project_path = Path(__file__).parent.parent
sys.path.insert(0, str(project_path))

from securemail.config import Settings
from securemail.crypto_engine.smime import CryptoProvider, SigningIdentity
from securemail.email_service.addresses import Certificates, SecureAddress


class FakeCryptoProvider(CryptoProvider):
    """Deterministic provider that records every call."""

    def __init__(self):
        self.sign_calls = []
        self.encrypt_calls = []

    def sign(self, data, identity, encryption_certificate=None):
        self.sign_calls.append((data, identity, encryption_certificate))
        return b"FAKE-SIGNATURE:" + hashlib.sha256(data).digest()

    def encrypt(self, data, certificates):
        self.encrypt_calls.append((data, list(certificates)))
        return b"FAKE-ENVELOPE:" + data


def _generate_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _name(common_name):
    return x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "SecureMail Test"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])


def _create_ca():
    key = _generate_key()
    subject = issuer = _name("SecureMail Test CA")
    now = datetime.now(timezone.utc)

    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=30)
    ).add_extension(
        x509.BasicConstraints(ca=True, path_length=None), critical=True,
    ).sign(key, hashes.SHA256())

    return key, cert


def _create_email_cert(email, ca_key, ca_cert):
    key = _generate_key()
    now = datetime.now(timezone.utc)

    cert = x509.CertificateBuilder().subject_name(
        _name(email)
    ).issuer_name(
        ca_cert.subject
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=30)
    ).add_extension(
        x509.BasicConstraints(ca=False, path_length=None), critical=True,
    ).add_extension(
        x509.SubjectAlternativeName([x509.RFC822Name(email)]), critical=False,
    ).add_extension(
        x509.ExtendedKeyUsage([ExtendedKeyUsageOID.EMAIL_PROTECTION]), critical=False,
    ).sign(ca_key, hashes.SHA256())

    return key, cert


@pytest.fixture(scope="session")
def ca():
    return _create_ca()


@pytest.fixture(scope="session")
def alice_keypair(ca):
    ca_key, ca_cert = ca
    return _create_email_cert("alice@example.com", ca_key, ca_cert)


@pytest.fixture(scope="session")
def bob_keypair(ca):
    ca_key, ca_cert = ca
    return _create_email_cert("bob@example.com", ca_key, ca_cert)


@pytest.fixture(scope="session")
def carol_keypair(ca):
    ca_key, ca_cert = ca
    return _create_email_cert("carol@example.com", ca_key, ca_cert)


@pytest.fixture(scope="session")
def alice_identity(ca, alice_keypair):
    _, ca_cert = ca
    key, cert = alice_keypair
    return SigningIdentity(certificate=cert, private_key=key, chain=(ca_cert,))


@pytest.fixture
def alice(alice_identity):
    return SecureAddress.with_shared_certificate(
        "alice@example.com", alice_identity, display_name="Alice"
    )


@pytest.fixture
def bob(bob_keypair):
    _, cert = bob_keypair
    return SecureAddress(
        "bob@example.com",
        display_name="Bob",
        certificates=Certificates(encryption=cert),
    )


@pytest.fixture
def carol(carol_keypair):
    _, cert = carol_keypair
    return SecureAddress("carol@example.com", certificates=Certificates(encryption=cert))


@pytest.fixture
def dave():
    return SecureAddress("dave@example.com")


@pytest.fixture
def fake_crypto():
    return FakeCryptoProvider()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def sample_attachment_bytes():
    return bytes(range(256)) * 3
