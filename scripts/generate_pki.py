import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

# Configuration
DATA_DIR = Path("./data/pki")
PKI_PASSWORD = b"insecure-pki-password" # For demo purposes
ADDRESSES = ["alice@example.com", "bob@example.com"]

def generate_key():
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )

def save_cert(cert, path):
    with open(path, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))

def save_pkcs12(key, cert, ca_cert, path, name):
    with open(path, "wb") as f:
        f.write(pkcs12.serialize_key_and_certificates(
            name.encode("utf-8"),
            key,
            cert,
            [ca_cert],
            serialization.BestAvailableEncryption(PKI_PASSWORD),
        ))

def create_root_ca():
    key = generate_key()

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, u"SecureMail Demo"),
        x509.NameAttribute(NameOID.COMMON_NAME, u"SecureMail Demo Root CA"),
    ])

    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        datetime.now(timezone.utc)
    ).not_valid_after(
        # 10 years
        datetime.now(timezone.utc) + timedelta(days=3650)
    ).add_extension(
        x509.BasicConstraints(ca=True, path_length=None), critical=True,
    ).sign(key, hashes.SHA256())

    return key, cert

def create_email_cert(email, ca_key, ca_cert):
    key = generate_key()

    subject = x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, u"SecureMail Demo"),
        x509.NameAttribute(NameOID.COMMON_NAME, email),
        x509.NameAttribute(NameOID.EMAIL_ADDRESS, email),
    ])

    # Mail clients match the sender against the RFC 822 SubjectAltName
    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        ca_cert.subject
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        datetime.now(timezone.utc)
    ).not_valid_after(
        datetime.now(timezone.utc) + timedelta(days=365)
    ).add_extension(
        x509.BasicConstraints(ca=False, path_length=None), critical=True,
    ).add_extension(
        x509.KeyUsage(
            digital_signature=True,
            content_commitment=True,
            key_encipherment=True,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=False,
            crl_sign=False,
            encipher_only=False,
            decipher_only=False,
        ), critical=True,
    ).add_extension(
        x509.ExtendedKeyUsage([ExtendedKeyUsageOID.EMAIL_PROTECTION]), critical=False,
    ).add_extension(
        x509.SubjectAlternativeName([x509.RFC822Name(email)]), critical=False,
    ).sign(ca_key, hashes.SHA256())

    return key, cert

def main():
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)

    print("Generating Root CA...")
    ca_key, ca_cert = create_root_ca()
    save_cert(ca_cert, data_dir / "ca_cert.pem")

    for email in ADDRESSES:
        print(f"Generating S/MIME certificate for {email}...")
        key, cert = create_email_cert(email, ca_key, ca_cert)
        local_part = email.split("@")[0]
        save_cert(cert, data_dir / f"{local_part}_cert.pem")
        save_pkcs12(key, cert, ca_cert, data_dir / f"{local_part}.p12", email)

    print(f"\nPKI generated in {data_dir}")
    print("Files:")
    for f in sorted(data_dir.iterdir()):
        print(f" - {f.name}")

if __name__ == "__main__":
    main()
