import email
import logging
import os
import sys

from cryptography.hazmat.primitives.serialization import pkcs7

# Setup path to import the package and the PKI helpers
sys.path.append(os.path.dirname(__file__))
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from generate_pki import create_email_cert, create_root_ca
from securemail import (
    Attachment,
    Certificates,
    CmsCryptoProvider,
    SecureAddress,
    SecureMessage,
    SigningIdentity,
    get_settings,
    to_outbound_message,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def verify_flow():
    print("S/MIME Sign-then-Encrypt Verification Script")
    print("============================================\n")

    # --- INPUT DATA ---
    subject = "Project Update"
    body = "This is a strictly confidential update.\r\n.A line starting with a dot."
    attachment_name = "secret_plans.txt"
    attachment_content = b"The eagle has landed at 0400."

    print("ORIGINAL EMAIL:")
    print(f"   Subject: {subject}")
    print(f"   Body:    {body!r}")
    print(f"   Attach:  {attachment_name} ({len(attachment_content)} bytes)")
    print("-" * 50)

    # --- PKI ---
    print("\nGENERATING DEMO PKI...")
    ca_key, ca_cert = create_root_ca()
    alice_key, alice_cert = create_email_cert("alice@example.com", ca_key, ca_cert)
    bob_key, bob_cert = create_email_cert("bob@example.com", ca_key, ca_cert)

    alice = SecureAddress.with_shared_certificate(
        "alice@example.com",
        SigningIdentity(certificate=alice_cert, private_key=alice_key, chain=(ca_cert,)),
        display_name="Alice",
    )
    bob = SecureAddress("bob@example.com", "Bob", Certificates(encryption=bob_cert))

    # --- SENDER SIDE ---
    print("\n[SENDER] Signing and encrypting email...")
    message = SecureMessage(from_address=alice, to=bob, subject=subject, body=body)
    message.attachments.add(Attachment.from_bytes(attachment_content, attachment_name, "text/plain"))
    message.is_signed = True
    message.is_encrypted = True

    outbound = to_outbound_message(message, CmsCryptoProvider(), settings)
    print(f"   Content-Type: {outbound.content.content_type_header}")
    print(f"   Enveloped size: {len(outbound.content.body)} bytes")
    print("-" * 50)

    # --- RECEIVER SIDE ---
    logger.info("Decrypting as %s", bob.address)
    print("\n[RECEIVER] Decrypting email...")
    plaintext = pkcs7.pkcs7_decrypt_der(outbound.content.body, bob_cert, bob_key, [])
    inner = email.message_from_bytes(plaintext)
    print(f"   Inner Content-Type: {inner.get_content_type()}")

    signed_content, signature = inner.get_payload()
    mixed = signed_content.get_payload()
    decrypted_body = mixed[0].get_payload(decode=True).decode("us-ascii")
    decrypted_attachment = mixed[1].get_payload(decode=True)

    ok = True
    if decrypted_body == body:
        print("   Body matches.")
    else:
        print(f"   Body mismatch! Got: {decrypted_body!r}")
        ok = False

    if decrypted_attachment == attachment_content:
        print("   Attachment matches.")
    else:
        print(f"   Attachment mismatch! Got: {decrypted_attachment!r}")
        ok = False

    embedded = pkcs7.load_der_pkcs7_certificates(signature.get_payload(decode=True))
    if alice_cert in embedded and ca_cert in embedded:
        print("   Signature carries the signer chain.")
    else:
        print("   Signature is missing signer certificates!")
        ok = False

    print("\n============================================")
    print("VERIFICATION " + ("COMPLETED SUCCESSFULLY" if ok else "FAILED"))
    print("============================================")
    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_flow() else 1)
