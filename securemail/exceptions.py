"""
SecureMail Exceptions
"""


class SecureMailError(Exception):
    """Base exception for message composition failures."""
    pass


class ConfigurationError(SecureMailError):
    """Sender, signing or encryption setup is incomplete."""
    pass


class MissingCertificateError(ConfigurationError):
    """A recipient has no encryption certificate."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(
            f"Email address '{address}' does not have an encryption certificate specified."
        )


class InputError(SecureMailError):
    """Message content or attachment source is missing or unreadable."""
    pass


class CryptoOperationError(SecureMailError):
    """The cryptographic provider failed to sign or encrypt."""
    pass


class UnsupportedOperationError(SecureMailError):
    """Operation is intentionally not supported."""
    pass
