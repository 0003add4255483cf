"""Vault exceptions.

Every failure of the encryption core is reported as one of these types.
None of them is converted into a placeholder value inside the package;
presentation code decides how to render "secret cannot be displayed".
"""


class VaultError(Exception):
    """Base exception for keystone_vault."""


class ConfigurationError(VaultError):
    """Master key material or vault settings are missing or invalid."""


class CipherError(VaultError):
    """Base exception for failures on a single envelope."""


class MalformedEnvelopeError(CipherError):
    """Envelope string is not a well-formed ``iv:tag:ciphertext`` triple."""


class AuthenticationError(CipherError):
    """GCM tag verification failed (tampered data or wrong key)."""


class EncodingError(CipherError):
    """Decrypted bytes are not valid UTF-8."""


class EncryptionError(CipherError):
    """The AEAD primitive failed while encrypting."""


class SecretNotFoundError(VaultError):
    """Raised when the credential store has no secret with the given id."""


class InvalidRecordError(VaultError):
    """A credential store row cannot be read as a secret record."""
