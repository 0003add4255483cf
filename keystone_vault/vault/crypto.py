"""
Vault Crypto Core — Envelope encryption of secret values.

Each secret value is sealed with AES-256-GCM under the master key and stored
as an ASCII envelope of three lowercase hex segments:

    <iv 12B>:<tag 16B>:<ciphertext>

The segment order is a storage format; changing it requires a new format
version.

Security Note:
    Never log plaintext or envelope values.
    IVs are random 96-bit; collision probability negligible under normal usage.
"""
import os
import logging
from typing import NamedTuple, Optional

from cryptography.exceptions import InvalidTag

from ..exceptions import (
    AuthenticationError,
    CipherError,
    ConfigurationError,
    EncodingError,
    EncryptionError,
    MalformedEnvelopeError,
)
from .config import is_hex
from .keys import KeyManager, MasterKey

logger = logging.getLogger("keystone.vault")

IV_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
SEPARATOR = ":"


# ---------------------------------------------------------------------------
# Envelope format
# ---------------------------------------------------------------------------

class Envelope(NamedTuple):
    """Parsed form of an encrypted secret."""

    iv: bytes
    tag: bytes
    ciphertext: bytes

    def __str__(self) -> str:
        return SEPARATOR.join(
            (self.iv.hex(), self.tag.hex(), self.ciphertext.hex())
        )

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        """Parse an ``iv:tag:ciphertext`` envelope string.

        Args:
            text: Envelope as stored by the credential store.

        Returns:
            Parsed Envelope.

        Raises:
            MalformedEnvelopeError: On wrong segment count, non-hex segments,
                or wrong iv/tag length.
        """
        if not isinstance(text, str):
            raise MalformedEnvelopeError(
                f"Envelope must be a string, got {type(text).__name__}"
            )
        parts = text.split(SEPARATOR)
        if len(parts) != 3:
            raise MalformedEnvelopeError(
                f"Envelope must have 3 segments, got {len(parts)}"
            )
        for name, segment in zip(cls._fields, parts):
            if not is_hex(segment):
                raise MalformedEnvelopeError(
                    f"Envelope segment '{name}' is not valid hex"
                )
        iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        if len(iv) != IV_SIZE:
            raise MalformedEnvelopeError(
                f"Envelope iv must be {IV_SIZE} bytes, got {len(iv)}"
            )
        if len(tag) != TAG_SIZE:
            raise MalformedEnvelopeError(
                f"Envelope tag must be {TAG_SIZE} bytes, got {len(tag)}"
            )
        return cls(iv, tag, ciphertext)


def envelope_length(plaintext: str) -> int:
    """Length of the envelope string produced for ``plaintext``."""
    return 2 * (IV_SIZE + TAG_SIZE + len(plaintext.encode("utf-8"))) + 2


class DecryptResult(NamedTuple):
    """Outcome of a decryption; exactly one of the fields is set."""

    plaintext: Optional[str] = None
    error: Optional[CipherError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Cipher
# ---------------------------------------------------------------------------

class EnvelopeCipher:
    """Encrypts and decrypts secret values as envelope strings.

    Args:
        key_manager: Source of the master key used when a call does not pass
            an explicit ``key``.
    """

    def __init__(self, key_manager: Optional[KeyManager] = None):
        self._keys = key_manager

    def _resolve_key(self, key: Optional[MasterKey]) -> MasterKey:
        if key is not None:
            return key
        if self._keys is None:
            raise ConfigurationError(
                "EnvelopeCipher has no key manager and no key was given"
            )
        return self._keys.get_master_key()

    def encrypt(self, plaintext: str, key: Optional[MasterKey] = None) -> str:
        """Encrypt a secret value.

        Args:
            plaintext: Secret value; may be empty.
            key: Master key; defaults to the injected key manager's key.

        Returns:
            Envelope string ``iv:tag:ciphertext``.

        Raises:
            ConfigurationError: If no key is available.
            EncryptionError: If the AEAD primitive fails.
        """
        master_key = self._resolve_key(key)
        iv = os.urandom(IV_SIZE)
        try:
            sealed = master_key.aead.encrypt(iv, plaintext.encode("utf-8"), None)
        except (OverflowError, ValueError) as err:
            raise EncryptionError(f"Encryption failed: {err}") from err
        # AESGCM appends the tag to the ciphertext.
        envelope = Envelope(iv, sealed[-TAG_SIZE:], sealed[:-TAG_SIZE])
        return str(envelope)

    def decrypt(self, envelope: str, key: Optional[MasterKey] = None) -> str:
        """Decrypt an envelope string back to the secret value.

        Args:
            envelope: Envelope string as produced by ``encrypt``.
            key: Master key; defaults to the injected key manager's key.

        Returns:
            Decrypted plaintext.

        Raises:
            MalformedEnvelopeError: If the envelope format is invalid.
            AuthenticationError: If the tag does not verify.
            EncodingError: If the plaintext is not valid UTF-8.
            ConfigurationError: If no key is available.
        """
        parsed = Envelope.parse(envelope)
        master_key = self._resolve_key(key)
        try:
            data = master_key.aead.decrypt(
                parsed.iv, parsed.ciphertext + parsed.tag, None,
            )
        except InvalidTag as err:
            raise AuthenticationError(
                "Envelope authentication failed (tampered data or wrong key)"
            ) from err
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise EncodingError(
                "Decrypted secret is not valid UTF-8"
            ) from err

    def try_decrypt(
        self, envelope: str, key: Optional[MasterKey] = None
    ) -> DecryptResult:
        """Decrypt, returning per-envelope failures as a ``DecryptResult``.

        ``ConfigurationError`` is not a per-envelope failure and propagates.
        """
        try:
            return DecryptResult(plaintext=self.decrypt(envelope, key))
        except CipherError as err:
            return DecryptResult(error=err)
