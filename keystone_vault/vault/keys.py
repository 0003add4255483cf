"""
Vault Keys — Lazy, single-flight loading of the master key.

The master key is imported once per process from an externally supplied hex
string and memoized. Concurrent first callers block on one lock so the import
runs at most once and every caller sees the same ``MasterKey``.

Security Note:
    Never log key material. ``MasterKey.fingerprint`` is safe to log.
"""
import hashlib
import logging
import threading
from typing import Callable, Optional, Union

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .config import VaultConfig, decode_master_key, load_master_key_hex

logger = logging.getLogger("keystone.vault")

KeySource = Union[str, VaultConfig, Callable[[], Optional[str]], None]


class MasterKey:
    """Opaque handle over the AES-256-GCM master key.

    The raw key bytes are handed to the AEAD primitive and not kept on the
    handle; only a short fingerprint is retained for log correlation.
    """

    __slots__ = ("_aead", "_fingerprint")

    def __init__(self, key_bytes: bytes):
        self._aead = AESGCM(key_bytes)
        self._fingerprint = hashlib.sha256(key_bytes).hexdigest()[:8]

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    @property
    def aead(self) -> AESGCM:
        return self._aead

    def __repr__(self) -> str:
        return f"<MasterKey fingerprint={self._fingerprint}>"


class KeyManager:
    """Obtains and memoizes the single master key of this vault instance.

    Args:
        source: Where the hex key comes from. A hex string, a ``VaultConfig``,
            or a zero-argument callable returning the hex string. Defaults to
            the ``VAULT_MASTER_KEY`` environment variable.
    """

    def __init__(self, source: KeySource = None):
        if source is None:
            self._loader = load_master_key_hex
        elif isinstance(source, VaultConfig):
            self._loader = lambda: source.master_key
        elif isinstance(source, str):
            self._loader = lambda: source
        elif callable(source):
            self._loader = source
        else:
            raise TypeError(
                f"Unsupported master key source: {type(source).__name__}"
            )
        self._key: Optional[MasterKey] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._key is not None

    @property
    def fingerprint(self) -> Optional[str]:
        """Fingerprint of the cached key, or None before the first load."""
        key = self._key
        return key.fingerprint if key is not None else None

    def get_master_key(self) -> MasterKey:
        """Return the master key, importing it on first use.

        Returns:
            The process-wide ``MasterKey`` handle.

        Raises:
            ConfigurationError: If the key material is absent or invalid.
                Nothing is cached on failure; a later call retries.
        """
        key = self._key
        if key is not None:
            return key
        with self._lock:
            # another caller may have finished the import while we waited
            if self._key is None:
                key_bytes = decode_master_key(self._loader())
                self._key = MasterKey(key_bytes)
                logger.debug(
                    "Vault master key loaded (fingerprint=%s)",
                    self._key.fingerprint,
                )
            return self._key
