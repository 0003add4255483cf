"""
SecretVault — Encrypted credentials backed by an external credential store.

Provides the public API used by the vault UI and the autofill overlay:
- ``save(...)`` — encrypt a password and insert the secret into the store
- ``reveal(secret)`` — decrypt a secret's password for display or copy
- ``reveal_many(secrets)`` — decrypt several secrets, collecting failures
- ``credentials_for(secret)`` — username/password pair for autofill
- ``suggest(hostname)`` — fetch secrets, optionally filtered, grouped by relevance
- ``open(store)`` — factory that loads the master key eagerly

Security Note:
    Never log plaintext or envelope values. Only log secret ids, operations
    and key fingerprints.
"""
import logging
from typing import Any, Optional, Protocol, Union
from collections.abc import Iterable, Mapping, Sequence

from ..data import Credentials, SecretRecord, SecretType, parse_records
from ..exceptions import CipherError, SecretNotFoundError
from ..matching import (
    DomainMatcher,
    MatchResult,
    filter_by_query,
    get_matcher,
    hostname_from_url,
)
from .config import VaultConfig
from .crypto import DecryptResult, EnvelopeCipher
from .keys import KeyManager

logger = logging.getLogger("keystone.vault")


class CredentialStore(Protocol):
    """Persistence collaborator; envelopes are stored as opaque strings."""

    async def fetch_secrets(self) -> Sequence[Mapping[str, Any]]:
        ...

    async def fetch_secret(self, secret_id: str) -> Optional[Mapping[str, Any]]:
        ...

    async def insert_secret(
        self, row: Mapping[str, Any]
    ) -> Optional[Mapping[str, Any]]:
        ...


SecretRef = Union[SecretRecord, str]


class SecretVault:
    """Credential vault over an external store.

    The store only ever sees envelope strings; plaintext exists in process
    memory between ``reveal`` and the caller's use of the value.
    """

    def __init__(
        self,
        store: CredentialStore,
        key_manager: Optional[KeyManager] = None,
        matcher: Optional[DomainMatcher] = None,
    ):
        self._store = store
        self._keys = key_manager or KeyManager()
        self._cipher = EnvelopeCipher(self._keys)
        self._matcher = matcher or get_matcher()

    @property
    def key_manager(self) -> KeyManager:
        return self._keys

    @property
    def cipher(self) -> EnvelopeCipher:
        return self._cipher

    @property
    def matcher(self) -> DomainMatcher:
        return self._matcher

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    async def _resolve(self, secret: SecretRef) -> SecretRecord:
        """Return the record for a SecretRecord or a secret id."""
        if isinstance(secret, SecretRecord):
            return secret
        row = await self._store.fetch_secret(secret)
        if row is None:
            raise SecretNotFoundError(f"Secret {secret} not found")
        return SecretRecord.from_row(row)

    async def secrets(self) -> list[SecretRecord]:
        """Fetch every secret visible to the store's current user.

        Rows that cannot be read as a SecretRecord are logged and skipped.
        """
        rows = await self._store.fetch_secrets()
        return parse_records(rows, skip_invalid=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save(
        self,
        title: str,
        password: str,
        *,
        type: Union[SecretType, str] = SecretType.OTHER,
        username: Optional[str] = None,
        url: Optional[str] = None,
        **extra: Any,
    ) -> Optional[Mapping[str, Any]]:
        """Encrypt a password and insert the secret.

        Args:
            title: Display title (required, non-empty).
            password: Secret value to encrypt.
            type: Secret type (ssh, ftp, db, cms, api, other).
            username: Optional login name.
            url: Optional site URL used for domain matching.
            **extra: Other store columns (project_id, host, port, notes...).

        Returns:
            Whatever the store returns for the inserted row.

        Raises:
            ValueError: If title is empty.
            ConfigurationError: If the master key is unavailable.
        """
        if not title or not title.strip():
            raise ValueError("Secret title cannot be empty")
        row = dict(extra)
        row.update(
            title=title,
            type=SecretType(type).value,
            username=username or None,
            url=url or None,
            encrypted_password=self._cipher.encrypt(password),
        )
        result = await self._store.insert_secret(row)
        logger.debug(
            "Vault save: secret=%s type=%s",
            result.get("id") if result else None, row["type"],
        )
        return result

    async def reveal(self, secret: SecretRef) -> str:
        """Decrypt the password of a secret (record or id).

        Raises:
            SecretNotFoundError: If an id is given and the store lacks it.
            MalformedEnvelopeError, AuthenticationError, EncodingError:
                If the stored envelope cannot be decrypted.
        """
        record = await self._resolve(secret)
        plaintext = self._cipher.decrypt(record.envelope)
        logger.debug("Vault reveal: secret=%s", record.id)
        return plaintext

    async def reveal_many(
        self, secrets: Iterable[SecretRecord]
    ) -> list[tuple[SecretRecord, DecryptResult]]:
        """Decrypt several secrets; one bad envelope does not stop the rest.

        Returns:
            ``(record, DecryptResult)`` pairs in input order.
        """
        results: list[tuple[SecretRecord, DecryptResult]] = []
        for record in secrets:
            result = self._cipher.try_decrypt(record.envelope)
            if not result.ok:
                logger.error(
                    "Failed to decrypt secret id=%s: %s",
                    record.id, type(result.error).__name__,
                )
            results.append((record, result))
        return results

    async def credentials_for(self, secret: SecretRef) -> Credentials:
        """Username/password pair for filling a login form."""
        record = await self._resolve(secret)
        try:
            password = self._cipher.decrypt(record.envelope)
        except CipherError as err:
            logger.error(
                "Autofill decryption failed for secret id=%s: %s",
                record.id, type(err).__name__,
            )
            raise
        return Credentials(record.username, password)

    async def suggest(
        self,
        hostname: Optional[str] = None,
        *,
        page_url: Optional[str] = None,
        query: Optional[str] = None,
    ) -> MatchResult:
        """Fetch all secrets and group them by relevance to a page.

        Args:
            hostname: Hostname of the page being viewed.
            page_url: Full page URL; its hostname is used when ``hostname``
                is not given.
            query: Optional search text; only secrets matching it are
                grouped.
        """
        if not hostname and page_url:
            hostname = hostname_from_url(page_url)
        records = filter_by_query(query, await self.secrets())
        return self._matcher.match(hostname, records)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        store: CredentialStore,
        config: Optional[VaultConfig] = None,
    ) -> "SecretVault":
        """Build a vault and load the master key now.

        A missing or malformed key is a startup failure rather than a
        failure of the first save or reveal.

        Args:
            store: Credential store collaborator.
            config: Vault settings; read from the environment when omitted.

        Raises:
            ConfigurationError: If the configuration is missing or invalid.
        """
        if config is None:
            config = VaultConfig.from_env()
        keys = KeyManager(config)
        vault = cls(
            store,
            key_manager=keys,
            matcher=get_matcher(config.match_strategy),
        )
        keys.get_master_key()
        logger.info(
            "Vault opened (key=%s, match_strategy=%s)",
            keys.fingerprint, config.match_strategy,
        )
        return vault
