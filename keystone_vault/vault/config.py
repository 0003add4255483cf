"""
Vault Configuration — Master key loading and validated settings.

Reads settings from environment variables:
    VAULT_MASTER_KEY = <hex-encoded 32-byte key, 64 characters>
    VAULT_MATCH_STRATEGY = substring | hostname  (optional)

Security Note:
    Never log key material. Only log key fingerprints.
"""
import os
import re
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

logger = logging.getLogger("keystone.vault")

MASTER_KEY_ENV = "VAULT_MASTER_KEY"
MATCH_STRATEGY_ENV = "VAULT_MATCH_STRATEGY"

KEY_LENGTH = 32  # AES-256
MATCH_STRATEGIES = ("substring", "hostname")

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]*")


def is_hex(value: str) -> bool:
    """Return True if value is an even-length string of hex digits only.

    ``bytes.fromhex`` tolerates whitespace between byte pairs; stored
    values must not carry any, so they are checked here first.
    """
    return len(value) % 2 == 0 and _HEX_PATTERN.fullmatch(value) is not None


def decode_master_key(key_hex: Optional[str]) -> bytes:
    """Decode a hex master key string into raw key bytes.

    Args:
        key_hex: Hex-encoded key, exactly 64 characters.

    Returns:
        32 raw key bytes.

    Raises:
        ConfigurationError: If the key is absent, not hex, or not 32 bytes.
    """
    if not key_hex:
        raise ConfigurationError(
            f"{MASTER_KEY_ENV} is not defined. "
            f"Set {MASTER_KEY_ENV}=<64 hex characters>"
        )
    key_hex = key_hex.strip()
    if not is_hex(key_hex):
        raise ConfigurationError(
            f"{MASTER_KEY_ENV} must be a hex string"
        )
    key_bytes = bytes.fromhex(key_hex)
    if len(key_bytes) != KEY_LENGTH:
        raise ConfigurationError(
            f"{MASTER_KEY_ENV} must decode to exactly {KEY_LENGTH} bytes, "
            f"got {len(key_bytes)}"
        )
    return key_bytes


def load_master_key_hex() -> Optional[str]:
    """Read the hex master key from the environment, or None if unset."""
    return os.environ.get(MASTER_KEY_ENV)


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return it as lowercase hex.

    This is a utility for operators to provision new vault instances.

    Returns:
        64-character hex string.
    """
    return secrets.token_bytes(KEY_LENGTH).hex()


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    master_key: str = Field(repr=False)
    match_strategy: str = Field(default="substring")

    @field_validator("master_key")
    @classmethod
    def validate_master_key(cls, v: str) -> str:
        """Ensure the key is 64 hex characters."""
        v = v.strip()
        if not is_hex(v) or len(v) != KEY_LENGTH * 2:
            raise ValueError(
                f"master_key must be {KEY_LENGTH * 2} hex characters"
            )
        return v

    @field_validator("match_strategy")
    @classmethod
    def validate_match_strategy(cls, v: str) -> str:
        """Validate the domain matching strategy is supported."""
        v = v.lower()
        if v not in MATCH_STRATEGIES:
            raise ValueError(f"Unsupported match strategy: {v}")
        return v

    @property
    def key_bytes(self) -> bytes:
        return bytes.fromhex(self.master_key)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.

        Raises:
            ConfigurationError: If a variable is missing or invalid.
        """
        master_key = load_master_key_hex()
        if not master_key:
            raise ConfigurationError(f"{MASTER_KEY_ENV} is not defined")
        strategy = os.environ.get(MATCH_STRATEGY_ENV, "substring")
        try:
            config = cls(master_key=master_key, match_strategy=strategy)
        except ValidationError as err:
            fields = ", ".join(
                str(e["loc"][0]) for e in err.errors() if e.get("loc")
            )
            # ValidationError messages echo input values, key material included.
            raise ConfigurationError(
                f"Invalid vault configuration: {fields}"
            ) from None
        logger.debug(
            "Vault configuration loaded (match_strategy=%s)",
            config.match_strategy,
        )
        return config
