"""Tests for VaultConfig and master key helpers."""
import pytest
from pydantic import ValidationError

from keystone_vault.exceptions import ConfigurationError
from keystone_vault.vault import VaultConfig, generate_master_key
from keystone_vault.vault.config import (
    MASTER_KEY_ENV,
    MATCH_STRATEGY_ENV,
    decode_master_key,
    is_hex,
)


class TestDecodeMasterKey:
    """Tests for decode_master_key."""

    def test_valid_key(self, key_hex):
        """Test 64 hex characters decode to 32 bytes."""
        assert len(decode_master_key(key_hex)) == 32

    def test_surrounding_whitespace_is_ignored(self, key_hex):
        """Test leading and trailing whitespace is stripped."""
        assert decode_master_key(f"  {key_hex}\n") == bytes.fromhex(key_hex)

    def test_error_message_does_not_echo_key(self):
        """Test the error names the problem without the value."""
        bad = "ab" * 31
        with pytest.raises(ConfigurationError) as exc:
            decode_master_key(bad)
        assert bad not in str(exc.value)


class TestIsHex:
    """Tests for the strict hex check."""

    @pytest.mark.parametrize("value", ["", "00", "aBcD", "0123456789abcdef"])
    def test_hex(self, value):
        """Test even-length hex in either case."""
        assert is_hex(value)

    @pytest.mark.parametrize("value", ["0", "0x00", "00 11", "gg", "00\n", "000\n"])
    def test_not_hex(self, value):
        """Test odd length, prefixes and whitespace are rejected."""
        assert not is_hex(value)


class TestGenerateMasterKey:
    """Tests for generate_master_key."""

    def test_generated_key_is_usable(self):
        """Test a generated key decodes to 32 bytes."""
        key = generate_master_key()
        assert len(key) == 64
        assert key == key.lower()
        assert len(decode_master_key(key)) == 32

    def test_generated_keys_differ(self):
        """Test two generated keys are different."""
        assert generate_master_key() != generate_master_key()


class TestVaultConfig:
    """Tests for VaultConfig validation and environment loading."""

    def test_defaults(self, key_hex):
        """Test the default match strategy and decoded key bytes."""
        config = VaultConfig(master_key=key_hex)
        assert config.match_strategy == "substring"
        assert config.key_bytes == bytes.fromhex(key_hex)

    def test_repr_hides_key(self, key_hex):
        """Test repr leaves out the master key."""
        assert key_hex not in repr(VaultConfig(master_key=key_hex))

    def test_invalid_master_key(self):
        """Test a short key fails validation."""
        with pytest.raises(ValidationError):
            VaultConfig(master_key="abc")

    def test_invalid_strategy(self, key_hex):
        """Test an unknown strategy fails validation."""
        with pytest.raises(ValidationError):
            VaultConfig(master_key=key_hex, match_strategy="fuzzy")

    def test_strategy_is_case_insensitive(self, key_hex):
        """Test the strategy name is lowercased."""
        config = VaultConfig(master_key=key_hex, match_strategy="HOSTNAME")
        assert config.match_strategy == "hostname"

    def test_from_env(self, key_hex, monkeypatch):
        """Test both settings are read from the environment."""
        monkeypatch.setenv(MASTER_KEY_ENV, key_hex)
        monkeypatch.setenv(MATCH_STRATEGY_ENV, "hostname")
        config = VaultConfig.from_env()
        assert config.master_key == key_hex
        assert config.match_strategy == "hostname"

    def test_from_env_missing_key(self, monkeypatch):
        """Test an unset key raises ConfigurationError."""
        monkeypatch.delenv(MASTER_KEY_ENV, raising=False)
        with pytest.raises(ConfigurationError):
            VaultConfig.from_env()

    def test_from_env_invalid_key(self, monkeypatch):
        """Test an invalid key names the field without echoing it."""
        monkeypatch.setenv(MASTER_KEY_ENV, "12" * 20)
        monkeypatch.delenv(MATCH_STRATEGY_ENV, raising=False)
        with pytest.raises(ConfigurationError) as exc:
            VaultConfig.from_env()
        assert "master_key" in str(exc.value)
        assert "12" * 20 not in str(exc.value)
