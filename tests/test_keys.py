"""
Tests for master key loading.

Tests cover:
- Key sources (string, callable, VaultConfig, environment)
- Validation of absent, non-hex and wrong-length keys
- Memoization after the first successful import
- Single-flight import under concurrent first callers
"""
import threading
import time
import pytest

from keystone_vault.exceptions import ConfigurationError
from keystone_vault.vault import KeyManager, MasterKey, VaultConfig
from keystone_vault.vault.config import MASTER_KEY_ENV


class TestKeySources:
    """Tests for where the key hex comes from."""

    def test_from_string(self, key_hex):
        """Test a literal hex string."""
        key = KeyManager(key_hex).get_master_key()
        assert isinstance(key, MasterKey)

    def test_from_callable(self, key_hex):
        """Test a loader callable."""
        key = KeyManager(lambda: key_hex).get_master_key()
        assert isinstance(key, MasterKey)

    def test_from_config(self, key_hex):
        """Test a VaultConfig instance."""
        manager = KeyManager(VaultConfig(master_key=key_hex))
        assert manager.get_master_key() is manager.get_master_key()

    def test_from_environment(self, key_hex, monkeypatch):
        """Test the default environment lookup."""
        monkeypatch.setenv(MASTER_KEY_ENV, key_hex)
        assert KeyManager().get_master_key().fingerprint

    def test_unsupported_source(self):
        """Test an unsupported source type is rejected."""
        with pytest.raises(TypeError):
            KeyManager(1234)

    def test_same_key_same_fingerprint(self, key_hex):
        """Test hex case does not change the fingerprint."""
        first = KeyManager(key_hex).get_master_key()
        second = KeyManager(key_hex.upper()).get_master_key()
        assert first.fingerprint == second.fingerprint

    def test_repr_hides_key_material(self, key_hex):
        """Test repr shows the fingerprint, not the key."""
        key = KeyManager(key_hex).get_master_key()
        assert key_hex not in repr(key)
        assert key.fingerprint in repr(key)


class TestKeyValidation:
    """Tests for rejecting unusable key material."""

    def test_missing_environment_variable(self, monkeypatch):
        """Test an unset variable raises ConfigurationError."""
        monkeypatch.delenv(MASTER_KEY_ENV, raising=False)
        with pytest.raises(ConfigurationError):
            KeyManager().get_master_key()

    @pytest.mark.parametrize("value", [
        "",
        None,
        "not-hex" * 9,
        "0" * 63,
        "00" * 16,
        "00" * 33,
        "00 " * 32,
    ])
    def test_invalid_key(self, value):
        """Test empty, non-hex and wrong-length keys."""
        with pytest.raises(ConfigurationError):
            KeyManager(lambda: value).get_master_key()

    def test_failure_is_not_cached(self, key_hex):
        """Test a failed load can succeed on a later call."""
        values = iter([None, key_hex])
        manager = KeyManager(lambda: next(values))
        with pytest.raises(ConfigurationError):
            manager.get_master_key()
        assert not manager.is_loaded
        assert manager.get_master_key() is not None
        assert manager.is_loaded


class TestMemoization:
    """Tests for loading the key once."""

    def test_loader_called_once(self, key_hex):
        """Test repeated calls reuse the first imported key."""
        calls = []

        def loader():
            calls.append(1)
            return key_hex

        manager = KeyManager(loader)
        assert manager.fingerprint is None
        keys = [manager.get_master_key() for _ in range(5)]
        assert len(calls) == 1
        assert all(k is keys[0] for k in keys)
        assert manager.fingerprint == keys[0].fingerprint

    def test_concurrent_first_callers_single_flight(self, key_hex):
        """Test concurrent first callers share one import."""
        calls = []
        workers = 16
        barrier = threading.Barrier(workers)

        def slow_loader():
            calls.append(1)
            time.sleep(0.05)
            return key_hex

        manager = KeyManager(slow_loader)
        results = [None] * workers

        def worker(index):
            barrier.wait()
            results[index] = manager.get_master_key()

        threads = [
            threading.Thread(target=worker, args=(i,)) for i in range(workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)
        assert isinstance(results[0], MasterKey)
