import copy
import uuid
import pytest

from keystone_vault.vault import EnvelopeCipher, KeyManager


KEY_HEX = "00112233445566778899aabbccddeeff" * 2


class MemoryStore:
    """In-memory stand-in for the credential store."""

    def __init__(self, rows=None):
        self.rows = [dict(r) for r in rows or []]
        self.inserted = []

    async def fetch_secrets(self):
        return copy.deepcopy(self.rows)

    async def fetch_secret(self, secret_id):
        for row in self.rows:
            if row["id"] == secret_id:
                return dict(row)
        return None

    async def insert_secret(self, row):
        stored = {"id": uuid.uuid4().hex, **row}
        self.rows.append(stored)
        self.inserted.append(stored)
        return stored


@pytest.fixture
def key_hex():
    return KEY_HEX


@pytest.fixture
def key_manager():
    return KeyManager(KEY_HEX)


@pytest.fixture
def cipher(key_manager):
    return EnvelopeCipher(key_manager)


@pytest.fixture
def store():
    return MemoryStore()
