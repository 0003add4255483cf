"""Credential Vault — Envelope encryption of stored secrets.

Security Note (Threat Model):
    Secrets are decrypted in process memory when revealed, copied or
    autofilled. A memory dump of the process could expose the master key
    and any plaintext currently in use.
    This is an accepted limitation; mitigation requires HSM/secure
    enclave integration which is out of scope.
"""

from .config import VaultConfig, generate_master_key
from .keys import KeyManager, MasterKey
from .crypto import Envelope, EnvelopeCipher, DecryptResult
from .secret_vault import SecretVault, CredentialStore

__all__ = [
    "VaultConfig",
    "generate_master_key",
    "KeyManager",
    "MasterKey",
    "Envelope",
    "EnvelopeCipher",
    "DecryptResult",
    "SecretVault",
    "CredentialStore",
]
