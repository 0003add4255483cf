"""Keystone Vault.

Encrypted credential storage with per-website suggestions.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    ConfigurationError,
    CipherError,
    MalformedEnvelopeError,
    AuthenticationError,
    EncodingError,
    EncryptionError,
    SecretNotFoundError,
    InvalidRecordError,
)
from .data import SecretRecord, SecretType, Credentials
from .matching import (
    DomainMatcher,
    SubstringDomainMatcher,
    HostnameDomainMatcher,
    MatchResult,
    get_matcher,
    hostname_from_url,
    filter_by_query,
)
from .vault import (
    VaultConfig,
    KeyManager,
    EnvelopeCipher,
    SecretVault,
)

__all__ = (
    '__version__',
    'VaultError',
    'ConfigurationError',
    'CipherError',
    'MalformedEnvelopeError',
    'AuthenticationError',
    'EncodingError',
    'EncryptionError',
    'SecretNotFoundError',
    'InvalidRecordError',
    'SecretRecord',
    'SecretType',
    'Credentials',
    'DomainMatcher',
    'SubstringDomainMatcher',
    'HostnameDomainMatcher',
    'MatchResult',
    'get_matcher',
    'hostname_from_url',
    'filter_by_query',
    'VaultConfig',
    'KeyManager',
    'EnvelopeCipher',
    'SecretVault',
)
