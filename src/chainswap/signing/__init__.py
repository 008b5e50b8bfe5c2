"""Signing credential resolution.

Provides:
- LocalCredentialSource: Plaintext credentials from configuration
- SecretsManagerCredentialSource: JSON credentials document in AWS Secrets Manager
- build_keys: secp256k1 key pair from a hex private key
"""

from chainswap.signing.base import (
    CredentialSource,
    KeyManagerConfig,
    KeyType,
    LocalKeyConfig,
    RemoteKeyConfig,
    SigningCredentials,
)
from chainswap.signing.factory import (
    get_credential_source,
    parse_key_manager_config,
    resolve_credentials,
)
from chainswap.signing.keys import build_keys, key_address
from chainswap.signing.local import LocalCredentialSource

__all__ = [
    "CredentialSource",
    "KeyManagerConfig",
    "KeyType",
    "LocalKeyConfig",
    "RemoteKeyConfig",
    "SigningCredentials",
    "LocalCredentialSource",
    "get_credential_source",
    "parse_key_manager_config",
    "resolve_credentials",
    "build_keys",
    "key_address",
]
