"""Credential source factory.

Creates the credential source selected by the key manager configuration
and resolves it. Callers resolve once at startup and pass the resulting
SigningCredentials to whatever needs them.
"""

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from chainswap.errors import ConfigError
from chainswap.signing.base import (
    CredentialSource,
    KeyManagerConfig,
    LocalKeyConfig,
    RemoteKeyConfig,
    SigningCredentials,
)

logger = logging.getLogger(__name__)

_key_manager_adapter = TypeAdapter(KeyManagerConfig)


def parse_key_manager_config(data: Mapping[str, Any]) -> Union[LocalKeyConfig, RemoteKeyConfig]:
    """Validate a raw key manager mapping into its tagged variant.

    Raises:
        ConfigError: If key_type is missing/unknown or required fields are absent
    """
    try:
        return _key_manager_adapter.validate_python(dict(data))
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigError(
            f"invalid key manager config: {', '.join(fields)}",
            operation="parse_key_manager_config",
        ) from None


def get_credential_source(
    config: Union[LocalKeyConfig, RemoteKeyConfig, Mapping[str, Any]],
) -> CredentialSource:
    """Create the credential source for a key manager config.

    Args:
        config: LocalKeyConfig, RemoteKeyConfig or a raw mapping with key_type

    Returns:
        CredentialSource instance
    """
    if not isinstance(config, (LocalKeyConfig, RemoteKeyConfig)):
        config = parse_key_manager_config(config)

    logger.info(f"Initializing {config.key_type} credential source")

    if isinstance(config, RemoteKeyConfig):
        from chainswap.signing.secrets_manager import SecretsManagerCredentialSource
        return SecretsManagerCredentialSource(config)

    from chainswap.signing.local import LocalCredentialSource
    return LocalCredentialSource(config)


def resolve_credentials(
    config: Union[LocalKeyConfig, RemoteKeyConfig, Mapping[str, Any]],
    timeout: Optional[float] = None,
) -> SigningCredentials:
    """Resolve signing credentials from the configured source.

    Each call resolves again; nothing is cached or retried.

    Args:
        config: Key manager config or raw mapping
        timeout: Deadline in seconds for the secret fetch (None = backend default)

    Raises:
        ConfigError: If the config itself is invalid
        SecretFetchError: If the remote secret cannot be fetched
        SecretFormatError: If the remote secret is malformed
        BuildTimeoutError: If the remote secret is not returned within timeout
    """
    return get_credential_source(config).resolve(timeout=timeout)
