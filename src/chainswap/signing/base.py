"""Base types for signing credential resolution.

Resolution flow:
1. Settings select a credential source (local or AWS Secrets Manager)
2. The source produces one SigningCredentials value
3. The caller holds that value for the process lifetime and passes it to
   whatever needs keys; nothing here keeps a global copy
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr

logger = logging.getLogger(__name__)


class KeyType(str, Enum):
    """Source of signing credentials."""
    LOCAL = "local_private_key"   # Plaintext keys from configuration
    AWS = "aws_private_key"       # JSON document in AWS Secrets Manager


class SigningCredentials(BaseModel):
    """Secrets needed to operate the bridge.

    All fields are SecretStr: repr(), str() and log output show "**********".
    Call get_secret_value() only at the point of use.

    The JSON document stored in Secrets Manager may use either the chain_a/
    chain_b names or the eth_private_key/bsc_private_key names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    hmac_key: SecretStr
    admin_api_key: SecretStr
    admin_secret_key: SecretStr
    chain_a_private_key: SecretStr = Field(
        validation_alias=AliasChoices("chain_a_private_key", "eth_private_key"),
    )
    chain_b_private_key: SecretStr = Field(
        validation_alias=AliasChoices("chain_b_private_key", "bsc_private_key"),
    )

    def private_key_for(self, chain: str) -> str:
        """Return the hex private key for chain "A"/"ETH" or "B"/"BSC"."""
        chain = chain.upper()
        if chain in ("A", "ETH"):
            return self.chain_a_private_key.get_secret_value()
        if chain in ("B", "BSC"):
            return self.chain_b_private_key.get_secret_value()
        raise ValueError(f"Unknown chain: {chain}")


class LocalKeyConfig(BaseModel):
    """Credentials given directly in configuration."""

    model_config = ConfigDict(frozen=True)

    key_type: Literal["local_private_key"] = "local_private_key"
    hmac_key: SecretStr = SecretStr("")
    admin_api_key: SecretStr = SecretStr("")
    admin_secret_key: SecretStr = SecretStr("")
    chain_a_private_key: SecretStr = SecretStr("")
    chain_b_private_key: SecretStr = SecretStr("")


class RemoteKeyConfig(BaseModel):
    """Credentials stored as one JSON secret in AWS Secrets Manager."""

    model_config = ConfigDict(frozen=True)

    key_type: Literal["aws_private_key"] = "aws_private_key"
    secret_name: str = Field(min_length=1)
    region: str = Field(min_length=1)


KeyManagerConfig = Annotated[
    Union[LocalKeyConfig, RemoteKeyConfig],
    Field(discriminator="key_type"),
]


class CredentialSource(ABC):
    """Abstract base class for credential sources.

    Implementations must never log or persist the values they return.
    """

    def __init__(self, key_type: KeyType):
        self.key_type = key_type

    @abstractmethod
    def resolve(self, timeout: Optional[float] = None) -> SigningCredentials:
        """Produce signing credentials.

        Args:
            timeout: Deadline in seconds for any network call (None = backend default)

        Returns:
            SigningCredentials

        Raises:
            ResolveError: If credentials cannot be produced
            BuildTimeoutError: If the backend does not answer within timeout
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.key_type.value})"
