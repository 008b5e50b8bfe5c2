"""Application configuration using pydantic-settings.

Chain A is the ERC20 side of the bridge (Ethereum), chain B the BEP20 side
(BSC). Signing credentials come either from the LOCAL_* variables below or
from an AWS Secrets Manager entry, selected by KEY_TYPE.
"""

import logging
from functools import lru_cache
from typing import Optional

from eth_typing import ChecksumAddress
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainswap.errors import ConfigError
from chainswap.signing.base import (
    KeyManagerConfig,
    KeyType,
    LocalKeyConfig,
    RemoteKeyConfig,
)
from chainswap.utils.hexutil import parse_address

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Key manager
    # ======================
    key_type: str = Field(
        default=KeyType.LOCAL.value,
        description="Credential source: local_private_key or aws_private_key",
    )
    aws_secret_name: str = Field(default="", description="Secrets Manager entry holding the key document")
    aws_region: str = Field(default="", description="AWS region of the secret")
    local_hmac_key: str = Field(default="", description="HMAC key (local key type)")
    local_admin_api_key: str = Field(default="", description="Admin API key (local key type)")
    local_admin_secret_key: str = Field(default="", description="Admin secret key (local key type)")
    local_eth_private_key: str = Field(default="", description="Chain A signing key (local key type)")
    local_bsc_private_key: str = Field(default="", description="Chain B signing key (local key type)")

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Chain A RPC URL")
    bsc_rpc_url: str = Field(default="https://bsc-dataseed.binance.org", description="Chain B RPC URL")
    rpc_timeout: float = Field(default=30.0, description="Per-request RPC timeout in seconds")

    # ======================
    # Swap agent contracts
    # ======================
    eth_swap_agent_addr: Optional[str] = Field(default=None, description="Swap agent on chain A")
    bsc_swap_agent_addr: Optional[str] = Field(default=None, description="Swap agent on chain B")

    def key_manager_config(self) -> KeyManagerConfig:
        """Build the credential source selected by key_type.

        Raises:
            ConfigError: If key_type is unknown or the remote source is incomplete
        """
        try:
            key_type = KeyType(self.key_type.lower())
        except ValueError as e:
            raise ConfigError(
                f"unknown key type {self.key_type!r}", operation="key_manager_config", cause=e
            ) from e

        if key_type == KeyType.AWS:
            if not self.aws_secret_name or not self.aws_region:
                raise ConfigError(
                    "AWS_SECRET_NAME and AWS_REGION are required for aws_private_key",
                    operation="key_manager_config",
                )
            return RemoteKeyConfig(secret_name=self.aws_secret_name, region=self.aws_region)

        return LocalKeyConfig(
            hmac_key=self.local_hmac_key,
            admin_api_key=self.local_admin_api_key,
            admin_secret_key=self.local_admin_secret_key,
            chain_a_private_key=self.local_eth_private_key,
            chain_b_private_key=self.local_bsc_private_key,
        )

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a chain ("ETH"/"A" or "BSC"/"B")."""
        rpc_map = {
            "ETH": self.eth_rpc_url,
            "A": self.eth_rpc_url,
            "BSC": self.bsc_rpc_url,
            "B": self.bsc_rpc_url,
        }
        return rpc_map.get(chain.upper(), "")

    def get_swap_agent_address(self, chain: str) -> ChecksumAddress:
        """Get the checksummed swap agent address for a chain ("ETH"/"A" or "BSC"/"B").

        Raises:
            ConfigError: If the chain is unknown or its agent address is unset or malformed
        """
        agent_map = {
            "ETH": self.eth_swap_agent_addr,
            "A": self.eth_swap_agent_addr,
            "BSC": self.bsc_swap_agent_addr,
            "B": self.bsc_swap_agent_addr,
        }
        chain_key = chain.upper()
        if chain_key not in agent_map:
            raise ConfigError(f"unknown chain {chain!r}", operation="get_swap_agent_address")

        address = agent_map[chain_key]
        if not address:
            raise ConfigError(
                f"no swap agent address configured for {chain_key}",
                operation="get_swap_agent_address",
            )
        try:
            return parse_address(address)
        except ValueError as e:
            raise ConfigError(
                f"invalid swap agent address for {chain_key}: {address!r}",
                operation="get_swap_agent_address",
                cause=e,
            ) from e

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "key_type": self.key_type,
            "aws_secret_name": self.aws_secret_name or "(not set)",
            "aws_region": self.aws_region or "(not set)",
            "local_keys": {
                "hmac_key": "***" if self.local_hmac_key else "(not set)",
                "admin_api_key": "***" if self.local_admin_api_key else "(not set)",
                "admin_secret_key": "***" if self.local_admin_secret_key else "(not set)",
                "eth_private_key": "***" if self.local_eth_private_key else "(not set)",
                "bsc_private_key": "***" if self.local_bsc_private_key else "(not set)",
            },
            "chains": {
                "ETH": {"rpc": self.eth_rpc_url, "swap_agent": self.eth_swap_agent_addr or "(not set)"},
                "BSC": {"rpc": self.bsc_rpc_url, "swap_agent": self.bsc_swap_agent_addr or "(not set)"},
            },
            "rpc_timeout": self.rpc_timeout,
        }


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging the same way for every entry point."""
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Environment: {settings.environment}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
