"""Local credential source.

Copies plaintext credentials straight from configuration. Suitable for
development and for deployments where the environment itself is the
secret store.

WARNING: Keys configured this way live in environment variables or .env
files. Use the AWS Secrets Manager source for production funds.
"""

import logging
from typing import Optional

from chainswap.signing.base import (
    CredentialSource,
    KeyType,
    LocalKeyConfig,
    SigningCredentials,
)

logger = logging.getLogger(__name__)


class LocalCredentialSource(CredentialSource):
    """Credential source backed by LocalKeyConfig."""

    def __init__(self, config: LocalKeyConfig):
        super().__init__(KeyType.LOCAL)
        self._config = config

    def resolve(self, timeout: Optional[float] = None) -> SigningCredentials:
        """Return the configured credentials unchanged. No I/O, so timeout is unused."""
        config = self._config
        credentials = SigningCredentials(
            hmac_key=config.hmac_key,
            admin_api_key=config.admin_api_key,
            admin_secret_key=config.admin_secret_key,
            chain_a_private_key=config.chain_a_private_key,
            chain_b_private_key=config.chain_b_private_key,
        )

        if not config.chain_a_private_key.get_secret_value():
            logger.warning("Local chain A private key is empty")
        if not config.chain_b_private_key.get_secret_value():
            logger.warning("Local chain B private key is empty")

        logger.info("Loaded signing credentials from local configuration")
        return credentials
