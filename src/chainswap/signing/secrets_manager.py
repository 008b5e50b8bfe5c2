"""AWS Secrets Manager credential source.

The whole credential set is stored as a single JSON secret string:

    {
        "hmac_key": "...",
        "admin_api_key": "...",
        "admin_secret_key": "...",
        "eth_private_key": "0x...",
        "bsc_private_key": "0x..."
    }

Setup:
1. Create the secret in AWS Secrets Manager
2. Set KEY_TYPE=aws_private_key, AWS_SECRET_NAME and AWS_REGION
3. Configure AWS credentials (IAM role, access keys, etc.)

Secrets are fetched on every resolve() call; there is no cache and no retry,
including botocore's own retry policy.
"""

import json
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError
from pydantic import ValidationError

from chainswap.errors import BuildTimeoutError, SecretFetchError, SecretFormatError
from chainswap.signing.base import (
    CredentialSource,
    KeyType,
    RemoteKeyConfig,
    SigningCredentials,
)

logger = logging.getLogger(__name__)


def _client_config(timeout: Optional[float]) -> Config:
    """botocore config with retries disabled and optional timeouts."""
    options = {"retries": {"total_max_attempts": 1}}
    if timeout is not None:
        options["connect_timeout"] = timeout
        options["read_timeout"] = timeout
    return Config(**options)


def get_secret(secret_name: str, region: str, timeout: Optional[float] = None) -> str:
    """Fetch the SecretString of a Secrets Manager entry.

    The request is made once; botocore's own retries are disabled.

    Args:
        secret_name: Name or ARN of the secret
        region: AWS region holding the secret
        timeout: Connect and read timeout in seconds (None = botocore default)

    Returns:
        Secret string

    Raises:
        SecretFetchError: If AWS cannot be reached or refuses the request
        SecretFormatError: If the secret holds binary data instead of a string
        BuildTimeoutError: If AWS does not answer within timeout
    """
    try:
        client = boto3.client(
            "secretsmanager", region_name=region, config=_client_config(timeout)
        )
        response = client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        logger.error(f"Secrets Manager error for {secret_name} in {region}: {error_code}")
        raise SecretFetchError(
            f"could not fetch secret {secret_name!r} ({error_code})",
            operation="get_secret",
            cause=e,
        ) from e
    except (ConnectTimeoutError, ReadTimeoutError) as e:
        logger.warning(f"Secrets Manager timed out for {secret_name} in {region} after {timeout}s")
        raise BuildTimeoutError(
            f"no response for secret {secret_name!r} within {timeout}s",
            operation="get_secret",
            cause=e,
        ) from e
    except BotoCoreError as e:
        logger.error(f"Secrets Manager unreachable for {secret_name} in {region}: {e}")
        raise SecretFetchError(
            f"could not fetch secret {secret_name!r}",
            operation="get_secret",
            cause=e,
        ) from e

    secret = response.get("SecretString")
    if secret is None:
        raise SecretFormatError(
            f"secret {secret_name!r} has no SecretString",
            operation="get_secret",
        )
    return secret


def parse_credentials(secret: str) -> SigningCredentials:
    """Parse a JSON credentials document.

    Raises:
        SecretFormatError: If the document is not JSON or misses fields
    """
    try:
        document = json.loads(secret)
    except json.JSONDecodeError as e:
        # Never include the document itself in the error
        raise SecretFormatError(
            f"secret is not valid JSON (line {e.lineno}, column {e.colno})",
            operation="parse_credentials",
        ) from None

    if not isinstance(document, dict):
        raise SecretFormatError(
            f"secret must be a JSON object, got {type(document).__name__}",
            operation="parse_credentials",
        )

    try:
        return SigningCredentials.model_validate(document)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise SecretFormatError(
            f"secret is missing or has invalid fields: {', '.join(fields)}",
            operation="parse_credentials",
        ) from None


class SecretsManagerCredentialSource(CredentialSource):
    """Credential source backed by an AWS Secrets Manager entry."""

    def __init__(self, config: RemoteKeyConfig):
        super().__init__(KeyType.AWS)
        self.secret_name = config.secret_name
        self.region = config.region

    def resolve(self, timeout: Optional[float] = None) -> SigningCredentials:
        """Fetch and parse the credentials secret."""
        secret = get_secret(self.secret_name, self.region, timeout=timeout)
        credentials = parse_credentials(secret)
        logger.info(f"Loaded signing credentials from secret {self.secret_name} ({self.region})")
        return credentials
