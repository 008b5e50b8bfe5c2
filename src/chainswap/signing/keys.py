"""Key pair construction from hex private keys."""

import logging
from typing import Union

from eth_keys import keys
from eth_typing import ChecksumAddress

from chainswap.errors import SigningError
from chainswap.utils.hexutil import strip_hex_prefix

logger = logging.getLogger(__name__)


def build_keys(private_key_hex: str) -> tuple[keys.PrivateKey, keys.PublicKey]:
    """Build a secp256k1 key pair from a hex private key.

    "0xabc..." and "abc..." give the same key pair.

    Args:
        private_key_hex: 32-byte private key as hex

    Returns:
        (PrivateKey, PublicKey)

    Raises:
        SigningError: If the key is not a valid secp256k1 private key
    """
    if not isinstance(private_key_hex, str):
        raise SigningError("private key must be a hex string", operation="build_keys")

    digits = strip_hex_prefix(private_key_hex.strip())
    try:
        raw = bytes.fromhex(digits)
        private_key = keys.PrivateKey(raw)
    except Exception as e:
        # The key material must not reach logs or error messages
        raise SigningError(
            f"invalid private key ({type(e).__name__})", operation="build_keys"
        ) from None

    return private_key, private_key.public_key


def key_address(private_key: Union[keys.PrivateKey, str]) -> ChecksumAddress:
    """Derive the checksummed sender address of a private key."""
    if isinstance(private_key, str):
        private_key, _ = build_keys(private_key)
    return private_key.public_key.to_checksum_address()
