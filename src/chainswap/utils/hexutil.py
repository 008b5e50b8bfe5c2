"""Hex and address helpers shared by config parsing, encoding and receipts."""

import re
from typing import Union

from eth_typing import ChecksumAddress
from eth_utils import to_bytes
from web3 import Web3

_ADDRESS_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x/0X from a hex string."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def parse_address(value: Union[str, bytes]) -> ChecksumAddress:
    """Canonicalize an address to its EIP-55 checksummed form.

    Accepts 20 raw bytes or a 40-digit hex string in any case, with or
    without 0x. Mixed-case strings are not checksum-verified; case is
    ignored.

    Raises:
        ValueError: If the value is not a 20-byte address
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(value)}")
        return Web3.to_checksum_address(bytes(value))

    if not isinstance(value, str):
        raise ValueError(f"address must be a hex string, got {type(value).__name__}")

    digits = strip_hex_prefix(value.strip())
    if not _ADDRESS_RE.match(digits):
        raise ValueError(f"invalid address: {value!r}")
    return Web3.to_checksum_address("0x" + digits.lower())


def to_bytes32(value: Union[str, bytes]) -> bytes:
    """Convert a transaction hash to exactly 32 bytes.

    Raises:
        ValueError: If the value is not 32 bytes long
    """
    if isinstance(value, str):
        digits = strip_hex_prefix(value)
        if not _HEX_RE.match(digits) or len(digits) % 2:
            raise ValueError(f"invalid hex value: {value!r}")
        value = bytes.fromhex(digits)
    raw = bytes(value)
    if len(raw) != 32:
        raise ValueError(f"expected 32 bytes, got {len(raw)}")
    return raw


def hex_to_bytes(value: Union[str, bytes]) -> bytes:
    """Return raw bytes for a hex string (with or without 0x) or bytes-like value."""
    if isinstance(value, str):
        return to_bytes(hexstr=value)
    return bytes(value)
