"""Contract ABI descriptors and call encoding."""

from chainswap.abi.descriptor import (
    BSC_SWAP_AGENT,
    ERC20,
    ETH_SWAP_AGENT,
    AbiLookupError,
    ContractAbi,
    load_abi,
)
from chainswap.abi.encoder import (
    decode_call,
    encode_call,
    encode_create_pair,
    encode_fill_a_to_b,
    encode_fill_b_to_a,
    encode_transfer,
)

__all__ = [
    "BSC_SWAP_AGENT",
    "ERC20",
    "ETH_SWAP_AGENT",
    "AbiLookupError",
    "ContractAbi",
    "load_abi",
    "decode_call",
    "encode_call",
    "encode_create_pair",
    "encode_fill_a_to_b",
    "encode_fill_b_to_a",
    "encode_transfer",
]
