"""Call data encoding for the bridge contracts.

Encoding is pure and deterministic: the same arguments always produce the
same bytes, which callers rely on for hash-based deduplication. Any mismatch
between the arguments and the registered function signature raises
AbiEncodeError. That is a programming or deployment defect, never a data
error, and is not worth retrying.
"""

import logging
from typing import Any, Sequence, Union

from eth_abi import encode
from eth_abi.exceptions import DecodingError, EncodingError
from web3.exceptions import Web3Exception

from chainswap.abi.descriptor import AbiLookupError, ContractAbi, input_types
from chainswap.errors import AbiEncodeError
from chainswap.utils.hexutil import hex_to_bytes, parse_address, to_bytes32

logger = logging.getLogger(__name__)

# Function names fixed by the deployed swap agent and token contracts
FILL_ETH_TO_BSC = "fillETH2BSCSwap"    # on chain B's agent
FILL_BSC_TO_ETH = "fillBSC2ETHSwap"    # on chain A's agent
CREATE_SWAP_PAIR = "createSwapPair"    # on chain B's agent
ERC20_TRANSFER = "transfer"            # on any ERC20/BEP20 token


def encode_call(abi: ContractAbi, function_name: str, args: Sequence[Any]) -> bytes:
    """ABI-encode a call: 4-byte selector followed by the encoded arguments.

    Args:
        abi: Contract descriptor holding the function
        function_name: Exact function name
        args: Arguments in signature order, already in eth-abi types

    Returns:
        Encoded call data

    Raises:
        AbiEncodeError: Missing/overloaded function, wrong arity or bad value
    """
    operation = f"encode {function_name}"
    try:
        fn = abi.function(function_name)
        selector = abi.selector(function_name)
    except AbiLookupError as e:
        raise AbiEncodeError(str(e), operation=operation, cause=e) from e

    types = input_types(fn)
    if len(args) != len(types):
        raise AbiEncodeError(
            f"{function_name}({','.join(types)}) takes {len(types)} arguments, got {len(args)}",
            operation=operation,
        )

    try:
        return selector + encode(types, list(args))
    except (EncodingError, TypeError, ValueError) as e:
        raise AbiEncodeError(
            f"arguments do not match {function_name}({','.join(types)})",
            operation=operation,
            cause=e,
        ) from e


def _address_arg(value: Union[str, bytes], field: str, operation: str) -> str:
    try:
        return parse_address(value)
    except ValueError as e:
        raise AbiEncodeError(f"{field} is not an address", operation=operation, cause=e) from e


def _hash_arg(value: Union[str, bytes], field: str, operation: str) -> bytes:
    try:
        return to_bytes32(value)
    except (TypeError, ValueError) as e:
        raise AbiEncodeError(f"{field} is not a 32-byte hash", operation=operation, cause=e) from e


def _fill_swap(
    abi: ContractAbi,
    function_name: str,
    source_tx_hash: Union[str, bytes],
    source_token_address: Union[str, bytes],
    recipient: Union[str, bytes],
    amount: int,
) -> bytes:
    operation = f"encode {function_name}"
    return encode_call(abi, function_name, [
        _hash_arg(source_tx_hash, "source_tx_hash", operation),
        _address_arg(source_token_address, "source_token_address", operation),
        _address_arg(recipient, "recipient", operation),
        amount,
    ])


def encode_fill_a_to_b(
    abi: ContractAbi,
    source_tx_hash: Union[str, bytes],
    source_token_address: Union[str, bytes],
    recipient: Union[str, bytes],
    amount: int,
) -> bytes:
    """Encode fillETH2BSCSwap: pay out on chain B for a deposit seen on chain A.

    Args:
        abi: Chain B swap agent descriptor
        source_tx_hash: Deposit transaction hash on chain A
        source_token_address: ERC20 token address on chain A
        recipient: Payout address on chain B
        amount: Amount in token base units
    """
    return _fill_swap(abi, FILL_ETH_TO_BSC, source_tx_hash, source_token_address, recipient, amount)


def encode_fill_b_to_a(
    abi: ContractAbi,
    source_tx_hash: Union[str, bytes],
    source_token_address: Union[str, bytes],
    recipient: Union[str, bytes],
    amount: int,
) -> bytes:
    """Encode fillBSC2ETHSwap: pay out on chain A for a deposit seen on chain B.

    The token argument is the chain A (ERC20) address of the pair.
    """
    return _fill_swap(abi, FILL_BSC_TO_ETH, source_tx_hash, source_token_address, recipient, amount)


def encode_create_pair(
    abi: ContractAbi,
    registration_tx_hash: Union[str, bytes],
    source_token_address: Union[str, bytes],
    name: str,
    symbol: str,
    decimals: int,
) -> bytes:
    """Encode createSwapPair: deploy the chain B counterpart of a registered token."""
    operation = f"encode {CREATE_SWAP_PAIR}"
    return encode_call(abi, CREATE_SWAP_PAIR, [
        _hash_arg(registration_tx_hash, "registration_tx_hash", operation),
        _address_arg(source_token_address, "source_token_address", operation),
        name,
        symbol,
        decimals,
    ])


def encode_transfer(abi: ContractAbi, recipient: Union[str, bytes], amount: int) -> bytes:
    """Encode an ERC20 transfer (refunds and direct payouts)."""
    operation = f"encode {ERC20_TRANSFER}"
    return encode_call(abi, ERC20_TRANSFER, [
        _address_arg(recipient, "recipient", operation),
        amount,
    ])


def decode_call(abi: ContractAbi, data: Union[str, bytes]) -> tuple[str, tuple]:
    """Decode call data back into (function_name, args).

    Addresses come back checksummed, hashes as bytes.

    Raises:
        AbiEncodeError: If the selector is unknown or the payload is malformed
    """
    raw = hex_to_bytes(data)
    if len(raw) < 4:
        raise AbiEncodeError("call data shorter than a selector", operation="decode_call")

    try:
        fn, params = abi.contract.decode_function_input(raw)
    except DecodingError as e:
        raise AbiEncodeError(
            f"payload does not decode against {abi}", operation="decode_call", cause=e
        ) from e
    except (Web3Exception, ValueError) as e:
        raise AbiEncodeError(
            f"unknown selector 0x{raw[:4].hex()} for {abi}", operation="decode_call", cause=e
        ) from e
    return fn.fn_name, tuple(params.values())
