"""Registration receipt parsing.

A createSwapPair transaction on chain B deploys the BEP20 counterpart of a
registered ERC20 token. Its receipt is expected to hold exactly two logs:
an event emitted while the new token is initialized, then SwapPairCreated.
The deployed address is read from the second log.

The fixed position is an assumption about the swap agent's emission order.
If the contract ever emits these events in another order, a two-log receipt
would be misread; confirm against the deployed contract before changing it.
"""

import logging
from typing import Any, Mapping, Union

from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from web3.exceptions import Web3Exception

from chainswap.abi.descriptor import AbiLookupError, ContractAbi
from chainswap.errors import ParseError
from chainswap.utils.hexutil import hex_to_bytes

logger = logging.getLogger(__name__)

SWAP_PAIR_CREATED = "SwapPairCreated"
REGISTRATION_LOG_COUNT = 2
PAIR_CREATED_LOG_INDEX = 1

# SwapPairCreated(ethRegisterTxHash, bep20Addr, erc20Addr, ...): indexed positions
_DEPLOYED_TOKEN_TOPIC = 1
_SOURCE_TOKEN_TOPIC = 2

# Receipt metadata copied onto decoded events; JSON-RPC dicts may omit some
_LOG_METADATA = ("logIndex", "transactionIndex", "transactionHash", "address", "blockHash", "blockNumber")


def _field(log: Any, key: str, default: Any = KeyError) -> Any:
    if isinstance(log, Mapping):
        value = log.get(key, default)
    else:
        value = getattr(log, key, default)
    if value is KeyError:
        raise KeyError(key)
    return value


def _normalize_log(log: Any) -> dict:
    """Shape a JSON-RPC or web3 log entry the way web3's event decoder reads it."""
    normalized = {key: _field(log, key, None) for key in _LOG_METADATA}
    normalized["topics"] = [hex_to_bytes(t) for t in _field(log, "topics")]
    normalized["data"] = hex_to_bytes(_field(log, "data"))
    return normalized


def decode_event_log(abi: ContractAbi, event_name: str, log: Any) -> dict[str, Any]:
    """Decode one log entry against a named event.

    Args:
        abi: Descriptor holding the event
        event_name: Event name
        log: Log mapping (or object) with "topics" and "data"; values may be
            hex strings or bytes

    Returns:
        Mapping of argument name to value. Addresses are checksummed; indexed
        dynamic values are returned as their 32-byte topic hash.

    Raises:
        ParseError: If the log is not an instance of the event
    """
    operation = f"decode {event_name}"
    try:
        abi.event(event_name)
        event = getattr(abi.contract.events, event_name)()
    except (AbiLookupError, Web3Exception) as e:
        raise ParseError(str(e), operation=operation, cause=e) from e

    try:
        entry = _normalize_log(log)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ParseError("log has no usable topics/data", operation=operation, cause=e) from e

    try:
        decoded = event.process_log(entry)
    except (DecodingError, Web3Exception, ValueError) as e:
        raise ParseError(
            f"log does not match {event_name} in {abi}", operation=operation, cause=e
        ) from e

    return dict(decoded["args"])


def extract_deployed_pair_address(
    receipt: Union[Mapping[str, Any], Any],
    abi: ContractAbi,
) -> ChecksumAddress:
    """Return the BEP20 address deployed by a createSwapPair transaction.

    The address is taken by position (second indexed argument), so
    descriptors that rename the event's parameters still parse.

    Args:
        receipt: Transaction receipt (web3 AttributeDict or JSON-RPC dict)
        abi: Chain B swap agent descriptor

    Returns:
        Checksummed address of the deployed token

    Raises:
        ParseError: If the receipt does not have exactly two logs or the
            second is not a SwapPairCreated event
    """
    operation = "extract_deployed_pair_address"
    try:
        logs = list(_field(receipt, "logs"))
    except (AttributeError, KeyError, TypeError) as e:
        raise ParseError("receipt has no logs", operation=operation, cause=e) from e

    if len(logs) != REGISTRATION_LOG_COUNT:
        raise ParseError(
            f"unexpected log count: expected {REGISTRATION_LOG_COUNT}, got {len(logs)}",
            operation=operation,
        )

    event = decode_event_log(abi, SWAP_PAIR_CREATED, logs[PAIR_CREATED_LOG_INDEX])

    indexed = [p for p in abi.event(SWAP_PAIR_CREATED)["inputs"] if p.get("indexed")]
    try:
        deployed_param = indexed[_DEPLOYED_TOKEN_TOPIC]
        source_param = indexed[_SOURCE_TOKEN_TOPIC]
        deployed = event[deployed_param["name"]]
        source = event[source_param["name"]]
    except (IndexError, KeyError) as e:
        raise ParseError(
            f"{SWAP_PAIR_CREATED} in {abi} has no indexed token addresses",
            operation=operation,
            cause=e,
        ) from e
    if deployed_param["type"] != "address":
        raise ParseError(
            f"{SWAP_PAIR_CREATED} in {abi} indexes {deployed_param['type']}, not address",
            operation=operation,
        )

    logger.debug(f"Deployed bep20 contract {deployed} for register erc20 {source}")
    return deployed
