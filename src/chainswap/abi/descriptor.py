"""Contract ABI descriptors.

A ContractAbi is a versioned, externally supplied schema. The bridge
contracts are deployed and fixed; this package never generates or edits
their ABI, it only looks entries up by name and fails loudly when an entry
is missing or ambiguous. Decoding goes through a web3 contract class built
from the same entries.
"""

import json
import logging
from functools import lru_cache
from importlib import resources
from typing import Any, Mapping, Optional, Sequence, Union

from eth_utils import collapse_if_tuple, event_abi_to_log_topic, function_abi_to_4byte_selector
from web3 import Web3
from web3.contract import Contract

logger = logging.getLogger(__name__)

# Bundled schemas under chainswap/abi/schemas/
ETH_SWAP_AGENT = "ETHSwapAgent"
BSC_SWAP_AGENT = "BSCSwapAgent"
ERC20 = "ERC20"


class AbiLookupError(LookupError):
    """Raised when a function or event is missing from a descriptor."""
    pass


def input_types(entry: Mapping[str, Any]) -> list[str]:
    """Canonical input types of a function or event, tuples collapsed."""
    return [collapse_if_tuple(dict(p)) for p in entry.get("inputs", [])]


class ContractAbi:
    """A named, versioned contract ABI.

    Attributes:
        name: Contract name (e.g. "BSCSwapAgent")
        version: Schema version string
        entries: Raw ABI entries
    """

    def __init__(self, name: str, version: str, entries: Sequence[Mapping[str, Any]]):
        self.name = name
        self.version = version
        self.entries = [dict(e) for e in entries]
        self._contract: Optional[type[Contract]] = None

    @classmethod
    def from_json(
        cls,
        data: Union[str, bytes, Mapping[str, Any], Sequence[Mapping[str, Any]]],
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> "ContractAbi":
        """Build a descriptor from JSON text or parsed JSON.

        Accepts either a bare ABI list or an artifact object with
        "contractName", "version" and "abi" keys. Explicit name/version
        arguments take priority.
        """
        if isinstance(data, (str, bytes)):
            data = json.loads(data)

        if isinstance(data, Mapping):
            entries = data["abi"]
            name = name or data.get("contractName")
            version = version or data.get("version")
        else:
            entries = data

        return cls(name or "unnamed", version or "unversioned", entries)

    def _lookup(self, entry_type: str, name: str) -> dict:
        matches = [
            e for e in self.entries
            if e.get("type", "function") == entry_type and e.get("name") == name
        ]
        if not matches:
            raise AbiLookupError(f"{entry_type} {name!r} not found in {self}")
        if len(matches) > 1:
            raise AbiLookupError(f"{entry_type} {name!r} is overloaded in {self}")
        return matches[0]

    def function(self, name: str) -> dict:
        """Get the function entry with the given name.

        Raises:
            AbiLookupError: If the function is missing or overloaded
        """
        return self._lookup("function", name)

    def event(self, name: str) -> dict:
        """Get the event entry with the given name.

        Raises:
            AbiLookupError: If the event is missing or overloaded
        """
        return self._lookup("event", name)

    @property
    def contract(self) -> type[Contract]:
        """Address-less web3 contract class for decoding calls and logs."""
        if self._contract is None:
            self._contract = Web3().eth.contract(abi=self.entries)
        return self._contract

    def selector(self, name: str) -> bytes:
        """4-byte selector of a function."""
        return bytes(function_abi_to_4byte_selector(self.function(name)))

    def event_topic(self, name: str) -> bytes:
        """32-byte topic0 of an event."""
        return bytes(event_abi_to_log_topic(self.event(name)))

    def __repr__(self) -> str:
        return f"ContractAbi({self.name}@{self.version})"


@lru_cache(maxsize=None)
def load_abi(name: str) -> ContractAbi:
    """Load a bundled contract schema by name.

    Args:
        name: One of ETH_SWAP_AGENT, BSC_SWAP_AGENT, ERC20

    Raises:
        FileNotFoundError: If no bundled schema has that name
    """
    path = resources.files("chainswap.abi") / "schemas" / f"{name}.json"
    abi = ContractAbi.from_json(path.read_text(encoding="utf-8"))
    logger.debug(f"Loaded ABI {abi}")
    return abi
