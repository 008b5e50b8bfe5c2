"""Chain RPC access.

TransactionBuilder only needs four read calls from a node, described by the
ChainClient protocol. JsonRpcClient implements them over plain JSON-RPC with
httpx, so every request can carry its own timeout.
"""

import itertools
import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from chainswap.config import Settings, get_settings
from chainswap.errors import BuildTimeoutError, ConfigError, RpcError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class ChainClient(Protocol):
    """Read-only chain access used while building transactions.

    Every method takes an optional timeout in seconds and raises
    BuildTimeoutError when it is exceeded.
    """

    def pending_nonce(self, address: str, timeout: Optional[float] = None) -> int:
        """Transaction count of address, including pending transactions."""
        ...

    def suggested_gas_price(self, timeout: Optional[float] = None) -> int:
        """Node's suggested legacy gas price in wei."""
        ...

    def estimate_gas(self, call: dict, timeout: Optional[float] = None) -> int:
        """Gas needed to execute call; fails if the call would revert."""
        ...

    def get_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Optional[dict]:
        """Receipt of a mined transaction, or None while pending."""
        ...


def _to_quantity(value: int) -> str:
    return hex(int(value))


def _from_quantity(value: Any, method: str) -> int:
    try:
        return int(value, 16) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise RpcError(f"non-numeric result {value!r}", operation=method, cause=e) from e


class JsonRpcClient:
    """JSON-RPC chain client over httpx.

    Args:
        rpc_url: Node endpoint
        timeout: Default per-request timeout in seconds
        client: Optional preconfigured httpx.Client (shared pools, test transports)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

    @classmethod
    def from_settings(cls, chain: str, settings: Optional[Settings] = None) -> "JsonRpcClient":
        """Create a client for a chain ("ETH"/"A" or "BSC"/"B") from settings.

        Args:
            chain: Chain name
            settings: Settings to read; defaults to get_settings()

        Raises:
            ConfigError: If no RPC URL is configured for the chain
        """
        settings = settings or get_settings()
        rpc_url = settings.get_rpc_url(chain)
        if not rpc_url:
            raise ConfigError(f"no RPC URL configured for chain {chain!r}", operation="from_settings")
        logger.debug(f"RPC client for {chain}: {rpc_url} (timeout {settings.rpc_timeout}s)")
        return cls(rpc_url, timeout=settings.rpc_timeout)

    def _request(self, method: str, params: list, timeout: Optional[float] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        timeout = self.timeout if timeout is None else timeout

        try:
            response = self._client.post(self.rpc_url, json=payload, timeout=timeout)
        except httpx.TimeoutException as e:
            logger.warning(f"RPC {method} timed out after {timeout}s")
            raise BuildTimeoutError(
                f"no response within {timeout}s", operation=method, cause=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"RPC {method} transport error: {e}")
            raise RpcError("transport error", operation=method, cause=e) from e

        if response.status_code != 200:
            raise RpcError(f"HTTP {response.status_code}", operation=method)

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError("response is not JSON", operation=method, cause=e) from e

        if not isinstance(data, dict):
            raise RpcError("response is not a JSON-RPC object", operation=method)

        if data.get("error"):
            error = data["error"]
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise RpcError(
                error.get("message") or "unknown error",
                operation=method,
                code=error.get("code"),
                data=error.get("data"),
            )

        if "result" not in data:
            raise RpcError("response has no result", operation=method)

        return data["result"]

    def pending_nonce(self, address: str, timeout: Optional[float] = None) -> int:
        result = self._request("eth_getTransactionCount", [address, "pending"], timeout)
        return _from_quantity(result, "eth_getTransactionCount")

    def suggested_gas_price(self, timeout: Optional[float] = None) -> int:
        result = self._request("eth_gasPrice", [], timeout)
        return _from_quantity(result, "eth_gasPrice")

    def estimate_gas(self, call: dict, timeout: Optional[float] = None) -> int:
        params = {}
        for key, value in call.items():
            if value is None:
                continue
            if key in ("gas", "gasPrice", "value"):
                params[key] = _to_quantity(value)
            elif key == "data" and isinstance(value, (bytes, bytearray)):
                params[key] = "0x" + bytes(value).hex()
            else:
                params[key] = value
        result = self._request("eth_estimateGas", [params], timeout)
        return _from_quantity(result, "eth_estimateGas")

    def get_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Optional[dict]:
        return self._request("eth_getTransactionReceipt", [tx_hash], timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "JsonRpcClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
