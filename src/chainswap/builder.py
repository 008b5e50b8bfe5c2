"""Transaction building and signing.

Both build operations follow the same sequence:
1. Derive the sender from the private key
2. Read the sender's pending nonce
3. Read the suggested gas price
4. Simulate the call to estimate the gas limit (fails if it would revert)
5. Assemble the legacy transaction
6. Sign it without replay protection (Homestead rules, v = 27/28)

The nonce is a snapshot, not a reservation. Two builds for the same key
running concurrently can produce colliding nonces; callers must serialize
builds per key (see chainswap.utils.locks). Broadcasting is left to the
caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, Union

from eth_account import Account
from eth_keys import keys
from eth_typing import ChecksumAddress

from chainswap.errors import (
    BuildTimeoutError,
    ConfigError,
    GasEstimationError,
    RpcError,
    SigningError,
    SwapError,
)
from chainswap.rpc import ChainClient
from chainswap.signing.keys import build_keys
from chainswap.utils.hexutil import parse_address

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SignedTransaction:
    """A signed legacy transaction ready for broadcast.

    Attributes:
        nonce: Sender nonce
        to: Recipient (contract or account)
        value: Wei transferred
        gas_price: Gas price in wei
        gas_limit: Estimated gas limit
        data: Call data (empty for value transfers)
        v: Signature recovery value (27 or 28)
        r: Signature r
        s: Signature s
        sender: Address derived from the signing key
        raw_transaction: RLP-encoded signed transaction
        hash: Transaction hash
    """
    nonce: int
    to: ChecksumAddress
    value: int
    gas_price: int
    gas_limit: int
    data: bytes
    v: int
    r: int
    s: int
    sender: ChecksumAddress
    raw_transaction: bytes
    hash: bytes

    @property
    def tx_hash(self) -> str:
        """Transaction hash as 0x-prefixed hex."""
        return "0x" + self.hash.hex()

    @property
    def raw_hex(self) -> str:
        """Raw transaction as 0x-prefixed hex, as eth_sendRawTransaction expects."""
        return "0x" + self.raw_transaction.hex()


class _Deadline:
    """Total time budget for one build."""

    def __init__(self, timeout: Optional[float]):
        self.timeout = timeout
        self._expires = None if timeout is None else time.monotonic() + timeout

    def remaining(self, operation: str) -> Optional[float]:
        if self._expires is None:
            return None
        left = self._expires - time.monotonic()
        if left <= 0:
            raise BuildTimeoutError(
                f"deadline of {self.timeout}s exceeded", operation=operation
            )
        return left


class TransactionBuilder:
    """Builds signed transactions from live chain state.

    Args:
        client: Chain access for nonce, gas price and gas estimation
    """

    def __init__(self, client: ChainClient):
        self.client = client

    def build_contract_call(
        self,
        contract: str,
        payload: bytes,
        private_key: Union[keys.PrivateKey, str],
        timeout: Optional[float] = None,
    ) -> SignedTransaction:
        """Build and sign a zero-value call to a contract.

        Args:
            contract: Contract address
            payload: Encoded call data (see chainswap.abi)
            private_key: Signing key (PrivateKey from build_keys, or hex)
            timeout: Total deadline in seconds for all network calls

        Returns:
            SignedTransaction

        Raises:
            GasEstimationError: If the simulated call fails
            SigningError: If the key is malformed
            RpcError: If nonce or gas price cannot be read
            BuildTimeoutError: If the deadline is exceeded
        """
        return self._build(
            "build_contract_call", contract, 0, bytes(payload), private_key, timeout
        )

    def build_value_transfer(
        self,
        contract: str,
        value: int,
        private_key: Union[keys.PrivateKey, str],
        timeout: Optional[float] = None,
    ) -> SignedTransaction:
        """Build and sign a plain native-coin transfer.

        Args:
            contract: Recipient address
            value: Amount in wei
            private_key: Signing key (PrivateKey from build_keys, or hex)
            timeout: Total deadline in seconds for all network calls

        Raises:
            Same as build_contract_call
        """
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigError(
                f"value must be a non-negative integer, got {value!r}",
                operation="build_value_transfer",
            )
        return self._build(
            "build_value_transfer", contract, value, b"", private_key, timeout
        )

    def _account(self, private_key: Union[keys.PrivateKey, str]):
        if isinstance(private_key, str):
            private_key, _ = build_keys(private_key)
        try:
            return Account.from_key(private_key)
        except Exception as e:
            raise SigningError(
                f"invalid private key ({type(e).__name__})", operation="derive_sender"
            ) from None

    def _query(self, operation: str, deadline: _Deadline, call: Callable[[Optional[float]], T]) -> T:
        try:
            return call(deadline.remaining(operation))
        except SwapError:
            raise
        except TimeoutError as e:
            raise BuildTimeoutError("network call timed out", operation=operation, cause=e) from e
        except Exception as e:
            raise RpcError("chain query failed", operation=operation, cause=e) from e

    def _build(
        self,
        operation: str,
        contract: str,
        value: int,
        data: bytes,
        private_key: Union[keys.PrivateKey, str],
        timeout: Optional[float],
    ) -> SignedTransaction:
        deadline = _Deadline(timeout)

        try:
            to = parse_address(contract)
        except ValueError as e:
            raise ConfigError(f"invalid recipient {contract!r}", operation=operation, cause=e) from e

        account = self._account(private_key)
        sender = account.address

        nonce = self._query(
            "pending_nonce", deadline, lambda t: self.client.pending_nonce(sender, timeout=t)
        )
        gas_price = self._query(
            "suggested_gas_price", deadline, lambda t: self.client.suggested_gas_price(timeout=t)
        )

        call = {"from": sender, "to": to, "gasPrice": gas_price, "value": value}
        if data:
            call["data"] = data

        try:
            gas_limit = self.client.estimate_gas(call, timeout=deadline.remaining("estimate_gas"))
        except BuildTimeoutError:
            raise
        except TimeoutError as e:
            raise BuildTimeoutError("network call timed out", operation="estimate_gas", cause=e) from e
        except Exception as e:
            logger.warning(f"Gas estimation failed for {operation} from {sender} to {to}: {e}")
            raise GasEstimationError(
                "failed to estimate gas needed", operation=operation, cause=e
            ) from e

        tx = {
            "nonce": nonce,
            "to": to,
            "value": value,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "data": data,
        }

        try:
            signed = account.sign_transaction(tx)
        except Exception as e:
            raise SigningError(
                f"could not sign transaction ({type(e).__name__})", operation=operation
            ) from None

        logger.debug(
            f"Built {operation} from {sender} to {to}: nonce {nonce}, "
            f"gas {gas_limit} @ {gas_price} wei, value {value}, {len(data)} data bytes"
        )

        return SignedTransaction(
            nonce=nonce,
            to=to,
            value=value,
            gas_price=gas_price,
            gas_limit=gas_limit,
            data=data,
            v=signed.v,
            r=signed.r,
            s=signed.s,
            sender=sender,
            raw_transaction=bytes(signed.raw_transaction),
            hash=bytes(signed.hash),
        )
