"""Per-key serialization for transaction building.

Reading the pending nonce and signing are not atomic. Two builds for the
same key running at once can read the same nonce, and the chain will only
accept one of the resulting transactions. Callers that build from several
threads must hold the lock for the signing address around each build (and
its broadcast).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from chainswap.utils.hexutil import parse_address

logger = logging.getLogger(__name__)

# Global lock registry: checksummed address -> threading.Lock
_key_locks: dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def get_key_lock(address: str) -> threading.Lock:
    """Get or create the lock for a signing address.

    Args:
        address: Sender address (any case, with or without 0x)

    Returns:
        threading.Lock shared by every caller using this address
    """
    key = parse_address(address)
    with _registry_lock:
        if key not in _key_locks:
            _key_locks[key] = threading.Lock()
        return _key_locks[key]


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class SigningKeyLock:
    """Context manager for exclusive use of a signing key.

    Example:
        with SigningKeyLock(sender, operation="fill_a_to_b"):
            tx = builder.build_contract_call(agent, payload, key)
            broadcaster.send(tx.raw_transaction)
    """

    def __init__(
        self,
        address: str,
        timeout: Optional[float] = 30.0,
        operation: str = "build_transaction",
    ):
        """Initialize the lock.

        Args:
            address: Sender address
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.address = parse_address(address)
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[threading.Lock] = None
        self._acquired = False

    def __enter__(self) -> "SigningKeyLock":
        """Acquire the lock."""
        self._lock = get_key_lock(self.address)

        if self.timeout is not None:
            self._acquired = self._lock.acquire(timeout=self.timeout)
        else:
            self._acquired = self._lock.acquire()

        if not self._acquired:
            logger.warning(
                f"Lock timeout for key {self.address} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for key {self.address} within {self.timeout}s"
            )

        logger.debug(f"Lock acquired for key {self.address}: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for key {self.address}: {self.operation}")
        return False


@contextmanager
def signing_key_lock(
    address: str,
    timeout: Optional[float] = 30.0,
    operation: str = "build_transaction",
) -> Iterator[None]:
    """Functional form of SigningKeyLock.

    Example:
        with signing_key_lock(sender, operation="refund"):
            tx = builder.build_value_transfer(recipient, amount, key)
    """
    with SigningKeyLock(address, timeout=timeout, operation=operation):
        yield


def clear_key_locks() -> None:
    """Clear all key locks (useful for testing)."""
    with _registry_lock:
        _key_locks.clear()
