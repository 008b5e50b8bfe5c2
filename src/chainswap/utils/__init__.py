"""Utility modules."""

from chainswap.utils.locks import signing_key_lock, SigningKeyLock, LockTimeoutError

__all__ = ["signing_key_lock", "SigningKeyLock", "LockTimeoutError"]
