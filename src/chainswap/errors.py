"""Error taxonomy for swap transaction construction.

Every error carries the name of the operation that failed and the
underlying exception, so callers can log and alert without inspecting
tracebacks. Nothing in this package substitutes a default value for a
failed parse, estimate or fetch.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for all chainswap errors.

    Attributes:
        operation: Name of the operation that failed (e.g. "estimate_gas")
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation:
            message = f"{self.operation}: {message}"
        if self.cause is not None:
            message = f"{message} ({self.cause})"
        return message


class ConfigError(SwapError, ValueError):
    """Raised when static configuration is malformed."""
    pass


class ResolveError(SwapError):
    """Raised when signing credentials cannot be resolved."""
    pass


class SecretFetchError(ResolveError):
    """Raised when the secrets backend cannot be reached or refuses access."""
    pass


class SecretFormatError(ResolveError):
    """Raised when a fetched secret is not a valid credentials document."""
    pass


class AbiEncodeError(SwapError):
    """Raised when arguments do not match the ABI function signature."""
    pass


class GasEstimationError(SwapError):
    """Raised when the simulated call fails, i.e. the transaction would revert."""
    pass


class SigningError(SwapError):
    """Raised when a private key is malformed or signing fails."""
    pass


class ParseError(SwapError):
    """Raised when a receipt does not have the expected shape."""
    pass


class RpcError(SwapError):
    """Raised when the chain node returns an error or an unusable response."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
        code: Optional[int] = None,
        data: Optional[object] = None,
    ):
        super().__init__(message, operation=operation, cause=cause)
        self.code = code
        self.data = data


class BuildTimeoutError(SwapError, TimeoutError):
    """Raised when a network call exceeds the caller's deadline.

    The build is abandoned as a whole; no transaction has been signed.
    """
    pass
