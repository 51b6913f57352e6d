"""Exception types for the transaction explainer."""


class ExplainerError(Exception):
    """Base class for all explainer errors."""


class InvalidTransactionHash(ExplainerError, ValueError):
    """Raised when a value is not a 0x-prefixed 32-byte hex hash."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid transaction hash: {value!r}")


class AllProvidersUnavailable(ExplainerError):
    """Raised when every candidate RPC endpoint failed for a read.

    Attributes:
        operation: Name of the read that was attempted
        last_error: Error observed on the last candidate
        attempted: Endpoints tried, in order
    """

    def __init__(
        self,
        operation: str,
        last_error: BaseException | None,
        attempted: tuple[str, ...] = (),
    ):
        self.operation = operation
        self.last_error = last_error
        self.attempted = attempted
        super().__init__(
            f"All {len(attempted)} providers failed for {operation}: {last_error}"
        )
