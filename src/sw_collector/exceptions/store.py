"""Store exceptions: failed reads and writes against the event store."""

from .base import ErrorCode, SwCollectorError


class StoreFailure(SwCollectorError):
    """Raised when any event store operation fails."""

    code = ErrorCode.SW300

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"store operation '{operation}' failed",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason


class StoreUnavailable(StoreFailure):
    """Raised when the store cannot be opened or an enumeration cannot begin."""

    code = ErrorCode.SW301
