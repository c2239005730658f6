"""Remote exceptions: failed calls to the verification service."""

from typing import Optional

from .base import ErrorCode, SwCollectorError


class RemoteCallFailure(SwCollectorError):
    """Raised when the remote collaborator answers with a failed outcome."""

    code = ErrorCode.SW400

    def __init__(self, command: str, reason: str, status_code: Optional[int] = None):
        details = {"command": command, "reason": reason}
        if status_code is not None:
            details["status_code"] = str(status_code)
        super().__init__(f"remote call '{command}' failed", details=details)
        self.command = command
        self.reason = reason
        self.status_code = status_code
