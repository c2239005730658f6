"""History log exceptions: unreadable files and grammar violations."""

from pathlib import Path
from typing import Optional

from .base import ErrorCode, SwCollectorError


class ExtractionError(SwCollectorError):
    """Base class for errors raised while extracting the history log."""

    code = ErrorCode.SW200


class LogUnavailable(ExtractionError):
    """Raised when the history log cannot be opened or mapped."""

    code = ErrorCode.SW200

    def __init__(self, path: Optional[Path], reason: str):
        super().__init__(
            f"opening '{path}' failed: {reason}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class MalformedLine(ExtractionError):
    """Raised when a log line violates the label/value grammar."""

    code = ErrorCode.SW201

    def __init__(self, line_number: int, line: str, reason: str):
        super().__init__(
            f"malformed history line {line_number}: {reason}",
            details={"line": line[:80], "reason": reason},
        )
        self.line_number = line_number
        self.line = line
        self.reason = reason


class TimestampParseError(ExtractionError):
    """Raised when a Start-Date value is missing or not a valid timestamp."""

    code = ErrorCode.SW202

    def __init__(self, value: str, line_number: int = 0):
        details = {"value": value.strip()}
        if line_number:
            details["line_number"] = str(line_number)
        super().__init__("unable to parse Start-Date timestamp", details=details)
        self.value = value
        self.line_number = line_number
