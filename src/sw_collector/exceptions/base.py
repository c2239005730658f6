"""Base exception and error codes for sw-collector.

Error Code Convention:
    SW1xx - Configuration errors
    SW2xx - History log errors
    SW3xx - Store errors
    SW4xx - Remote errors
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Structured error codes for observability and debugging."""

    # Configuration errors (SW1xx)
    SW100 = "SW100"  # Generic configuration problem
    SW101 = "SW101"  # Required setting missing
    SW102 = "SW102"  # Setting has an invalid value

    # History log errors (SW2xx)
    SW200 = "SW200"  # Log file missing or unreadable
    SW201 = "SW201"  # Label separator missing / bad operation list
    SW202 = "SW202"  # Timestamp missing or unparseable

    # Store errors (SW3xx)
    SW300 = "SW300"  # Store operation failed
    SW301 = "SW301"  # Store cannot be opened or enumerated

    # Remote errors (SW4xx)
    SW400 = "SW400"  # Remote call failed


class SwCollectorError(Exception):
    """Base exception for all sw-collector errors."""

    code: ErrorCode = ErrorCode.SW100

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_json(self) -> Dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }
