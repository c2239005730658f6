"""Exception hierarchy for sw-collector."""

from .base import ErrorCode, SwCollectorError
from .config import ConfigurationError, InvalidConfigError, MissingSettingError
from .extraction import ExtractionError, LogUnavailable, MalformedLine, TimestampParseError
from .remote import RemoteCallFailure
from .store import StoreFailure, StoreUnavailable

__all__ = [
    "ErrorCode",
    "SwCollectorError",
    "ConfigurationError",
    "MissingSettingError",
    "InvalidConfigError",
    "ExtractionError",
    "LogUnavailable",
    "MalformedLine",
    "TimestampParseError",
    "StoreFailure",
    "StoreUnavailable",
    "RemoteCallFailure",
]
