"""Configuration exceptions: missing or invalid settings."""

from typing import Any

from .base import ErrorCode, SwCollectorError


class ConfigurationError(SwCollectorError):
    """Base class for configuration-related errors."""

    code = ErrorCode.SW100


class MissingSettingError(ConfigurationError):
    """Raised when a required setting is not configured."""

    code = ErrorCode.SW101

    def __init__(self, key: str):
        super().__init__(f"sw-collector.{key} not set", details={"key": key})
        self.key = key


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    code = ErrorCode.SW102

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
