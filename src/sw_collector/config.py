"""Configuration loading and management for sw-collector.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in CollectorConfig)
    2. System config (/etc/sw-collector.toml)
    3. User config (~/.sw-collector.toml)
    4. Local config (./sw-collector.toml)
    5. Explicit config file (--config)
    6. Environment variables (SW_COLLECTOR_* prefix)
    7. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(database="sqlite:////var/lib/sw-collector/collector.db")
    >>> config.database
    'sqlite:////var/lib/sw-collector/collector.db'
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError, MissingSettingError
from .logging_config import LogSettings

SYSTEM_CONFIG = Path("/etc/sw-collector.toml")
CONFIG_NAME = "sw-collector.toml"
ENV_PREFIX = "SW_COLLECTOR_"


def default_product() -> str:
    """Describe the running OS as ``<name>_<version>-<arch>``."""
    try:
        release = platform.freedesktop_os_release()
        name = release.get("NAME", platform.system())
        version = release.get("VERSION_ID", "")
    except OSError:
        name, version = platform.system(), platform.release()
    product = f"{name} {version}".strip().replace(" ", "_")
    machine = platform.machine()
    return f"{product}-{machine}" if machine else product


@dataclass(frozen=True)
class CollectorConfig:
    """Settings consumed once at startup.

    Attributes:
        Sources:
            history_path: Package-manager history log (apt history.log)
            database: Event store URI, e.g. ``sqlite:///var/lib/sw-collector/collector.db``
            load: Feature modules to activate

        Extraction:
            count: Maximum new events per run (0 = unlimited)

        Logging:
            debug_level: Numeric verbosity level
            quiet: Suppress human-readable stderr output
            log_file: Optional structured log file
            syslog: Also log to syslog

        Software identities:
            tag_creator: Regid of the entity naming the identities
            product: OS product string embedded in identity names

        Remote:
            rest_api_uri: Base URI of the verification service
            rest_api_timeout: Request timeout in seconds
    """

    # Sources
    history_path: Optional[str] = None
    database: Optional[str] = None
    load: list[str] = field(default_factory=lambda: ["sqlite"])

    # Extraction
    count: int = 0

    # Logging
    debug_level: int = 1
    quiet: bool = False
    log_file: Optional[str] = None
    syslog: bool = False

    # Software identities
    tag_creator: str = "strongswan.org"
    product: str = field(default_factory=default_product)

    # Remote
    rest_api_uri: Optional[str] = None
    rest_api_timeout: int = 120

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.count < 0:
            raise InvalidConfigError("count", self.count, "must be non-negative")
        if self.rest_api_timeout < 1:
            raise InvalidConfigError("rest_api_timeout", self.rest_api_timeout, "must be at least 1")
        if not self.tag_creator:
            raise InvalidConfigError("tag_creator", self.tag_creator, "must not be empty")
        if not isinstance(self.load, list):
            raise InvalidConfigError("load", self.load, "must be a list of feature names")

    @property
    def log_settings(self) -> LogSettings:
        """Logging configuration object derived from these settings."""
        return LogSettings(
            debug_level=self.debug_level,
            quiet=self.quiet,
            log_file=self.log_file,
            syslog=self.syslog,
        )

    def require(self, key: str) -> str:
        """Return a string setting or raise if it is unset."""
        value = getattr(self, key)
        if not value:
            raise MissingSettingError(key)
        return value


def load_config(config_file: Optional[Path] = None, **overrides) -> CollectorConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored

    Returns:
        Validated CollectorConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    for candidate in (SYSTEM_CONFIG, Path.home() / f".{CONFIG_NAME}", Path.cwd() / CONFIG_NAME):
        if candidate.exists():
            merged.update(_read_config(candidate))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_read_config(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return CollectorConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _read_config(path: Path) -> dict:
    try:
        data = _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
    # Accept both a flat file and a [sw-collector] table
    section = data.get("sw-collector", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid config file '{path}': [sw-collector] must be a table")
    return {k.replace("-", "_"): v for k, v in section.items()}


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SW_COLLECTOR_* environment variables.

    Supported environment variables:
        SW_COLLECTOR_HISTORY_PATH: str
        SW_COLLECTOR_DATABASE: str
        SW_COLLECTOR_LOAD: comma-separated feature names
        SW_COLLECTOR_COUNT: int
        SW_COLLECTOR_DEBUG_LEVEL: int
        SW_COLLECTOR_QUIET: bool (true/false/1/0)
        SW_COLLECTOR_LOG_FILE: str
        SW_COLLECTOR_SYSLOG: bool
        SW_COLLECTOR_TAG_CREATOR: str
        SW_COLLECTOR_PRODUCT: str
        SW_COLLECTOR_REST_API_URI: str
        SW_COLLECTOR_REST_API_TIMEOUT: int

    Returns:
        Dict of field_name -> parsed_value for any SW_COLLECTOR_* vars found.
    """
    type_hints = get_type_hints(CollectorConfig)

    result: dict[str, Any] = {}

    for field_name in CollectorConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        try:
            result[field_name] = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    origin = getattr(type_hint, "__origin__", None)
    if origin is list or type_hint is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    return value


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
