"""
Logging configuration for sw-collector.

Human-readable diagnostics go to stderr through a rich handler; structured
records can additionally go to a log file and to syslog. ``--quiet`` only
removes the stderr handler.
"""

import logging
import logging.handlers
import os
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

SYSLOG_IDENT = "sw-collector"


@dataclass(frozen=True)
class LogSettings:
    """Explicit logging configuration handed to ``setup_logging``.

    Attributes:
        debug_level: Numeric verbosity (<=0 warnings, 1 info, >=2 debug)
        quiet: Suppress human-readable output on stderr
        log_file: Optional file path receiving structured records
        syslog: Also send records to the local syslog daemon
    """

    debug_level: int = 1
    quiet: bool = False
    log_file: Optional[str] = None
    syslog: bool = False

    @property
    def level(self) -> int:
        """Map the numeric debug level onto a ``logging`` level."""
        if self.debug_level <= 0:
            return logging.WARNING
        if self.debug_level == 1:
            return logging.INFO
        return logging.DEBUG


def _syslog_address() -> str:
    for candidate in ("/dev/log", "/var/run/syslog"):
        if os.path.exists(candidate):
            return candidate
    return "localhost"


def setup_logging(settings: LogSettings) -> logging.Logger:
    """
    Configure the ``sw_collector`` logger from explicit settings.

    Args:
        settings: Logging configuration object

    Returns:
        Configured logger instance for sw_collector
    """
    level = settings.level
    handlers: list[logging.Handler] = []

    if not settings.quiet:
        handlers.append(
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=False,
                markup=False,
                show_time=False,
                show_path=settings.debug_level >= 3,
            )
        )

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    if settings.syslog:
        syslog_handler = logging.handlers.SysLogHandler(address=_syslog_address())
        syslog_handler.ident = f"{SYSLOG_IDENT}: "
        syslog_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(syslog_handler)

    logger = logging.getLogger("sw_collector")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if not handlers:
        handlers.append(logging.NullHandler())
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'sw_collector.history.engine')
              If None, returns the root sw_collector logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("sw_collector")

    if not name.startswith("sw_collector"):
        name = f"sw_collector.{name}"

    return logging.getLogger(name)
