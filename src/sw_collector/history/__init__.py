"""History extraction: log source, parser and engine."""

from .engine import ExtractionEngine
from .log_source import LogSource
from .models import (
    Event,
    ExtractionResult,
    ExtractionState,
    OperationKind,
    PackageEntry,
    PackageOperation,
    SoftwareIdentity,
    Transaction,
)
from .parser import extract_packages, extract_timestamp, split_label

__all__ = [
    "Event",
    "ExtractionEngine",
    "ExtractionResult",
    "ExtractionState",
    "LogSource",
    "OperationKind",
    "PackageEntry",
    "PackageOperation",
    "SoftwareIdentity",
    "Transaction",
    "extract_packages",
    "extract_timestamp",
    "split_label",
]
