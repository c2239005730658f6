"""Data models for package-history extraction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OperationKind(Enum):
    """Package operation recorded for an event."""

    INSTALL = "install"
    UPGRADE = "upgrade"
    REMOVE = "remove"
    PURGE = "purge"

    @property
    def installs(self) -> bool:
        """True if the operation leaves the (new) version installed."""
        return self in (OperationKind.INSTALL, OperationKind.UPGRADE)


# Log label -> operation kind
OPERATION_LABELS = {
    "Install": OperationKind.INSTALL,
    "Upgrade": OperationKind.UPGRADE,
    "Remove": OperationKind.REMOVE,
    "Purge": OperationKind.PURGE,
}


class ExtractionState(Enum):
    """States of one extraction run.

    SEEKING    Skipping transactions already recorded in the store.
    RECORDING  Past the resume point, persisting every new transaction.
    CAPPED     Batch limit reached; input consumption stopped.
    DONE       End of input reached.
    FAILED     Parse or store failure aborted the run.
    """

    SEEKING = "seeking"
    RECORDING = "recording"
    CAPPED = "capped"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Event:
    id: int
    timestamp: str  # YYYY-MM-DDTHH:MM:SSZ
    epoch: int


@dataclass(frozen=True)
class PackageEntry:
    """One ``name (version)`` entry of an operation list."""

    package: str
    version: Optional[str] = None  # absent for bare remove/purge entries
    old_version: Optional[str] = None  # Upgrade only: the replaced version


@dataclass(frozen=True)
class PackageOperation:
    event_id: int
    package: str
    version: Optional[str]
    kind: OperationKind
    old_version: Optional[str] = None


@dataclass
class Transaction:
    """Parse-time grouping of one Start-Date block; never persisted as a unit."""

    timestamp: str
    line_number: int = 0
    operations: list[tuple[OperationKind, PackageEntry]] = field(default_factory=list)

    def add(self, kind: OperationKind, entries: list[PackageEntry]) -> None:
        self.operations.extend((kind, entry) for entry in entries)


@dataclass(frozen=True)
class SoftwareIdentity:
    name: str
    package: str
    version: str
    installed: bool


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""

    state: ExtractionState
    last_event_id: int  # eid of the resume point (0 on a fresh store)
    events_added: int = 0
    operations_added: int = 0
    transactions_skipped: int = 0
    event_ids: list[int] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state in (ExtractionState.DONE, ExtractionState.CAPPED)
