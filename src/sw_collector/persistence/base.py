"""Event store contract used by the extraction engine and the lister."""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional

from ..history.models import Event, OperationKind, PackageEntry, PackageOperation

# (name, package, version, installed)
IdentityRow = tuple[str, str, str, bool]

# Builds a software identity name from (package, version)
IdentityNamer = Callable[[str, str], str]


class EventStore(ABC):
    """Durable store of events, package operations and installed identities.

    Implementations must make ``record_transaction`` atomic: either the event
    and all of its operations are stored, or nothing is.
    """

    @property
    @abstractmethod
    def epoch(self) -> int:
        """Random marker assigned when the store was created."""

    @abstractmethod
    def get_last_event(self) -> tuple[int, int, Optional[str]]:
        """Return ``(eid, epoch, timestamp)`` of the newest event.

        ``eid`` is 0 and ``timestamp`` is None on a fresh store.
        """

    @abstractmethod
    def count_events_at(self, timestamp: str) -> int:
        """Number of stored events carrying exactly ``timestamp``."""

    @abstractmethod
    def record_transaction(
        self, timestamp: str, operations: list[tuple[OperationKind, PackageEntry]]
    ) -> Event:
        """Atomically add one event and its package operations."""

    @abstractmethod
    def get_events(self) -> list[Event]:
        """All events in id order."""

    @abstractmethod
    def get_operations(self, event_id: Optional[int] = None) -> list[PackageOperation]:
        """Package operations in event order, optionally for a single event."""

    @abstractmethod
    def merge_installed(self, namer: IdentityNamer) -> int:
        """Recompute the installed-identity view from all operations.

        Returns the number of identity rows in the view.
        """

    @abstractmethod
    def iter_identities(self) -> Iterator[IdentityRow]:
        """Start enumerating the installed-identity view.

        Raises ``StoreUnavailable`` if the enumeration cannot begin.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the store connection."""

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
