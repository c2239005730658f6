"""Read-only listing of the installed software-identity view."""

import logging
from typing import Iterator, Optional

from .history.models import SoftwareIdentity
from .logging_config import get_logger
from .persistence.base import EventStore


class InventoryLister:
    """Enumerate software identities and keep running counts.

    ``identities()`` can be consumed once per call; the counts reflect the
    rows yielded so far.
    """

    def __init__(self, store: EventStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or get_logger(__name__)
        self.total = 0
        self.installed = 0

    @property
    def deleted(self) -> int:
        return self.total - self.installed

    def identities(self) -> Iterator[SoftwareIdentity]:
        """Start the enumeration; raises ``StoreUnavailable`` if it cannot begin."""
        self.total = 0
        self.installed = 0
        rows = self.store.iter_identities()
        return self._iterate(rows)

    def _iterate(self, rows) -> Iterator[SoftwareIdentity]:
        for name, package, version, installed in rows:
            self.total += 1
            if installed:
                self.installed += 1
            yield SoftwareIdentity(name=name, package=package, version=version, installed=installed)
        self.logger.info(
            "retrieved %d software identities with %d installed and %d deleted",
            self.total,
            self.installed,
            self.deleted,
        )
