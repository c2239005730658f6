"""Event store contract and the SQLite backend."""

from .base import EventStore
from .database import SQLiteEventStore
from .identity import fold_operations, make_namer

__all__ = ["EventStore", "SQLiteEventStore", "fold_operations", "make_namer"]
