"""SQLite-backed event store.

Store URIs have the form ``sqlite:///absolute/path/collector.db`` (three
slashes plus the leading slash of the path) or ``sqlite://:memory:``.
"""

import secrets
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import InvalidConfigError, StoreFailure, StoreUnavailable
from ..history.models import Event, OperationKind, PackageEntry, PackageOperation
from ..logging_config import get_logger
from .base import EventStore, IdentityNamer, IdentityRow
from .identity import fold_operations

logger = get_logger(__name__)

SCHEME = "sqlite"

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 2

# Identity names are not unique: package names and versions may both
# contain "-". The (package, version) pair is the key.
_IDENTITIES_DDL = """
    CREATE TABLE IF NOT EXISTS sw_identities (
        id        INTEGER PRIMARY KEY AUTOINCREMENT,
        name      TEXT    NOT NULL,
        package   TEXT    NOT NULL,
        version   TEXT    NOT NULL,
        installed INTEGER NOT NULL DEFAULT 1,
        UNIQUE (package, version)
    );

    CREATE INDEX IF NOT EXISTS idx_identities_name ON sw_identities(name);
"""


def path_from_uri(uri: str) -> str:
    """Extract the database path from a ``sqlite://`` URI."""
    prefix = f"{SCHEME}://"
    if not uri.startswith(prefix) or len(uri) == len(prefix):
        raise InvalidConfigError("database", uri, f"expected {prefix}<path>")
    return uri[len(prefix):]


class SQLiteEventStore(EventStore):
    """Manages the collector database.

    Usage::

        with SQLiteEventStore("sqlite:///var/lib/sw-collector/collector.db") as db:
            eid, epoch, last_time = db.get_last_event()
    """

    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.db_path: str = path_from_uri(uri)
        self._conn: Optional[sqlite3.Connection] = None
        self._epoch: int = 0
        self.connect()

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise StoreUnavailable("connect", "store is closed")
        return self._conn

    @property
    def epoch(self) -> int:
        return self._epoch

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode; transactions are opened explicitly
            conn = sqlite3.connect(self.db_path, isolation_level=None)
            conn.execute("PRAGMA foreign_keys=ON")
            conn.row_factory = sqlite3.Row
            self._conn = conn
            self._migrate()
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise StoreUnavailable("connect", str(e))
        logger.debug("Collector DB connected at %s (epoch %d)", self.db_path, self._epoch)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Cursor]:
        cur = self.conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE")
            yield cur
            cur.execute("COMMIT")
        except sqlite3.Error as e:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise StoreFailure(operation, str(e))
        except BaseException:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise
        finally:
            cur.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create all tables and assign the epoch."""
        c = self.conn
        c.executescript(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS events (
                id        INTEGER PRIMARY KEY AUTOINCREMENT,
                epoch     INTEGER NOT NULL,
                timestamp TEXT    NOT NULL
            );

            CREATE TABLE IF NOT EXISTS package_operations (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                event_id    INTEGER NOT NULL REFERENCES events(id),
                package     TEXT    NOT NULL,
                version     TEXT,
                old_version TEXT,
                kind        TEXT    NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_timestamp ON events(timestamp);
            CREATE INDEX IF NOT EXISTS idx_operations_event ON package_operations(event_id);
            """
        )

        rows = {r["key"]: r["value"] for r in c.execute("SELECT key, value FROM meta")}
        if "schema_version" not in rows:
            epoch = secrets.randbelow(2**31 - 1) + 1
            c.executemany(
                "INSERT INTO meta (key, value) VALUES (?, ?)",
                [("schema_version", str(_SCHEMA_VERSION)), ("epoch", str(epoch))],
            )
            self._epoch = epoch
            logger.info("Initialized collector database with epoch %d", epoch)
        else:
            self._epoch = int(rows["epoch"])
            version = int(rows["schema_version"])
            if version < 2:
                # v1 keyed identities by name; the view is rebuilt on the next merge
                c.execute("DROP TABLE IF EXISTS sw_identities")
            if version < _SCHEMA_VERSION:
                c.execute(
                    "UPDATE meta SET value = ? WHERE key = 'schema_version'",
                    (str(_SCHEMA_VERSION),),
                )
                logger.info("Migrated collector database to schema %d", _SCHEMA_VERSION)

        c.executescript(_IDENTITIES_DDL)

    # ── events ────────────────────────────────────────────────────

    def get_last_event(self) -> tuple[int, int, Optional[str]]:
        try:
            row = self.conn.execute(
                "SELECT id, epoch, timestamp FROM events ORDER BY id DESC LIMIT 1"
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreFailure("get_last_event", str(e))
        if row is None:
            return 0, self._epoch, None
        return int(row["id"]), int(row["epoch"]), row["timestamp"]

    def count_events_at(self, timestamp: str) -> int:
        try:
            row = self.conn.execute(
                "SELECT COUNT(*) AS cnt FROM events WHERE timestamp = ?", (timestamp,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreFailure("count_events_at", str(e))
        return int(row["cnt"])

    def record_transaction(
        self, timestamp: str, operations: list[tuple[OperationKind, PackageEntry]]
    ) -> Event:
        with self._transaction("record_transaction") as cur:
            cur.execute(
                "INSERT INTO events (epoch, timestamp) VALUES (?, ?)",
                (self._epoch, timestamp),
            )
            eid = cur.lastrowid
            assert eid is not None
            if operations:
                cur.executemany(
                    """
                    INSERT INTO package_operations (event_id, package, version, old_version, kind)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (eid, entry.package, entry.version, entry.old_version, kind.value)
                        for kind, entry in operations
                    ],
                )
        return Event(id=eid, timestamp=timestamp, epoch=self._epoch)

    def get_events(self) -> list[Event]:
        try:
            rows = self.conn.execute("SELECT id, epoch, timestamp FROM events ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise StoreFailure("get_events", str(e))
        return [Event(id=r["id"], timestamp=r["timestamp"], epoch=r["epoch"]) for r in rows]

    def get_operations(self, event_id: Optional[int] = None) -> list[PackageOperation]:
        query = """
            SELECT o.event_id, o.package, o.version, o.old_version, o.kind
            FROM package_operations o JOIN events e ON e.id = o.event_id
        """
        params: tuple = ()
        if event_id is not None:
            query += " WHERE o.event_id = ?"
            params = (event_id,)
        query += " ORDER BY e.timestamp, e.id, o.id"
        try:
            rows = self.conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StoreFailure("get_operations", str(e))
        return [
            PackageOperation(
                event_id=r["event_id"],
                package=r["package"],
                version=r["version"],
                kind=OperationKind(r["kind"]),
                old_version=r["old_version"],
            )
            for r in rows
        ]

    # ── installed identities ──────────────────────────────────────

    def merge_installed(self, namer: IdentityNamer) -> int:
        state = fold_operations(self.get_operations())
        rows = [
            (namer(package, version), package, version, int(installed))
            for (package, version), installed in state.items()
        ]
        with self._transaction("merge_installed") as cur:
            cur.execute("DELETE FROM sw_identities")
            if rows:
                cur.executemany(
                    """
                    INSERT INTO sw_identities (name, package, version, installed)
                    VALUES (?, ?, ?, ?)
                    """,
                    rows,
                )
        installed = sum(1 for r in rows if r[3])
        logger.debug("Merged %d software identities (%d installed)", len(rows), installed)
        return len(rows)

    def iter_identities(self) -> Iterator[IdentityRow]:
        try:
            cursor = self.conn.execute(
                "SELECT name, package, version, installed FROM sw_identities ORDER BY package, version"
            )
        except (sqlite3.Error, StoreUnavailable) as e:
            raise StoreUnavailable("iter_identities", str(e))
        return (
            (row["name"], row["package"], row["version"], bool(row["installed"])) for row in cursor
        )


def create_store(uri: str) -> SQLiteEventStore:
    """Store factory registered by the ``sqlite`` feature."""
    return SQLiteEventStore(uri)
