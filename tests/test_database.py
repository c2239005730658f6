"""Tests for the SQLite event store."""

import sqlite3

import pytest

from sw_collector.exceptions import InvalidConfigError, StoreFailure, StoreUnavailable
from sw_collector.history.models import OperationKind, PackageEntry
from sw_collector.persistence.database import SQLiteEventStore, path_from_uri


class TestUri:
    def test_absolute_path(self):
        assert path_from_uri("sqlite:///var/lib/sw-collector/collector.db") == (
            "/var/lib/sw-collector/collector.db"
        )

    def test_memory(self):
        assert path_from_uri("sqlite://:memory:") == ":memory:"

    @pytest.mark.parametrize("uri", ["mysql://host/db", "sqlite://", "/tmp/collector.db"])
    def test_rejected(self, uri):
        with pytest.raises(InvalidConfigError):
            path_from_uri(uri)


class TestSchema:
    def test_creates_tables(self, store):
        tables = store.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()
        table_names = {r["name"] for r in tables}

        assert {"meta", "events", "package_operations", "sw_identities"} <= table_names

    def test_epoch_persists_across_connections(self, tmp_path):
        uri = f"sqlite://{tmp_path / 'collector.db'}"
        with SQLiteEventStore(uri) as db:
            epoch = db.epoch
        with SQLiteEventStore(uri) as db:
            assert db.epoch == epoch
        assert epoch > 0

    def test_creates_parent_directory(self, tmp_path):
        uri = f"sqlite://{tmp_path / 'var' / 'lib' / 'collector.db'}"
        with SQLiteEventStore(uri):
            pass
        assert (tmp_path / "var" / "lib" / "collector.db").exists()

    def test_unopenable_database(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(StoreUnavailable):
            SQLiteEventStore(f"sqlite://{blocker / 'collector.db'}")

    def test_identity_names_may_repeat(self, store):
        rows = [("same-name", "foo", "2-1", 1), ("same-name", "foo-2", "1", 1)]
        store.conn.executemany(
            "INSERT INTO sw_identities (name, package, version, installed) VALUES (?, ?, ?, ?)",
            rows,
        )
        with pytest.raises(sqlite3.IntegrityError):
            store.conn.execute(
                "INSERT INTO sw_identities (name, package, version) VALUES ('other', 'foo', '2-1')"
            )

    def test_upgrades_version_1_identity_table(self, tmp_path, namer):
        path = tmp_path / "collector.db"
        conn = sqlite3.connect(path)
        conn.executescript(
            """
            CREATE TABLE meta (key TEXT PRIMARY KEY, value TEXT NOT NULL);
            INSERT INTO meta VALUES ('schema_version', '1'), ('epoch', '4242');
            CREATE TABLE sw_identities (
                id        INTEGER PRIMARY KEY AUTOINCREMENT,
                name      TEXT    NOT NULL UNIQUE,
                package   TEXT    NOT NULL,
                version   TEXT    NOT NULL,
                installed INTEGER NOT NULL DEFAULT 1
            );
            """
        )
        conn.commit()
        conn.close()

        with SQLiteEventStore(f"sqlite://{path}") as db:
            assert db.epoch == 4242
            version = db.conn.execute(
                "SELECT value FROM meta WHERE key = 'schema_version'"
            ).fetchone()["value"]
            assert version == "2"

            db.record_transaction(
                "2024-01-01T00:00:00Z",
                [
                    (OperationKind.INSTALL, PackageEntry("foo", "2-1")),
                    (OperationKind.INSTALL, PackageEntry("foo-2", "1")),
                ],
            )
            assert db.merge_installed(namer) == 2


class TestEvents:
    def test_fresh_store_has_no_last_event(self, store):
        eid, epoch, timestamp = store.get_last_event()
        assert eid == 0
        assert epoch == store.epoch
        assert timestamp is None

    def test_record_transaction(self, store):
        event = store.record_transaction(
            "2024-01-01T01:00:00Z",
            [
                (OperationKind.INSTALL, PackageEntry("foo", "1.0")),
                (OperationKind.UPGRADE, PackageEntry("bar", "2.1", old_version="2.0")),
            ],
        )

        assert store.get_last_event() == (event.id, store.epoch, "2024-01-01T01:00:00Z")
        ops = store.get_operations(event.id)
        assert [(o.package, o.version, o.old_version, o.kind) for o in ops] == [
            ("foo", "1.0", None, OperationKind.INSTALL),
            ("bar", "2.1", "2.0", OperationKind.UPGRADE),
        ]

    def test_ids_strictly_increase(self, store):
        ids = [store.record_transaction(f"2024-01-0{i}T00:00:00Z", []).id for i in range(1, 4)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_count_events_at(self, store):
        store.record_transaction("2024-01-01T00:00:00Z", [])
        store.record_transaction("2024-01-01T00:00:00Z", [])
        store.record_transaction("2024-01-02T00:00:00Z", [])

        assert store.count_events_at("2024-01-01T00:00:00Z") == 2
        assert store.count_events_at("2024-01-03T00:00:00Z") == 0

    def test_transaction_is_atomic(self, store):
        store.conn.execute(
            """
            CREATE TRIGGER reject_bad BEFORE INSERT ON package_operations
            WHEN NEW.package = 'bad'
            BEGIN SELECT RAISE(ABORT, 'rejected'); END
            """
        )

        with pytest.raises(StoreFailure) as exc_info:
            store.record_transaction(
                "2024-01-01T00:00:00Z",
                [
                    (OperationKind.INSTALL, PackageEntry("good", "1")),
                    (OperationKind.INSTALL, PackageEntry("bad", "1")),
                ],
            )

        assert exc_info.value.operation == "record_transaction"
        assert store.get_events() == []
        assert store.get_operations() == []
        assert not store.conn.in_transaction

    def test_operations_reference_events(self, store):
        with pytest.raises(sqlite3.IntegrityError):
            store.conn.execute(
                "INSERT INTO package_operations (event_id, package, kind) VALUES (999, 'x', 'install')"
            )


class TestIdentities:
    def test_merge_replaces_view(self, store, namer):
        store.record_transaction("2024-01-01T00:00:00Z", [(OperationKind.INSTALL, PackageEntry("foo", "1.0"))])
        assert store.merge_installed(namer) == 1

        store.record_transaction("2024-01-02T00:00:00Z", [(OperationKind.PURGE, PackageEntry("foo", "1.0"))])
        assert store.merge_installed(namer) == 1

        assert list(store.iter_identities()) == [
            ("strongswan.org__Debian_12-x86_64-foo-1.0", "foo", "1.0", False)
        ]

    def test_merge_is_idempotent(self, store, namer):
        store.record_transaction("2024-01-01T00:00:00Z", [(OperationKind.INSTALL, PackageEntry("foo", "1.0"))])
        store.merge_installed(namer)
        first = list(store.iter_identities())
        store.merge_installed(namer)
        assert list(store.iter_identities()) == first

    def test_colliding_names_are_distinct_identities(self, store, namer):
        # foo 2-1 and foo-2 1 render the same name
        assert namer("foo", "2-1") == namer("foo-2", "1")
        store.record_transaction(
            "2024-01-01T00:00:00Z",
            [
                (OperationKind.INSTALL, PackageEntry("foo", "2-1")),
                (OperationKind.INSTALL, PackageEntry("foo-2", "1")),
            ],
        )

        assert store.merge_installed(namer) == 2
        assert store.merge_installed(namer) == 2

        assert [row[1:] for row in store.iter_identities()] == [
            ("foo", "2-1", True),
            ("foo-2", "1", True),
        ]

    def test_enumeration_on_closed_store(self, tmp_path):
        db = SQLiteEventStore(f"sqlite://{tmp_path / 'collector.db'}")
        db.close()
        with pytest.raises(StoreUnavailable):
            db.iter_identities()
