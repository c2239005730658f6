"""Shared test fixtures for sw-collector tests."""

import pytest

from sw_collector.persistence.database import SQLiteEventStore
from sw_collector.persistence.identity import make_namer


def make_transaction(start, end=None, **operations):
    """Render one apt history transaction.

    ``operations`` maps a label (Install, Upgrade, Remove, Purge, Commandline)
    to its raw value.
    """
    lines = [f"Start-Date: {start}"]
    for label, value in operations.items():
        lines.append(f"{label}: {value}")
    lines.append(f"End-Date: {end or start}")
    return "\n".join(lines) + "\n\n"


@pytest.fixture
def write_log(tmp_path):
    """Write history text to a log file and return its path."""

    def _write(*transactions, name="history.log"):
        path = tmp_path / name
        path.write_text("".join(transactions), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite event store in the test directory."""
    db = SQLiteEventStore(f"sqlite://{tmp_path / 'collector.db'}")
    yield db
    db.close()


@pytest.fixture
def namer():
    return make_namer("strongswan.org", "Debian_12-x86_64")


@pytest.fixture
def five_transactions():
    """Five consecutive transactions, one Install each."""
    return [
        make_transaction(f"2024-01-0{day}  10:00:00", Install=f"pkg{day}:amd64 (1.{day})")
        for day in range(1, 6)
    ]


@pytest.fixture
def transaction():
    """The ``make_transaction`` helper, for building logs inside tests."""
    return make_transaction
