"""Parse apt history lines into labels, timestamps and package entries.

A history transaction looks like::

    Start-Date: 2024-01-01  01:00:00
    Commandline: apt-get install foo
    Install: foo:amd64 (1.0), libfoo:amd64 (1.0, automatic)
    Upgrade: bar:amd64 (2.0, 2.1)
    End-Date: 2024-01-01  01:00:05
"""

import re
from datetime import datetime
from typing import Optional

from ..exceptions import MalformedLine, TimestampParseError
from .models import OperationKind, PackageEntry

SEPARATOR = ":"

# Labels driving extraction; every other label is ignored
START_DATE = "Start-Date"
END_DATE = "End-Date"

# 2024-01-01  01:00:00 (apt separates date and time by two spaces)
_TIMESTAMP_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})\s+(\d{2}):(\d{2}):(\d{2})$")

# name[:arch] followed by an optional parenthesised version group
_ENTRY_RE = re.compile(r"([^\s,()]+)(?:\s*\(([^()]*)\))?")
_GAP_RE = re.compile(r"^[\s,]*$")

# Flags apt appends inside the version group
_VERSION_FLAGS = frozenset({"automatic"})


def split_label(line: str, line_number: int = 0) -> tuple[str, str]:
    """Split a line on the first separator into ``(label, remainder)``."""
    label, sep, remainder = line.partition(SEPARATOR)
    if not sep:
        raise MalformedLine(line_number, line, f"terminator symbol '{SEPARATOR}' not found")
    return label.strip(), remainder


def extract_timestamp(value: str, line_number: int = 0) -> str:
    """Convert a Start-Date value into ``YYYY-MM-DDTHH:MM:SSZ``.

    The canonical form sorts lexicographically in time order, which is what
    the resume check relies on.
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise TimestampParseError(value, line_number)
    try:
        stamp = datetime(*(int(part) for part in match.groups()))
    except ValueError:
        raise TimestampParseError(value, line_number)
    return stamp.strftime("%Y-%m-%dT%H:%M:%SZ")


def extract_packages(value: str, kind: OperationKind, line_number: int = 0) -> list[PackageEntry]:
    """Parse an operation list into package entries.

    Accepted entries: ``name[:arch] (version[, automatic])``,
    ``name[:arch] (old, new)`` for upgrades, bare ``name:version`` and bare
    ``name``. Anything else in the list makes the line malformed.
    """
    entries: list[PackageEntry] = []
    pos = 0
    for match in _ENTRY_RE.finditer(value):
        if not _GAP_RE.match(value[pos:match.start()]):
            raise MalformedLine(line_number, value, f"unexpected text in {kind.value} list")
        pos = match.end()
        entries.append(_make_entry(match.group(1), match.group(2), kind, value, line_number))
    if not _GAP_RE.match(value[pos:]):
        raise MalformedLine(line_number, value, f"unexpected text in {kind.value} list")
    return entries


def _make_entry(
    token: str, group: Optional[str], kind: OperationKind, value: str, line_number: int
) -> PackageEntry:
    if group is None:
        # name:version or bare name
        package, sep, version = token.partition(SEPARATOR)
        if not package:
            raise MalformedLine(line_number, value, f"empty package name in {kind.value} list")
        return PackageEntry(package=package, version=version if sep and version else None)

    # Drop the architecture qualifier
    package = token.split(SEPARATOR, 1)[0]
    if not package:
        raise MalformedLine(line_number, value, f"empty package name in {kind.value} list")

    versions = [v.strip() for v in group.split(",")]
    versions = [v for v in versions if v and v not in _VERSION_FLAGS]
    if not versions:
        raise MalformedLine(line_number, value, f"missing version for '{package}'")

    if kind is OperationKind.UPGRADE and len(versions) >= 2:
        return PackageEntry(package=package, version=versions[1], old_version=versions[0])
    return PackageEntry(package=package, version=versions[0])
