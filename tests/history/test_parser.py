"""Tests for history line parsing."""

import pytest

from sw_collector.exceptions import MalformedLine, TimestampParseError
from sw_collector.history.models import OperationKind, PackageEntry
from sw_collector.history.parser import extract_packages, extract_timestamp, split_label


class TestSplitLabel:
    """Test split_label function."""

    def test_splits_on_first_separator(self):
        label, value = split_label("Commandline: apt-get install foo:amd64")
        assert label == "Commandline"
        assert value == " apt-get install foo:amd64"

    def test_start_date_keeps_time_colons(self):
        label, value = split_label("Start-Date: 2024-01-01  01:00:00")
        assert label == "Start-Date"
        assert value.strip() == "2024-01-01  01:00:00"

    def test_missing_separator_is_malformed(self):
        with pytest.raises(MalformedLine) as exc_info:
            split_label("this line has no separator", line_number=7)
        assert exc_info.value.line_number == 7
        assert "':' not found" in str(exc_info.value)


class TestExtractTimestamp:
    """Test extract_timestamp function."""

    def test_apt_layout(self):
        assert extract_timestamp(" 2024-01-01  01:00:00") == "2024-01-01T01:00:00Z"

    def test_single_space_accepted(self):
        assert extract_timestamp("2016-09-29 18:21:46") == "2016-09-29T18:21:46Z"

    def test_canonical_form_sorts_in_time_order(self):
        earlier = extract_timestamp("2024-01-09  23:59:59")
        later = extract_timestamp("2024-01-10  00:00:00")
        assert earlier < later

    @pytest.mark.parametrize(
        "value",
        ["", "   ", "yesterday", "2024-01-01", "2024-01-01  1:00:00", "2024-13-01  01:00:00",
         "2024-02-30  01:00:00", "2024-01-01  25:00:00"],
    )
    def test_invalid_timestamps(self, value):
        with pytest.raises(TimestampParseError):
            extract_timestamp(value, line_number=3)


class TestExtractPackages:
    """Test extract_packages function."""

    def test_single_install(self):
        entries = extract_packages(" foo (1.0)", OperationKind.INSTALL)
        assert entries == [PackageEntry(package="foo", version="1.0")]

    def test_architecture_dropped_and_automatic_flag_ignored(self):
        entries = extract_packages(
            " libfoo1:amd64 (1.2-3ubuntu1, automatic), foo:amd64 (1.2-3ubuntu1)",
            OperationKind.INSTALL,
        )
        assert entries == [
            PackageEntry(package="libfoo1", version="1.2-3ubuntu1"),
            PackageEntry(package="foo", version="1.2-3ubuntu1"),
        ]

    def test_upgrade_records_old_and_new_version(self):
        entries = extract_packages(" bar:amd64 (2.0, 2.1)", OperationKind.UPGRADE)
        assert entries == [PackageEntry(package="bar", version="2.1", old_version="2.0")]

    def test_upgrade_with_single_version(self):
        entries = extract_packages(" bar (2.1)", OperationKind.UPGRADE)
        assert entries == [PackageEntry(package="bar", version="2.1")]

    def test_epoch_versions_survive(self):
        entries = extract_packages(" vim:amd64 (2:9.0.1378-2)", OperationKind.REMOVE)
        assert entries[0].version == "2:9.0.1378-2"

    def test_bare_name_version_entries(self):
        entries = extract_packages(" foo:1.0 bar:2.0, baz", OperationKind.REMOVE)
        assert entries == [
            PackageEntry(package="foo", version="1.0"),
            PackageEntry(package="bar", version="2.0"),
            PackageEntry(package="baz", version=None),
        ]

    def test_empty_list(self):
        assert extract_packages("   ", OperationKind.PURGE) == []

    def test_unbalanced_parenthesis_is_malformed(self):
        with pytest.raises(MalformedLine):
            extract_packages(" foo:amd64 (1.0, bar (2.0)", OperationKind.INSTALL, line_number=4)

    def test_empty_version_group_is_malformed(self):
        with pytest.raises(MalformedLine):
            extract_packages(" foo:amd64 ()", OperationKind.INSTALL)
