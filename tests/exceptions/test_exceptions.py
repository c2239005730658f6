"""Tests for the sw-collector error taxonomy."""

from pathlib import Path

import pytest

from sw_collector.exceptions import (
    ConfigurationError,
    ErrorCode,
    ExtractionError,
    InvalidConfigError,
    LogUnavailable,
    MalformedLine,
    MissingSettingError,
    RemoteCallFailure,
    StoreFailure,
    StoreUnavailable,
    SwCollectorError,
    TimestampParseError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error,parent",
        [
            (MissingSettingError("database"), ConfigurationError),
            (InvalidConfigError("count", -1, "must be non-negative"), ConfigurationError),
            (LogUnavailable(Path("/x"), "No such file"), ExtractionError),
            (MalformedLine(3, "junk", "no separator"), ExtractionError),
            (TimestampParseError("tomorrow"), ExtractionError),
            (StoreUnavailable("connect", "locked"), StoreFailure),
            (RemoteCallFailure("swid", "HTTP 500", 500), SwCollectorError),
        ],
    )
    def test_parents(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, SwCollectorError)


class TestCodes:
    def test_codes_by_family(self):
        assert MissingSettingError("x").code is ErrorCode.SW101
        assert LogUnavailable(None, "unset").code is ErrorCode.SW200
        assert MalformedLine(1, "", "r").code is ErrorCode.SW201
        assert TimestampParseError("").code is ErrorCode.SW202
        assert StoreFailure("op", "r").code is ErrorCode.SW300
        assert StoreUnavailable("op", "r").code is ErrorCode.SW301
        assert RemoteCallFailure("c", "r").code is ErrorCode.SW400


class TestRendering:
    def test_str_includes_details(self):
        error = StoreFailure("record_transaction", "disk I/O error")
        assert str(error) == (
            "store operation 'record_transaction' failed "
            "(operation=record_transaction, reason=disk I/O error)"
        )

    def test_message_only(self):
        assert str(SwCollectorError("plain")) == "plain"

    def test_to_json(self):
        payload = MalformedLine(12, "garbage", "terminator symbol ':' not found").to_json()
        assert payload["error_code"] == "SW201"
        assert payload["error_type"] == "MalformedLine"
        assert payload["details"]["reason"] == "terminator symbol ':' not found"

    def test_timestamp_line_number_detail(self):
        error = TimestampParseError(" soon ", line_number=4)
        assert error.details == {"value": "soon", "line_number": "4"}
