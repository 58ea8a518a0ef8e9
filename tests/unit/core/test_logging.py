# tests/unit/core/test_logging.py
"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from csvexpr.core.config import CodecSettings, set_settings
from csvexpr.core.logging import configure_logging, shorten_records


def _last_json_line(capsys: pytest.CaptureFixture[str]) -> dict[str, object]:
    return json.loads(capsys.readouterr().err.strip().splitlines()[-1])


class TestConfigureLogging:
    """Output format and level filtering."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode emits one object per event with bookkeeping keys removed."""
        configure_logging(json_output=True, level="INFO")

        structlog.get_logger("csvexpr.test").info("test_event", columns=2)

        record = _last_json_line(capsys)
        assert record["event"] == "test_event"
        assert record["columns"] == 2
        assert record["level"] == "info"
        assert record["logger"] == "csvexpr.test"
        assert "_record" not in record
        assert "_from_structlog" not in record

    def test_stdlib_records_share_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Plain logging calls come out in the same JSON format."""
        configure_logging(json_output=True, level="INFO")

        logging.getLogger("csvexpr.stdlib").warning("plain message")

        assert _last_json_line(capsys)["event"] == "plain message"

    def test_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Events below the configured level are dropped."""
        configure_logging(json_output=False, level="WARNING")

        structlog.get_logger("csvexpr.test").debug("hidden_event")

        assert "hidden_event" not in capsys.readouterr().err

    def test_reconfigure_replaces_handler(self) -> None:
        """Configuring twice leaves a single root handler."""
        configure_logging(level="INFO")
        configure_logging(level="INFO")

        assert len(logging.getLogger().handlers) == 1


class TestShortenRecords:
    """Raw CSV records attached to events are bounded."""

    def test_long_record_is_cut(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A record longer than the preview length is cut and marked."""
        set_settings(CodecSettings(malformed_record_preview_length=5))
        configure_logging(json_output=True, level="DEBUG")

        structlog.get_logger("csvexpr.test").debug("malformed_record_dropped", record="abcdefghij")

        assert _last_json_line(capsys)["record"] == "abcde..."

    def test_short_and_non_string_values_pass_through(self) -> None:
        """Values within the limit and non-strings are left alone."""
        set_settings(CodecSettings(malformed_record_preview_length=5))

        event = shorten_records(None, "debug", {"record": "abc", "text": 12345678, "other": "abcdefghij"})

        assert event == {"record": "abc", "text": 12345678, "other": "abcdefghij"}
