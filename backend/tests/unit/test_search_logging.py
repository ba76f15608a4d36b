"""Unit tests for the stage logger and the ANSI-stripping log filter."""

import logging

import pytest

from layer_search.infrastructure.logging.colored_logger import SearchLogger, SearchStage
from layer_search.infrastructure.logging.log_config import StripAnsiFilter


def _plain(record: logging.LogRecord) -> str:
    StripAnsiFilter().filter(record)
    return record.getMessage()


def test_step_start_tags_stage_and_context(caplog):
    caplog.set_level(logging.INFO, logger="TestSearch")

    SearchLogger("TestSearch").step_start(SearchStage.QUERY, "Querying 2 layers", generation=3)

    (record,) = caplog.records
    assert _plain(record) == "🔎 [QUERY] Querying 2 layers (generation=3)"


def test_step_warning_logs_at_warning_level(caplog):
    caplog.set_level(logging.INFO, logger="TestSearch")

    SearchLogger("TestSearch").step_warning(SearchStage.QUERY, "layer:1 failed")

    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    assert "⚠ layer:1 failed" in _plain(record)


def test_timed_step_logs_error_and_reraises(caplog):
    caplog.set_level(logging.INFO, logger="TestSearch")
    slog = SearchLogger("TestSearch")

    with pytest.raises(ValueError):
        with slog.timed_step(SearchStage.COMPILE, "Compiling"):
            raise ValueError("bad criterion")

    assert [r.levelno for r in caplog.records] == [logging.INFO, logging.ERROR]
    message = _plain(caplog.records[-1])
    assert message.startswith("❌ [COMPILE] Compiling: failed after")
    assert message.endswith("→ ValueError: bad criterion")


def test_strip_ansi_filter_leaves_non_string_messages():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, 42, None, None)

    assert StripAnsiFilter().filter(record) is True
    assert record.msg == 42
