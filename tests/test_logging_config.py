from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from infra.config import clear_settings_cache
from infra.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    clear_log_context,
    get_log_context,
    set_log_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(msg: str = "hello", **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord("shovels.test", logging.INFO, __file__, 10, msg, None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_log_context_accumulates_and_clears() -> None:
    set_log_context(dataset="shovel_levels")
    set_log_context(run="build")
    assert get_log_context() == {"dataset": "shovel_levels", "run": "build"}

    clear_log_context()
    assert get_log_context() == {}


def test_json_formatter_includes_extras_and_context() -> None:
    set_log_context(dataset="shovel_levels", rows="from-context")
    line = JsonFormatter(extra_fields={"service": "shovels"}).format(_record(rows=50, event="parquet_written"))
    payload = json.loads(line)

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "shovels.test"
    assert payload["event"] == "parquet_written"
    assert payload["rows"] == 50  # record extras win over context
    assert payload["dataset"] == "shovel_levels"
    assert payload["service"] == "shovels"
    assert payload["timestamp"].endswith("Z")
    assert "asctime" not in payload


def test_json_formatter_serializes_unknown_types() -> None:
    payload = json.loads(JsonFormatter().format(_record(obj=object())))
    assert payload["obj"].startswith("<object object")


def test_text_formatter_uses_utc_marker() -> None:
    line = TextFormatter().format(_record())
    assert line.endswith("| INFO | shovels.test | hello")
    assert "Z |" in line


def test_structured_logger_appends_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = StructuredLogger("shovels.structured")
    with caplog.at_level(logging.INFO, logger="shovels.structured"):
        logger.info("export_written", path="exports/shovel_levels.json")
        logger.debug("hidden")

    assert len(caplog.records) == 1
    rec = caplog.records[0]
    assert rec.getMessage() == "export_written path=exports/shovel_levels.json"
    assert rec.event == "export_written"
    assert rec.path == "exports/shovel_levels.json"


def test_setup_logging_override_replaces_root_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHOVELS_LOG_JSON", "1")
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        setup_logging(level="debug", override_root_handlers=True)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        clear_settings_cache()
