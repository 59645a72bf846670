from __future__ import annotations

import io
import json
import logging
import sys

from runwalk.utils.logging import JsonFormatter, setup_logging


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("runwalk.core.state", logging.INFO, __file__, 1, "activity changed", None, None)
    record.new_label = "running"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "activity changed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "runwalk.core.state"
    assert payload["new_label"] == "running"


def test_exception_and_thread_are_reported() -> None:
    try:
        raise RuntimeError("inference backend unavailable")
    except RuntimeError:
        record = logging.LogRecord(
            "runwalk.core.predict", logging.ERROR, __file__, 1, "prediction cycle failed", None, sys.exc_info()
        )
    record.threadName = "ActivityPredictor"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["thread"] == "ActivityPredictor"
    assert "RuntimeError: inference backend unavailable" in payload["exc_info"]
    assert "args" not in payload and "msg" not in payload


def test_setup_logging_writes_json_lines() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    try:
        setup_logging("debug", stream=stream)
        logging.getLogger("runwalk.test").debug("window not ready", extra={"buffered": 12})
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
    payload = json.loads(stream.getvalue().strip())
    assert payload["level"] == "DEBUG"
    assert payload["buffered"] == 12
