"""
Logging Tests
=============

Unit tests for log formatting, component context and run timing.
"""

import json
import logging
import logging.handlers

import pytest
from unittest.mock import MagicMock

from feedrelay.utils.logging import (
    ConsoleFormatter,
    JsonLineFormatter,
    PerformanceLogger,
    configure_application_logging,
    get_logger_for_component,
)


def make_record(**extra):
    record = logging.LogRecord(
        "feedrelay.pipeline", logging.INFO, __file__, 10, "Item %s delivered", ("a",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_line_promotes_context(self):
        record = make_record(component="pipeline", run_id="abc123", segments=2)

        entry = json.loads(JsonLineFormatter().format(record))

        assert entry["msg"] == "Item a delivered"
        assert entry["level"] == "INFO"
        assert entry["component"] == "pipeline"
        assert entry["run_id"] == "abc123"
        assert entry["context"] == {"segments": 2}

    def test_json_line_without_extras(self):
        entry = json.loads(JsonLineFormatter().format(make_record()))
        assert "context" not in entry

    def test_console_line(self):
        record = make_record(component="pipeline", item_url="https://news.example.com/a")

        line = ConsoleFormatter(use_color=False).format(record)

        assert "[pipeline] Item a delivered (https://news.example.com/a)" in line
        assert "\033[" not in line


class TestComponentLogger:

    def test_context_drops_none(self):
        adapter = get_logger_for_component("sender", chat_id="-100", item_url=None)

        assert adapter.logger.name == "feedrelay.sender"
        assert adapter.extra == {"component": "sender", "chat_id": "-100"}

    def test_call_extra_is_merged(self):
        adapter = get_logger_for_component("pipeline", item_url="https://x.example/a")

        _, kwargs = adapter.process("msg", {"extra": {"segments": 3}})

        assert kwargs["extra"] == {
            "component": "pipeline",
            "item_url": "https://x.example/a",
            "segments": 3,
        }


class TestConfigureApplicationLogging:

    def test_handlers_replaced_on_reconfigure(self, tmp_path):
        log_file = tmp_path / "logs" / "feedrelay.log"
        root = logging.getLogger("feedrelay")
        previous = list(root.handlers)

        try:
            configure_application_logging("DEBUG", str(log_file), enable_console=True)
            configure_application_logging("WARNING", str(log_file), enable_console=False)

            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0], logging.handlers.RotatingFileHandler)
            assert log_file.parent.is_dir()
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in previous:
                root.addHandler(handler)


class TestPerformanceLogger:

    def test_success_logs_duration(self):
        logger = MagicMock()

        with PerformanceLogger(logger, "pipeline run", run_id="r1") as timer:
            pass

        assert timer.duration >= 0
        logger.info.assert_called_once()
        assert logger.info.call_args.kwargs["extra"]["run_id"] == "r1"

    def test_failure_logs_error_and_propagates(self):
        logger = MagicMock()

        with pytest.raises(ValueError):
            with PerformanceLogger(logger, "pipeline run"):
                raise ValueError("boom")

        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["extra"]["error_type"] == "ValueError"
