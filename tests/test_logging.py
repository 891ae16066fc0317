"""
Tests for structured logging.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from erpro.logging import JSONFormatter, context_fields, get_logger, log_context, setup_logging


def make_record(msg: str = "Stage started", **extra) -> logging.LogRecord:
    record = logging.LogRecord("erpro.test", logging.INFO, __file__, 1, msg, None, None)
    if extra:
        record.extra = extra
    return record


class TestLogContext:
    """Test scoped run/stage context."""

    def test_empty_outside_context(self) -> None:
        assert context_fields() == {}

    def test_nested_stage_keeps_run(self) -> None:
        with log_context(run_id="run-1"):
            with log_context(stage="report"):
                assert context_fields() == {"run_id": "run-1", "stage": "report"}
            assert context_fields() == {"run_id": "run-1"}
        assert context_fields() == {}


class TestJSONFormatter:
    """Test JSON Lines output."""

    def test_includes_context_and_extra(self) -> None:
        with log_context(run_id="run-1", stage="sources"):
            line = JSONFormatter().format(make_record(chars=42))

        payload = json.loads(line)
        assert payload["message"] == "Stage started"
        assert payload["level"] == "INFO"
        assert payload["run_id"] == "run-1"
        assert payload["stage"] == "sources"
        assert payload["extra"] == {"chars": 42}


class TestSetupLogging:
    def test_file_handler_writes_fields(self, temp_dir: Path) -> None:
        log_file = temp_dir / "logs" / "erpro.log"
        setup_logging(log_level="DEBUG", log_file=log_file, console_output=False)
        logger = get_logger("pipeline")

        with log_context(run_id="run-9"):
            logger.info("Stage complete", chars=10)
        for handler in logging.getLogger("erpro").handlers:
            handler.close()

        payload = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert payload["logger"] == "erpro.pipeline"
        assert payload["run_id"] == "run-9"
        assert payload["extra"] == {"run_id": "run-9", "chars": 10}

        setup_logging(console_output=False)
