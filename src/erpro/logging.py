"""
Structured logging for research runs.

Every record carries the active run and stage, taken from context
variables set with log_context(). Records go to a JSON Lines file and,
optionally, to a rich console handler.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
_stage_var: ContextVar[str | None] = ContextVar("stage", default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "asyncio")


@contextmanager
def log_context(
    run_id: str | None = None,
    stage: str | None = None,
) -> Generator[None, None, None]:
    """Tag log records emitted inside the block with a run and/or stage.

    Nested blocks only override the values they are given; the outer
    values come back when the block exits.
    """
    run_token = _run_id_var.set(run_id) if run_id is not None else None
    stage_token = _stage_var.set(stage) if stage is not None else None
    try:
        yield
    finally:
        if stage_token is not None:
            _stage_var.reset(stage_token)
        if run_token is not None:
            _run_id_var.reset(run_token)


def context_fields() -> dict[str, str]:
    """Current run_id and stage, omitting unset ones."""
    fields = {"run_id": _run_id_var.get(), "stage": _stage_var.get()}
    return {key: value for key, value in fields.items() if value}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with run context and extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_obj.update(context_fields())

        if hasattr(record, "extra"):
            log_obj["extra"] = record.extra

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


class ContextRichHandler(RichHandler):
    """Rich handler that prefixes the level with the short run id and stage."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        level_text = super().get_level_text(record)
        fields = context_fields()

        parts: list[str] = []
        if "run_id" in fields:
            # Last 8 chars of the UUID7 are the random part
            parts.append(f"[dim]{fields['run_id'][-8:]}[/dim]")
        if "stage" in fields:
            parts.append(f"[cyan]{fields['stage']}[/cyan]")

        if not parts:
            return level_text
        return Text.from_markup(f"{level_text} {' '.join(parts)}")


class ContextLogger:
    """Logger wrapper taking structured fields as keyword arguments.

    ``logger.info("Stage complete", chars=1200)`` stores ``chars`` with the
    run context under the record's ``extra`` mapping.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, msg: str, *args: Any, exc_info: bool = False, **fields: Any) -> None:
        extra = {**context_fields(), **fields}
        self._logger.log(level, msg, *args, exc_info=exc_info, extra={"extra": extra})

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **fields)


_setup_done: bool = False


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Configure the ``erpro`` logger tree.

    Args:
        log_level: Level name for the console handler and logger.
        log_file: JSON Lines file receiving every record at DEBUG and above.
            Console only when None.
        console_output: Whether to log to stderr through rich.
    """
    global _setup_done

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger("erpro")
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    if console_output:
        rich_handler = ContextRichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=True,
        )
        rich_handler.setLevel(level)
        root_logger.addHandler(rich_handler)

    root_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _setup_done = True


def get_logger(name: str) -> ContextLogger:
    """Context-aware logger under the ``erpro`` namespace."""
    if not _setup_done:
        setup_logging()

    if not name.startswith("erpro"):
        name = f"erpro.{name}"

    return ContextLogger(logging.getLogger(name))
