"""Logging setup with structured output and run context.

Every record carries the ID of the ingestion run that produced it, so
interleaved continuous-mode output can be split per refresh.

    - Text or JSON output (LOG_FORMAT)
    - Console handler plus a rotating file handler (log/prism.log)
    - run_id / trace_id injected by ContextFilter

Usage:
    >>> from observability.logging import setup_logging, set_run_context
    >>> setup_logging(config)
    >>> set_run_context("a1b2c3d4")
    >>> logger.info("Store refreshed | articles=%d", 120)
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILE_NAME = "prism.log"

# Libraries that log too much at INFO/DEBUG
NOISY_LOGGERS = (
    "aiohttp", "asyncio", "urllib3", "httpx", "httpcore", "filelock",
    "sentence_transformers", "transformers", "huggingface_hub",
)

run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="-")

# LogRecord attributes that are not user extras
_RESERVED = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "taskName", "run_id", "trace_id", "message",
})


def set_run_context(run_id: str) -> None:
    """Tag subsequent log records in this context with a run ID."""
    run_id_var.set(run_id)


def set_trace_context(trace_id: str) -> None:
    """Tag subsequent log records with a Logfire trace ID."""
    trace_id_var.set(trace_id)


def clear_context() -> None:
    run_id_var.set("-")
    trace_id_var.set("-")


class ContextFilter(logging.Filter):
    """Inject run_id and trace_id into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        record.trace_id = trace_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Single-line JSON records for log aggregation.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "aggregator",
         "message": "...", "run_id": "a1b2c3d4"}

    WARNING and above also carry the source location; fields passed via
    ``extra=`` are copied as-is (or as strings when not serializable).
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", "-"),
        }

        trace_id = getattr(record, "trace_id", "-")
        if trace_id != "-":
            data["trace_id"] = trace_id

        if record.levelno >= logging.WARNING:
            data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED or key in data:
                continue
            try:
                json.dumps(value)
                data[key] = value
            except (TypeError, ValueError):
                data[key] = str(value)

        return json.dumps(data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """TIMESTAMP [LEVEL] [run_id] logger: message"""

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] [%(run_id)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )


def _file_handler(log_dir: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    """Size-based rotation when max_bytes > 0, otherwise daily at midnight."""
    log_dir.mkdir(parents=True, exist_ok=True)
    probe = log_dir / ".write_test"
    probe.touch()
    probe.unlink()

    log_file = log_dir / LOG_FILE_NAME
    if max_bytes > 0:
        return RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    return TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=backup_count, encoding="utf-8")


def setup_logging(config: Any, verbose: bool = False) -> bool:
    """Configure root logging from a Config.

    Replaces any existing root handlers. If the log directory is not
    writable, logging continues on the console only.

    Args:
        config: Object with log_dir, log_level, log_format,
            log_max_bytes and log_backup_count
        verbose: Force DEBUG on the console

    Returns:
        True if file logging is enabled, False if console-only
    """
    console_level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    context_filter = ContextFilter()

    if config.log_format == "json":
        console_fmt: logging.Formatter = JsonFormatter()
        file_fmt: logging.Formatter = JsonFormatter()
    else:
        console_fmt = TextFormatter(include_date=False)
        file_fmt = TextFormatter(include_date=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(console_fmt)
    console.addFilter(context_filter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.addHandler(console)

    file_logging_enabled = False
    try:
        file_handler = _file_handler(Path(config.log_dir), config.log_max_bytes, config.log_backup_count)
        file_handler.setLevel(logging.DEBUG)  # File always captures everything
        file_handler.setFormatter(file_fmt)
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)
        file_logging_enabled = True
    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return file_logging_enabled
