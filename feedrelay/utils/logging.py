"""
FeedRelay Logging Configuration
===============================

Console and rotating-file logging for the relay. Every component logs through
an adapter carrying its name plus whatever item or chat it is working on, so
a single run can be followed through the JSON log file by ``run_id`` or
``item_url``.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "feedrelay"

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}

# Context keys promoted to top-level fields in JSON output
_PROMOTED_FIELDS = ("component", "run_id", "item_url", "chat_id")

_LIBRARY_LEVELS = {
    "aiohttp": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "telegram": logging.INFO,
    "feedparser": logging.WARNING,
}


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line, used for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        context = _record_context(record)
        for key in _PROMOTED_FIELDS:
            if key in context:
                entry[key] = context.pop(key)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Compact, optionally colored line format for the terminal."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        component = getattr(record, "component", record.name)
        line = (
            f"{datetime.fromtimestamp(record.created).strftime('%H:%M:%S')} "
            f"{level} [{component}] {record.getMessage()}"
        )

        item_url = getattr(record, "item_url", None)
        if item_url:
            line += f" ({item_url})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def build_handlers(
    log_file: Optional[str],
    enable_console: bool,
    structured_console: bool,
    max_file_size_mb: int,
    backup_count: int,
) -> List[logging.Handler]:
    """Create the console and file handlers requested by the settings."""
    handlers: List[logging.Handler] = []

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        if structured_console:
            console.setFormatter(JsonLineFormatter())
        else:
            console.setFormatter(ConsoleFormatter(use_color=sys.stdout.isatty()))
        handlers.append(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonLineFormatter())
        handlers.append(file_handler)

    return handlers


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/feedrelay.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Install handlers on the ``feedrelay`` logger.

    Calling this again replaces the previous handlers.

    Args:
        log_level: Level name for all relay loggers
        log_file: Rotating JSON log file, or None to log to the console only
        enable_console: Log to stdout
        structured_logging: Emit JSON on the console as well
        max_file_size_mb: Rotate the log file at this size
        backup_count: Rotated files to keep

    Returns:
        The configured ``feedrelay`` logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    for handler in build_handlers(
        log_file, enable_console, structured_logging, max_file_size_mb, backup_count
    ):
        root.addHandler(handler)

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return root


class ComponentLogger(logging.LoggerAdapter):
    """Adapter that attaches component context to every record.

    Per-call ``extra`` values win over the adapter's own context.
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger_for_component(component_name: str, **context: Optional[str]) -> ComponentLogger:
    """Get a logger for one relay component.

    Args:
        component_name: Short name such as 'pipeline' or 'translator'
        **context: Extra fields (e.g. ``item_url``, ``chat_id``); None values are dropped

    Returns:
        Adapter logging under ``feedrelay.<component_name>``
    """
    extra = {"component": component_name}
    extra.update({key: value for key, value in context.items() if value is not None})
    return ComponentLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"), extra)


class PerformanceLogger:
    """Times a block and logs how long it took and whether it raised."""

    def __init__(self, logger: logging.LoggerAdapter, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.monotonic()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.monotonic() - self._started
        context = {**self.context, "duration_seconds": round(self.duration, 3)}

        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {self.duration:.3f}s", extra=context)
        else:
            context["error_type"] = exc_type.__name__
            self.logger.error(
                f"Failed {self.operation} after {self.duration:.3f}s: {exc_val}", extra=context
            )
