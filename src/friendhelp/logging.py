"""Logging configuration using Loguru.

Loguru is the application logger; its records are bridged into stdlib
logging, which writes through a queue so callers never block on I/O.
"""

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from loguru import logger

from friendhelp.config.settings import settings

_queue_listener: QueueListener | None = None


def configure_logging(
    log_level: str | None = None,
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure async logging using stdlib QueueHandler + QueueListener.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to settings.
        log_file: Optional path to log file. If None, only console logging is used.
        rotation: Log file rotation size (e.g., "10 MB").
        retention: Number of rotated files to keep (e.g., "7 days" keeps 7).
    """
    global _queue_listener

    logger.remove()

    level = (log_level or settings.LOG_LEVEL).upper()
    file_path = log_file or settings.LOG_FILE

    formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-5s | %(message)s",
        datefmt="%H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=_parse_bytes(rotation),
            backupCount=_parse_retention(retention),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        handlers.append(file_handler)

    log_queue: queue.SimpleQueue = queue.SimpleQueue()
    queue_handler = QueueHandler(log_queue)

    root = logging.getLogger()
    root.handlers = [queue_handler]
    root.setLevel(level)

    if _queue_listener:
        atexit.unregister(_queue_listener.stop)
        _queue_listener.stop()

    _queue_listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _queue_listener.start()
    atexit.register(_queue_listener.stop)

    # Route Loguru into stdlib logging (which is async via the queue)
    def _loguru_sink(message):
        record = message.record
        exc = record.get("exception")
        if exc:
            exc_info = (exc.type, exc.value, exc.traceback)
        else:
            exc_info = None
        logging.getLogger(record["name"]).log(
            record["level"].no,
            record["message"],
            exc_info=exc_info,
        )

    logger.add(_loguru_sink, level=level, backtrace=False, diagnose=False)

    for logger_name in ["httpx", "httpcore", "google_genai", "urllib3"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def _parse_bytes(value: str) -> int:
    try:
        parts = value.strip().split()
        number = float(parts[0])
        unit = parts[1].lower() if len(parts) > 1 else "b"
        if unit.startswith("kb"):
            return int(number * 1024)
        if unit.startswith("mb"):
            return int(number * 1024 * 1024)
        if unit.startswith("gb"):
            return int(number * 1024 * 1024 * 1024)
        return int(number)
    except (ValueError, IndexError):
        return 10 * 1024 * 1024


def _parse_retention(value: str) -> int:
    for token in value.split():
        if token.isdigit():
            return max(1, int(token))
    return 7


def format_log_context(kind: str, **fields: object) -> str:
    """
    Format a log context prefix for consistent, human-readable logs.

    Example:
        SYS=companion USER=local SESSION=1718000000000 | reply_failed
    """
    component = fields.pop("component", None)

    parts: list[str] = []
    if component:
        parts.append(f"SYS={component}")

    key_map = {
        "user": "USER",
        "session": "SESSION",
        "entry": "ENTRY",
        "state": "STATE",
        "follow_ups": "K",
        "status": "STATUS",
    }

    for key, value in fields.items():
        if value is None or value == "":
            continue
        label = key_map.get(key, key.upper())
        parts.append(f"{label}={value}")

    context = " ".join(parts).strip()
    if context:
        return f"{context} | {kind}"
    return str(kind)


def truncate_log_text(text: str, limit: int = 60) -> str:
    """Trim user text before it reaches the logs."""
    if text is None:
        return ""
    cleaned = " ".join(str(text).split())
    if len(cleaned) <= limit:
        return cleaned
    return f"{cleaned[:limit]}..."


__all__ = ["configure_logging", "format_log_context", "truncate_log_text", "logger"]
