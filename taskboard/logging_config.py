"""
Logging configuration.

- Development: human-readable colored format
- LOG_JSON=true: one JSON object per line (log aggregator compatible)
- Log level: controlled via the LOG_LEVEL setting
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Extra fields that loggers in this package attach to records.
EXTRA_FIELDS = (
    "method",
    "path",
    "status",
    "user_id",
    "project_id",
    "task_id",
    "depends_on_id",
    "column_id",
    "from_status",
    "to_status",
    "attempt",
    "code",
    "error",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[35m",   # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        extras = " ".join(
            f"{key}={getattr(record, key)}"
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        msg = record.getMessage()
        base = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {msg}"
        if extras:
            base += f" [{extras}]"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(settings) -> None:
    """
    Set up logging for the API process.

    Reads LOG_LEVEL (default INFO) and LOG_JSON from ``settings``.
    """
    level_name = settings.LOG_LEVEL or "INFO"
    level = getattr(logging, level_name.upper(), logging.INFO)

    formatter = JSONFormatter() if settings.LOG_JSON else ReadableFormatter()

    # Single stream handler on the root logger
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    # Quieten noisy libraries
    for noisy in ("sqlalchemy.engine", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s format=%s",
        level_name, "JSON" if settings.LOG_JSON else "readable",
    )
