"""
Structured logging configuration.

- Development: human-readable colored lines, migration context appended as tags
- Production: one JSON object per line (log aggregator compatible)
- LOG_LEVEL / LOG_FORMAT come from the app config (env overridable)

Services attach migration context through ``extra=``::

    logger.info("Wave progress stored", extra={"wave_id": wave.id, "progress": 40})
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Request fields set by the timing middleware
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")

# Migration context: record attribute -> short tag in readable output
CONTEXT_FIELDS = {
    "wave_id": "wave",
    "task_id": "task",
    "work_order_id": "wo",
    "location_id": "loc",
    "progress": "progress",
    "source": "source",
}


def log_context(record: logging.LogRecord) -> dict:
    """The request and migration fields present on ``record``."""
    context = {}
    for key in REQUEST_FIELDS + tuple(CONTEXT_FIELDS):
        val = getattr(record, key, None)
        if val is not None:
            context[key] = val
    return context


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(log_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tags = "".join(
            f" [{tag}={getattr(record, key)}]"
            for key, tag in CONTEXT_FIELDS.items()
            if getattr(record, key, None) is not None
        )
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            tags += f" [{duration:.0f}ms]"
        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}{tags}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    ``LOG_FORMAT`` is ``json`` or ``readable``; when unset, production gets
    JSON and development/testing get readable lines.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if is_prod else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = (app.config.get("LOG_FORMAT") or ("json" if is_prod else "readable")).lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())
    handler.setLevel(level)

    # tests build several apps; keep exactly one handler
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
