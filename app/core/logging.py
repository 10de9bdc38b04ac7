"""
Logging Configuration

Configures the stdlib logging tree once at startup. Plain text in
development, single-line JSON records when ``LOG_JSON`` is enabled so the
output can be shipped to a log collector as-is.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON object."""

    # Extra attributes copied into the JSON payload when present on a record
    EXTRA_FIELDS = ("user_id", "course_id", "video_id", "error_code", "path", "method")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = str(getattr(record, name))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


def build_logging_config(level: str = "INFO", json_logs: bool = False) -> Dict[str, Any]:
    """
    Build a dictConfig mapping for the application.

    Args:
        level: Root log level name (e.g. "INFO").
        json_logs: Use the JSON formatter instead of plain text.

    Returns:
        Dict suitable for ``logging.config.dictConfig``.
    """
    formatter = "json" if json_logs else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "app": {"level": level.upper(), "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {"level": level.upper(), "handlers": ["console"]},
    }


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Apply the application logging configuration."""
    logging.config.dictConfig(build_logging_config(level, json_logs))
