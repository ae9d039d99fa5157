"""
Application-wide logging configuration helpers.

Centralizes logging setup so the Flask app logger and every ``timesheet_app``
module share one format, level, and set of handlers. ``LOG_FORMAT=json`` emits
one JSON object per line including the structured ``extra`` context.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig

TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_handlers(app, log_level: str, formatter: str) -> dict:
    handlers: dict[str, dict] = {}
    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": formatter,
            "level": log_level,
        }
    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": formatter,
            "level": log_level,
            "filename": os.path.join(log_dir, "timesheet_app.log"),
            "maxBytes": int(app.config.get("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024)),
            "backupCount": int(app.config.get("LOG_FILE_BACKUP_COUNT", 5)),
            "encoding": "utf-8",
        }
    return handlers


def setup_logging(app) -> None:
    """
    Configure the Flask app logger and the ``timesheet_app`` logger tree.

    Safe to call repeatedly; each call replaces the previously installed handlers.
    """

    log_level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    formatter = "json" if str(app.config.get("LOG_FORMAT", "text")).lower() == "json" else "standard"
    handlers = _build_handlers(app, log_level, formatter)

    logger_config = {"handlers": list(handlers), "level": log_level, "propagate": True}
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": TEXT_FORMAT, "datefmt": DATE_FORMAT},
                "json": {"()": JsonFormatter},
            },
            "handlers": handlers,
            "loggers": {
                "timesheet_app": dict(logger_config),
                app.logger.name: dict(logger_config),
            },
        }
    )
    app.logger.debug("Logging configured (level=%s, format=%s)", log_level, formatter)
