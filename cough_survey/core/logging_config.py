"""
Logging setup for the survey service.

Every record emitted while a request is being served carries that
request's id, in both output formats, so a participant's report can be
traced through session assignment, recording and statistics.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cough_survey.core.config import settings

# Set by RequestLoggingMiddleware for the duration of one request
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# LogRecord extras promoted to top-level JSON keys
_EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "participant_id",
    "snippet_id",
    "error_code",
    "error_id",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` from the current request, or "-" outside one."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_context.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": settings.APP_NAME,
            "env": settings.ENV,
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            {field: getattr(record, field) for field in _EXTRA_FIELDS if hasattr(record, field)}
        )

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def resolve_log_format() -> str:
    if settings.LOG_FORMAT:
        return settings.LOG_FORMAT
    return "json" if settings.ENV == "production" else "text"


def setup_logging() -> None:
    """
    Configure the "cough_survey" logger tree and the server loggers.

    The output format comes from LOG_FORMAT, falling back to JSON in
    production and a single-line text format elsewhere.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    console = {"level": level, "handlers": ["console"], "propagate": False}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {
                "text": {"format": TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
                "json": {"()": JSONFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": resolve_log_format(),
                    "filters": ["request_id"],
                    "stream": sys.stdout,
                },
            },
            "root": {"level": logging.WARNING, "handlers": ["console"]},
            "loggers": {
                "cough_survey": console,
                "alembic": dict(console, level=logging.INFO),
                # The request logging middleware already records every request
                "uvicorn.access": dict(console, level=logging.WARNING),
                "sqlalchemy.engine": dict(console, level=logging.WARNING),
            },
        }
    )
