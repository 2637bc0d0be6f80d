import logging
from logging.config import dictConfig
from typing import Literal

from .request_context import current_request_id

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"

# Chatty third-party loggers held at WARNING whatever the app level is.
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id() or "-"
        return True


def configure_logging(level: LogLevel = "INFO", json_output: bool = True) -> None:
    """Route every logger, uvicorn's included, through one console handler.

    Records carry ``request_id`` so log lines can be matched to the
    ``X-Request-ID`` header of the response that produced them.
    """
    formatters = {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JSON_FORMATTER_CLASS,
            "fmt": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
            "rename_fields": {"levelname": "level", "asctime": "timestamp"},
        },
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": formatters,
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_output else "default",
                    "filters": ["request_id"],
                }
            },
            "loggers": {
                **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
                "uvicorn": {"handlers": [], "propagate": True},
                "uvicorn.error": {"handlers": [], "propagate": True},
                "uvicorn.access": {"handlers": [], "propagate": True},
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )
