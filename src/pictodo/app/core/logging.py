"""JSON logging for the Pictodo service."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import Settings
from .context import NO_REQUEST_ID, get_request_id

# Fields the services pass through ``extra`` that operators filter on.
CONTEXT_FIELDS = frozenset(
    {
        "todo_id",
        "owner_id",
        "attachment_key",
        "object_key",
        "external_id",
        "reason",
        "code",
        "status_code",
        "path",
    }
)

_STANDARD_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "request_id"}


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object.

    Context fields are lifted to the top level so a single todo or stored
    object can be traced across requests; any other ``extra`` keys are
    grouped under ``extra``.
    """

    def __init__(self, *, service: str, environment: str) -> None:
        super().__init__()
        self._service = service
        self._environment = environment

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "environment": self._environment,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
        }

        extra: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_ATTRS:
                continue
            if key in CONTEXT_FIELDS:
                payload[key] = value
            else:
                extra[key] = value
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RequestContextFilter(logging.Filter):
    """Stamp records with the request id bound by the correlation middleware."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.request_id = get_request_id()
        return True


def configure_logging(settings: Settings) -> None:
    """Send root, uvicorn and httpx records through one JSON stdout handler."""

    level = settings.log_level if settings.log_level in logging.getLevelNamesMapping() else "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonLogFormatter,
                    "service": settings.project_name,
                    "environment": settings.environment,
                },
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": {
                "uvicorn": {"handlers": ["stdout"], "level": level, "propagate": False},
                # Outbound calls to the identity provider and storage service.
                "httpx": {"level": "WARNING"},
            },
        }
    )


__all__ = ["CONTEXT_FIELDS", "JsonLogFormatter", "RequestContextFilter", "configure_logging"]
