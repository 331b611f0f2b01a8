"""Logging setup for the API process."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

# Order context passed through ``extra=`` by the services.
CONTEXT_FIELDS: tuple[str, ...] = ("order_id", "customer_id", "actor")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying order context when the record has it."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


class ContextFormatter(logging.Formatter):
    """Plain-text format that appends order context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}" for field in CONTEXT_FIELDS if getattr(record, field, None) is not None
        )
        return f"{message} [{context}]" if context else message


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """Attach a stream handler to the root logger once."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    formatter: logging.Formatter = (
        JsonFormatter() if structured else ContextFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    for handler in root.handlers:
        handler.setFormatter(formatter)
