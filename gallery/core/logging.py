from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Mapping, Tuple

from ..middlewares import location_ctx_var, principal_ctx_var, request_id_ctx_var

# Per-request context copied onto every record emitted while serving a page.
CONTEXT_FIELDS: Tuple[Tuple[str, ContextVar], ...] = (
    ("request_id", request_id_ctx_var),
    ("location", location_ctx_var),
    ("principal", principal_ctx_var),
)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the page being served."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field, var in CONTEXT_FIELDS:
            value = var.get()
            if value:
                payload[field] = value
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        # Exhibition payloads can carry datetimes and models; stringify them.
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str | int = logging.INFO) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(level)
    # httpx logs every request at INFO; the transport logs its own summary.
    logging.getLogger("httpx").setLevel(logging.WARNING)
