"""Structured JSON logging for finboard processes.

Lines go to stderr so a process writing data to stdout (the snapshot CLI)
keeps its output machine-readable. Every line names the service that wrote
it, and ``extra`` fields passed to a logger call are nested under
``"context"``.
"""

import json
import logging
import sys
from typing import Any

from finboard.core.time_utils import isoformat_utc, utc_now

_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Serialize log records as compact JSON lines tagged with a service name."""

    def __init__(self, service: str = "finboard") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": isoformat_utc(utc_now()),
            "service": self.service,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Extras such as datetimes serialize via str().
        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO", service: str = "finboard") -> None:
    """Install the JSON stderr handler on the root logger once per process."""

    root = logging.getLogger()
    if getattr(root, "_finboard_configured", False):
        return

    root.handlers.clear()
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter(service=service))

    root.addHandler(handler)
    root.setLevel(level.upper())
    setattr(root, "_finboard_configured", True)
