"""Logging configuration.

Goals:
- Structured JSON logs by default, plain console lines on request
- Automatically include the resource + operation being synced when known
- Minimal dependencies (stdlib only)

Catalog calls run inside `operation_context(resource, operation)`, which sets
context vars. A filter copies them onto every record so that log lines from the
client, the translator and the synchronizer can be correlated.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional


resource_var: ContextVar[Optional[str]] = ContextVar("resource", default=None)
operation_var: ContextVar[Optional[str]] = ContextVar("operation", default=None)


@contextmanager
def operation_context(resource: str, operation: str) -> Iterator[None]:
    """Tag log records emitted inside the block with resource/operation."""

    resource_token = resource_var.set(resource)
    operation_token = operation_var.set(operation)
    try:
        yield
    finally:
        operation_var.reset(operation_token)
        resource_var.reset(resource_token)


class _ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        resource = resource_var.get()
        if resource and getattr(record, "resource", None) is None:
            setattr(record, "resource", resource)

        operation = operation_var.get()
        if operation and getattr(record, "operation", None) is None:
            setattr(record, "operation", operation)

        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Common structured fields (set by filter / extra)
        for key in ("resource", "operation", "resource_id", "status_code"):
            v = getattr(record, key, None)
            if v is not None:
                payload[key] = v

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(*, log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure root logging.

    Idempotent: safe to call multiple times.
    """

    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicate logs on repeated setup.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if (log_format or "json").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    handler.addFilter(_ContextFilter())

    root.addHandler(handler)

    # Quiet connection pool chatter (keep errors).
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
