"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` with event-style messages
(`event_name key=value ...`). This only wires the root handler.
"""

from __future__ import annotations

import logging
import os
import time

from fastapi import Request

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

access_logger = logging.getLogger("gravity.access")


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def configure_logging() -> None:
    level = log_level()
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    try:
        root.setLevel(level)
    except ValueError:
        root.setLevel(logging.INFO)
        root.warning("invalid_log_level value=%s", level)


async def access_log_middleware(request: Request, call_next):
    """One log line per request: method, path, status and duration."""
    start = time.monotonic()
    response = await call_next(request)
    duration_ms = round((time.monotonic() - start) * 1000, 2)
    access_logger.info(
        "http_request method=%s path=%s status=%s duration_ms=%s",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response
