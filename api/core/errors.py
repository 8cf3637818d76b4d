"""
Structured API errors.

Every error response has the same body:

    {"error": {"key": "<code>", "message": "<text>", "data": {...} | null}}

Feature code raises an `APIError` subclass; `api_error_handler` (registered in
`api/main.py`) renders it.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    key: str = "error"
    default_message: str = "An error occurred."

    def __init__(self, message: str | None = None, data: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"error": {"key": self.key, "message": self.message, "data": self.data}}


class BadRequestError(APIError):
    key = "bad_request"
    default_message = "Bad request."


class DatabaseError(APIError):
    """
    The store rejected an operation.

    `data` always carries the echoed `argument` and the store's `sql_msg`
    (either may be None).
    """

    key = "database_error"
    default_message = "Database error."

    def __init__(
        self,
        message: str | None = None,
        *,
        argument: str | None,
        sql_msg: str | None,
        **extra: Any,
    ) -> None:
        data: dict[str, Any] = {"argument": argument}
        data.update(extra)
        data["sql_msg"] = sql_msg
        super().__init__(message, data)


class UnauthorizedError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    key = "unauthorized"
    default_message = "Unauthorized"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning(
        "api_error key=%s status=%s method=%s path=%s message=%s",
        exc.key,
        exc.status_code,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(exc.to_body(), status_code=exc.status_code)
