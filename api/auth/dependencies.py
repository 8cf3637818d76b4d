"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, Header

from core.errors import UnauthorizedError

from . import schemas, security, service


def _extract_session_token(authorization: str | None, sid_header: str | None) -> str | None:
    sid = (sid_header or "").strip()
    if sid:
        return sid

    raw = (authorization or "").strip()
    if not raw:
        return None

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise UnauthorizedError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise UnauthorizedError("Authorization must be: Bearer <token>.")
    return token


async def get_session_token(
    authorization: str | None = Header(default=None),
    x_ftl_sid: str | None = Header(default=None),
) -> str | None:
    if not security.auth_enabled():
        return None
    return _extract_session_token(authorization, x_ftl_sid)


async def get_session(token: str | None = Depends(get_session_token)) -> schemas.SessionResponse:
    return service.session_from_token(token)


async def require_session(session: schemas.SessionResponse = Depends(get_session)) -> dict:
    return session.session.model_dump()
