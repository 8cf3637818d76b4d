"""
Auth business logic.
"""

from __future__ import annotations

import logging

from core.errors import UnauthorizedError

from . import schemas, security

logger = logging.getLogger(__name__)


def _open_session() -> schemas.SessionResponse:
    return schemas.SessionResponse(session=schemas.Session(valid=True))


def login(payload: schemas.LoginRequest, *, client_host: str | None = None) -> schemas.SessionResponse:
    if not security.auth_enabled():
        return _open_session()

    if not security.verify_password(payload.password, security.password_hash()):
        logger.warning("login_failed client=%s", client_host)
        raise UnauthorizedError()

    logger.info("login_ok client=%s", client_host)
    return schemas.SessionResponse(
        session=schemas.Session(
            valid=True,
            sid=security.build_session_token(),
            validity=security.session_validity_s(),
        )
    )


def session_from_token(token: str | None) -> schemas.SessionResponse:
    """
    Check a session token. Raises UnauthorizedError when it is missing,
    invalid or expired, unless authentication is disabled.
    """
    if not security.auth_enabled():
        return _open_session()

    if not token:
        raise UnauthorizedError()

    try:
        payload = security.decode_session_token(token)
    except security.AuthSecurityError as exc:
        raise UnauthorizedError() from exc

    remaining = int(payload.get("exp", 0)) - security.now_epoch_s()
    return schemas.SessionResponse(
        session=schemas.Session(valid=True, sid=token, validity=max(0, remaining))
    )
