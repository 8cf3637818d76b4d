"""
Auth security helpers.

There is a single admin password, configured as a bcrypt hash in
WEB_PASSWORD_HASH. A correct password is exchanged for a signed session
token (JWT). With no hash configured, authentication is disabled.
"""

from __future__ import annotations

import os
import time
from typing import Any

import bcrypt
import jwt


class AuthSecurityError(RuntimeError):
    pass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def password_hash() -> str:
    return os.environ.get("WEB_PASSWORD_HASH", "").strip()


def auth_enabled() -> bool:
    return bool(password_hash())


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return os.environ.get("JWT_SECRET", "dev-change-this-secret").strip() or "dev-change-this-secret"


def jwt_algorithm() -> str:
    return os.environ.get("JWT_ALG", "HS256").strip() or "HS256"


def session_validity_s() -> int:
    return _env_int("SESSION_VALIDITY_S", 1800)


def now_epoch_s() -> int:
    return int(time.time())


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (hashed_password or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_session_token() -> str:
    issued_at = now_epoch_s()
    payload = {
        "sub": "admin",
        "type": "session",
        "iat": issued_at,
        "exp": issued_at + session_validity_s(),
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_session_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Session token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid session token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "session":
        raise AuthSecurityError("Token is not a session token.")

    return payload
