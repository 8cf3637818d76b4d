"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=256)


class Session(BaseModel):
    valid: bool
    # None when authentication is disabled.
    sid: str | None = None
    # Seconds until expiry; -1 when the session does not expire.
    validity: int = -1


class SessionResponse(BaseModel):
    session: Session
