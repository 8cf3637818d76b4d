"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from . import dependencies, schemas, service

router = APIRouter()


@router.post("/api/auth")
async def login(payload: schemas.LoginRequest, request: Request) -> schemas.SessionResponse:
    client_host = request.client.host if request.client else None
    return service.login(payload, client_host=client_host)


@router.get("/api/auth")
async def session_status(
    session: schemas.SessionResponse = Depends(dependencies.get_session),
) -> schemas.SessionResponse:
    return session
