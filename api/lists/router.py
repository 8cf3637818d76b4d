"""
List API endpoints.

One catch-all route under /api; the path is resolved against the list
prefixes in `resolver.py`. Include this router after every other /api router
so it does not shadow them.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from auth import dependencies as auth_dependencies

from . import resolver, service

router = APIRouter()

# Every method reaches dispatch so unsupported ones get its 404/400, not a 405.
LIST_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def _raw_path(request: Request) -> str:
    # Percent-encoded path, so an encoded "/" inside an argument survives
    # until the resolver decodes it.
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return request.url.path


async def _json_body(request: Request) -> Any:
    # Empty, undecodable and malformed bodies all raise ValueError.
    try:
        return await request.json()
    except ValueError:
        return None


@router.api_route("/api/{resource_path:path}", methods=LIST_METHODS)
async def list_endpoint(
    request: Request,
    resource_path: str,
    _: dict = Depends(auth_dependencies.require_session),
) -> Response:
    resource = resolver.resolve(_raw_path(request))
    if resource is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    body = None
    if request.method in service.WRITE_METHODS:
        body = await _json_body(request)
    return await service.dispatch(resource, request.method, body)
