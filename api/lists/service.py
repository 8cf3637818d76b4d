"""
List CRUD business logic.

Scope:
- read a list (whole collection or one item) and render it
- validate a POST/PUT body and write it, including group membership
- delete one item
- pick one of the above from the HTTP method and resolved resource

Row writes and membership writes are two separate provider calls. If the
membership write fails, the row stays written and the caller still gets a
database_error.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse, Response

from core.errors import BadRequestError, DatabaseError

from . import repository
from .resolver import Resource
from .schemas import ListItemWrite
from .types import ListType

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT"}


async def read_list(list_type: ListType, argument: str | None, *, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """
    Render one list (or the single `argument` item of it) as
    `{<collection key>: [...]}`.

    A read error, at open or mid-stream, returns the database_error body and
    never a partial collection.
    """
    items: list[dict[str, Any]] = []
    try:
        async with repository.open_table(list_type, argument) as rows:
            try:
                async for row in rows:
                    items.append(row.to_json())
            except repository.RowProviderError as exc:
                raise DatabaseError(
                    "Could not read from gravity database",
                    argument=argument,
                    sql_msg=exc.sql_msg,
                ) from exc
    except repository.RowProviderError as exc:
        raise DatabaseError(
            "Could not read domains from database table",
            argument=argument,
            sql_msg=exc.sql_msg,
        ) from exc

    return JSONResponse({list_type.collection_key: items}, status_code=status_code)


def _optional_string(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _group_ids(body: dict[str, Any]) -> list[int] | None:
    if "groups" not in body:
        return None
    value = body["groups"]
    # bool is an int subclass; reject it explicitly.
    if not isinstance(value, list) or not all(
        isinstance(group_id, int) and not isinstance(group_id, bool) for group_id in value
    ):
        raise BadRequestError("\"groups\" must be an array of integer group IDs")
    return value


def parse_write_body(body: Any, argument: str) -> ListItemWrite:
    """
    Validate a POST/PUT body.

    `enabled` must be a JSON boolean. `comment`, `description`, `name` and
    `oldtype` are kept only when they are non-empty strings.
    """
    if not isinstance(body, dict):
        raise BadRequestError("Invalid request body data")

    enabled = body.get("enabled")
    if not isinstance(enabled, bool):
        raise BadRequestError("No \"enabled\" boolean in body data")

    return ListItemWrite(
        argument=argument,
        enabled=enabled,
        comment=_optional_string(body, "comment"),
        description=_optional_string(body, "description"),
        name=_optional_string(body, "name"),
        oldtype=_optional_string(body, "oldtype"),
        groups=_group_ids(body),
    )


async def write_item(list_type: ListType, item: ListItemWrite, *, method: str) -> JSONResponse:
    """
    Create (POST, 201) or create-or-replace (PUT, 200) one item, then reply
    with the item as a read would.
    """
    replace = method == "PUT"
    try:
        row_id = await repository.add_to_table(list_type, item, replace=replace)
    except repository.RowProviderError as exc:
        logger.info(
            "list_write_failed list_type=%s argument=%s sql_msg=%s",
            list_type.value,
            item.argument,
            exc.sql_msg,
        )
        raise DatabaseError(
            "Could not add to gravity database",
            argument=item.argument,
            sql_msg=exc.sql_msg,
            **item.echo_fields(),
        ) from exc

    if item.groups is not None:
        try:
            await repository.edit_groups(list_type, row_id, item.groups)
        except repository.RowProviderError as exc:
            logger.warning(
                "list_groups_write_failed list_type=%s argument=%s row_id=%s sql_msg=%s",
                list_type.value,
                item.argument,
                row_id,
                exc.sql_msg,
            )
            raise DatabaseError(
                "Could not add to gravity database",
                argument=item.argument,
                sql_msg=exc.sql_msg,
                **item.echo_fields(),
            ) from exc

    status_code = status.HTTP_200_OK if replace else status.HTTP_201_CREATED
    # A renamed group is only found under its new name.
    read_back = item.name if (replace and item.name and list_type is ListType.GROUPS) else item.argument
    return await read_list(list_type, read_back, status_code=status_code)


async def delete_item(list_type: ListType, argument: str) -> Response:
    try:
        await repository.delete_from_table(list_type, argument)
    except repository.RowProviderError as exc:
        raise DatabaseError(
            "Could not remove domain from database table",
            argument=argument,
            sql_msg=exc.sql_msg,
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def dispatch(resource: Resource, method: str, body: Any = None) -> Response:
    """
    Run the operation selected by `method` on `resource`.

    `body` is the parsed JSON request body (None when absent or invalid);
    it is only looked at for POST/PUT.
    """
    method = method.upper()
    if method == "GET":
        return await read_list(resource.list_type, resource.argument)

    if not resource.modifiable:
        # e.g. DELETE /api/domains/exact
        raise BadRequestError("Invalid request: Specify list to modify")

    if method not in WRITE_METHODS and method != "DELETE":
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    if not resource.argument:
        raise BadRequestError("Invalid request: Specify item to modify")

    if method in WRITE_METHODS:
        item = parse_write_body(body, resource.argument)
        return await write_item(resource.list_type, item, method=method)

    return await delete_item(resource.list_type, resource.argument)
