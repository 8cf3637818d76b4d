"""
Gravity list persistence (raw SQL).

This is the row provider behind the list endpoints:
- `open_table`: scoped read cursor over one list type
- `add_to_table`: insert (POST) or insert-or-replace (PUT)
- `edit_groups`: replace the group membership of one row
- `delete_from_table`: remove one item

Every store failure leaves this module as `RowProviderError` carrying the
engine's message, so the service can echo it back as `sql_msg`.

Timestamps are UNIX epoch seconds (see the gravity migration).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from core import db

from .rows import Row, row_from_record
from .schemas import ListItemWrite
from .types import ListType, RowKind, domain_type_code

logger = logging.getLogger(__name__)

# Rows pulled from the server-side cursor per round trip.
FETCH_BATCH = 100

# Server-side errors, client-side driver errors (bad parameters, closed
# connections) and network failures.
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class RowProviderError(RuntimeError):
    def __init__(self, sql_msg: str | None) -> None:
        self.sql_msg = sql_msg
        super().__init__(sql_msg or "Row provider error.")


# (table, key column, membership table, membership row column)
_TABLES: dict[RowKind, tuple[str, str, str | None, str | None]] = {
    RowKind.GROUP: ('"group"', "name", None, None),
    RowKind.ADLIST: ("adlist", "address", "adlist_by_group", "adlist_id"),
    RowKind.CLIENT: ("client", "client", "client_by_group", "client_id"),
    RowKind.DOMAIN: ("domainlist", "domain", "domainlist_by_group", "domainlist_id"),
}

_SELECT_GROUPS = """
    SELECT id, name, description, enabled, date_added, date_modified
    FROM "group"
    WHERE ($1::text IS NULL OR name = $1)
    ORDER BY id
"""

_SELECT_ADLISTS = """
    SELECT id, address, comment, enabled, date_added, date_modified
    FROM adlist
    WHERE ($1::text IS NULL OR address = $1)
    ORDER BY id
"""

_SELECT_CLIENTS = """
    SELECT
      c.id, c.client, c.comment, c.enabled, c.date_added, c.date_modified,
      (
        SELECT string_agg(g.group_id::text, ',' ORDER BY g.group_id)
        FROM client_by_group g
        WHERE g.client_id = c.id
      ) AS group_ids
    FROM client c
    WHERE ($1::text IS NULL OR c.client = $1)
    ORDER BY c.id
"""

_SELECT_DOMAINS = """
    SELECT
      d.id, d.type, d.domain, d.comment, d.enabled, d.date_added, d.date_modified,
      (
        SELECT string_agg(g.group_id::text, ',' ORDER BY g.group_id)
        FROM domainlist_by_group g
        WHERE g.domainlist_id = d.id
      ) AS group_ids
    FROM domainlist d
    WHERE d.type = ANY($2::smallint[])
      AND ($1::text IS NULL OR d.domain = $1)
    ORDER BY d.id
"""


def _select_statement(list_type: ListType, argument: str | None) -> tuple[str, list[Any]]:
    kind = list_type.kind
    if kind is RowKind.GROUP:
        return _SELECT_GROUPS, [argument]
    if kind is RowKind.ADLIST:
        return _SELECT_ADLISTS, [argument]
    if kind is RowKind.CLIENT:
        return _SELECT_CLIENTS, [argument]
    return _SELECT_DOMAINS, [argument, list(list_type.domain_codes)]


async def _iter_rows(list_type: ListType, cursor: asyncpg.cursor.Cursor) -> AsyncIterator[Row]:
    while True:
        try:
            batch = await cursor.fetch(FETCH_BATCH)
        except STORE_ERRORS as exc:
            raise RowProviderError(str(exc)) from exc
        if not batch:
            return
        for record in batch:
            try:
                yield row_from_record(list_type, record)
            except (KeyError, TypeError, ValueError) as exc:
                raise RowProviderError(f"Malformed {list_type.kind.value} row: {exc}") from exc


@asynccontextmanager
async def open_table(list_type: ListType, argument: str | None) -> AsyncIterator[AsyncIterator[Row]]:
    """
    Open a read over one list type, optionally filtered to `argument`.

    Yields an async iterator of rows. The connection and its read-only
    transaction are released when the block exits, however it exits.
    Raises RowProviderError if the query cannot be opened.
    """
    sql, args = _select_statement(list_type, argument)
    try:
        async with db.pool().acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction(readonly=True):
                cursor = await conn.cursor(sql, *args)
                yield _iter_rows(list_type, cursor)
    except STORE_ERRORS as exc:
        raise RowProviderError(str(exc)) from exc


async def _write_group(conn: asyncpg.Connection, item: ListItemWrite, *, replace: bool) -> Any:
    if not replace:
        return await conn.fetchval(
            """
            INSERT INTO "group" (name, enabled, description)
            VALUES ($1, $2, $3)
            RETURNING id
            """,
            item.argument,
            item.enabled,
            item.description,
        )

    if item.name is not None and item.name != item.argument:
        row_id = await conn.fetchval(
            """
            UPDATE "group"
            SET name = $2,
                enabled = $3,
                description = $4,
                date_modified = CAST(EXTRACT(EPOCH FROM now()) AS bigint)
            WHERE name = $1
            RETURNING id
            """,
            item.argument,
            item.name,
            item.enabled,
            item.description,
        )
        if row_id is None:
            raise RowProviderError(f"No such group: {item.argument}")
        return row_id

    return await conn.fetchval(
        """
        INSERT INTO "group" (name, enabled, description)
        VALUES ($1, $2, $3)
        ON CONFLICT (name) DO UPDATE
        SET enabled = EXCLUDED.enabled,
            description = EXCLUDED.description,
            date_modified = CAST(EXTRACT(EPOCH FROM now()) AS bigint)
        RETURNING id
        """,
        item.argument,
        item.enabled,
        item.description,
    )


async def _write_commented(
    conn: asyncpg.Connection,
    table: str,
    key_column: str,
    item: ListItemWrite,
    *,
    replace: bool,
) -> Any:
    # Shared by adlist and client: (key, enabled, comment) rows.
    if not replace:
        return await conn.fetchval(
            f"""
            INSERT INTO {table} ({key_column}, enabled, comment)
            VALUES ($1, $2, $3)
            RETURNING id
            """,
            item.argument,
            item.enabled,
            item.comment,
        )
    return await conn.fetchval(
        f"""
        INSERT INTO {table} ({key_column}, enabled, comment)
        VALUES ($1, $2, $3)
        ON CONFLICT ({key_column}) DO UPDATE
        SET enabled = EXCLUDED.enabled,
            comment = EXCLUDED.comment,
            date_modified = CAST(EXTRACT(EPOCH FROM now()) AS bigint)
        RETURNING id
        """,
        item.argument,
        item.enabled,
        item.comment,
    )


async def _write_domain(
    conn: asyncpg.Connection,
    list_type: ListType,
    item: ListItemWrite,
    *,
    replace: bool,
) -> Any:
    (type_code,) = list_type.domain_codes
    if not replace:
        return await conn.fetchval(
            """
            INSERT INTO domainlist (domain, type, enabled, comment)
            VALUES ($1, $2, $3, $4)
            RETURNING id
            """,
            item.argument,
            type_code,
            item.enabled,
            item.comment,
        )

    if item.oldtype is not None:
        old_code = domain_type_code(item.oldtype)
        if old_code is None:
            raise RowProviderError(f"Invalid oldtype: {item.oldtype}")
        # Retype keeps id and date_added. Falls through to a plain upsert
        # when nothing is stored under the old type.
        row_id = await conn.fetchval(
            """
            UPDATE domainlist
            SET type = $3,
                enabled = $4,
                comment = $5,
                date_modified = CAST(EXTRACT(EPOCH FROM now()) AS bigint)
            WHERE domain = $1
              AND type = $2
            RETURNING id
            """,
            item.argument,
            old_code,
            type_code,
            item.enabled,
            item.comment,
        )
        if row_id is not None:
            return row_id

    return await conn.fetchval(
        """
        INSERT INTO domainlist (domain, type, enabled, comment)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (domain, type) DO UPDATE
        SET enabled = EXCLUDED.enabled,
            comment = EXCLUDED.comment,
            date_modified = CAST(EXTRACT(EPOCH FROM now()) AS bigint)
        RETURNING id
        """,
        item.argument,
        type_code,
        item.enabled,
        item.comment,
    )


async def add_to_table(list_type: ListType, item: ListItemWrite, *, replace: bool) -> int:
    """
    Insert (replace=False) or insert-or-replace (replace=True) one item.

    Returns the row id. An existing item on insert is a RowProviderError.
    """
    kind = list_type.kind
    try:
        async with db.pool().acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction():
                if kind is RowKind.GROUP:
                    row_id = await _write_group(conn, item, replace=replace)
                elif kind is RowKind.DOMAIN:
                    row_id = await _write_domain(conn, list_type, item, replace=replace)
                else:
                    table, key_column, _, _ = _TABLES[kind]
                    row_id = await _write_commented(conn, table, key_column, item, replace=replace)
    except STORE_ERRORS as exc:
        raise RowProviderError(str(exc)) from exc

    if row_id is None:
        raise RowProviderError(f"Failed to write {kind.value}: {item.argument}")
    return int(row_id)


async def edit_groups(list_type: ListType, row_id: int, group_ids: list[int]) -> None:
    """
    Replace the group membership of one row with `group_ids`.
    """
    _, _, membership_table, member_column = _TABLES[list_type.kind]
    if membership_table is None:
        raise RowProviderError("Groups cannot be assigned to groups.")

    records = [(row_id, group_id) for group_id in dict.fromkeys(group_ids)]
    try:
        async with db.pool().acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction():
                await conn.execute(
                    f"DELETE FROM {membership_table} WHERE {member_column} = $1",
                    row_id,
                )
                if records:
                    await conn.executemany(
                        f"INSERT INTO {membership_table} ({member_column}, group_id) VALUES ($1, $2)",
                        records,
                    )
    except STORE_ERRORS as exc:
        raise RowProviderError(str(exc)) from exc


async def delete_from_table(list_type: ListType, argument: str) -> None:
    """
    Delete one item. Deleting an item that does not exist is an error.
    """
    kind = list_type.kind
    table, key_column, _, _ = _TABLES[kind]
    try:
        if kind is RowKind.DOMAIN:
            status_tag = await db.execute(
                "DELETE FROM domainlist WHERE domain = $1 AND type = ANY($2::smallint[])",
                argument,
                list(list_type.domain_codes),
            )
        else:
            status_tag = await db.execute(
                f"DELETE FROM {table} WHERE {key_column} = $1",
                argument,
            )
    except STORE_ERRORS as exc:
        raise RowProviderError(str(exc)) from exc

    if db.affected_rows(status_tag) == 0:
        raise RowProviderError(f"No such {kind.value}: {argument}")
    logger.info("list_item_deleted list_type=%s argument=%s", list_type.value, argument)
