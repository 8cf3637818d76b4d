"""
Async access to the gravity database (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    min_size = max(1, _env_int("DB_POOL_MIN_SIZE", 1))
    max_size = max(min_size, _env_int("DB_POOL_MAX_SIZE", 5))
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=min_size,
        max_size=max_size,
        command_timeout=_env_int("DB_COMMAND_TIMEOUT", 30),
    )
    logger.info("db_pool_ready min_size=%s max_size=%s", min_size, max_size)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL).

    Returns the command status tag, e.g. "DELETE 1".
    """
    return await pool().execute(sql, *args)


def affected_rows(status_tag: str) -> int:
    """
    Row count from a command status tag ("UPDATE 3" -> 3, "INSERT 0 1" -> 1).
    """
    last = (status_tag or "").rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0
