"""
Request path -> list resource resolution.

Prefixes are kept in one table and tried longest first, so
`/api/domains/allow/exact` is always tested before `/api/domains/allow`
and `/api/domains`.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

from .types import ListType


@dataclass(frozen=True)
class Resource:
    list_type: ListType
    argument: str | None
    modifiable: bool


PREFIX_RULES: tuple[tuple[str, ListType], ...] = (
    ("/api/groups", ListType.GROUPS),
    ("/api/adlists", ListType.ADLISTS),
    ("/api/clients", ListType.CLIENTS),
    ("/api/domains/allow/exact", ListType.ALLOW_EXACT),
    ("/api/domains/allow/regex", ListType.ALLOW_REGEX),
    ("/api/domains/allow", ListType.ALLOW_ALL),
    ("/api/domains/deny/exact", ListType.DENY_EXACT),
    ("/api/domains/deny/regex", ListType.DENY_REGEX),
    ("/api/domains/deny", ListType.DENY_ALL),
    ("/api/domains/exact", ListType.ALL_EXACT),
    ("/api/domains/regex", ListType.ALL_REGEX),
    ("/api/domains", ListType.ALL_ALL),
)

_ORDERED_RULES = sorted(PREFIX_RULES, key=lambda rule: len(rule[0]), reverse=True)


def _match(path: str, prefix: str) -> str | None:
    """
    Return the remainder of `path` after `prefix`, or None if it does not match.

    A match must end on a segment boundary: `/api/groupsX` does not match
    `/api/groups`.
    """
    if path == prefix:
        return ""
    if path.startswith(prefix + "/"):
        return path[len(prefix) + 1 :]
    return None


def resolve(path: str) -> Resource | None:
    """
    Resolve a raw (still percent-encoded) request path.

    Returns None when no list prefix matches. The argument is URL-decoded
    once; an empty remainder becomes None.
    """
    for prefix, list_type in _ORDERED_RULES:
        remainder = _match(path, prefix)
        if remainder is None:
            continue
        argument = unquote(remainder) if remainder else None
        return Resource(list_type=list_type, argument=argument, modifiable=list_type.modifiable)
    return None
