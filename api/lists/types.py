"""
List types and their per-type attributes.

A `ListType` alone decides which table is queried, which domain type codes
it covers, whether it can be modified, and how its rows are rendered.
"""

from __future__ import annotations

from enum import Enum

# domainlist.type codes in the gravity schema.
ALLOW_EXACT_CODE = 0
DENY_EXACT_CODE = 1
ALLOW_REGEX_CODE = 2
DENY_REGEX_CODE = 3

DOMAIN_TYPE_TAGS: dict[int, str] = {
    ALLOW_EXACT_CODE: "allow-exact",
    DENY_EXACT_CODE: "deny-exact",
    ALLOW_REGEX_CODE: "allow-regex",
    DENY_REGEX_CODE: "deny-regex",
}


class RowKind(str, Enum):
    GROUP = "group"
    ADLIST = "adlist"
    CLIENT = "client"
    DOMAIN = "domain"


class ListType(str, Enum):
    GROUPS = "groups"
    ADLISTS = "adlists"
    CLIENTS = "clients"
    ALLOW_EXACT = "allow-exact"
    ALLOW_REGEX = "allow-regex"
    ALLOW_ALL = "allow-all"
    DENY_EXACT = "deny-exact"
    DENY_REGEX = "deny-regex"
    DENY_ALL = "deny-all"
    ALL_EXACT = "all-exact"
    ALL_REGEX = "all-regex"
    ALL_ALL = "all-all"

    @property
    def kind(self) -> RowKind:
        return _KINDS.get(self, RowKind.DOMAIN)

    @property
    def modifiable(self) -> bool:
        return self in _MODIFIABLE

    @property
    def collection_key(self) -> str:
        return _COLLECTION_KEYS[self.kind]

    @property
    def domain_codes(self) -> tuple[int, ...]:
        """Domain type codes covered by this list (empty for non-domain lists)."""
        return _DOMAIN_CODES.get(self, ())


_KINDS = {
    ListType.GROUPS: RowKind.GROUP,
    ListType.ADLISTS: RowKind.ADLIST,
    ListType.CLIENTS: RowKind.CLIENT,
}

_COLLECTION_KEYS = {
    RowKind.GROUP: "groups",
    RowKind.ADLIST: "adlists",
    RowKind.CLIENT: "clients",
    RowKind.DOMAIN: "domains",
}

_MODIFIABLE = frozenset(
    {
        ListType.GROUPS,
        ListType.ADLISTS,
        ListType.CLIENTS,
        ListType.ALLOW_EXACT,
        ListType.ALLOW_REGEX,
        ListType.DENY_EXACT,
        ListType.DENY_REGEX,
    }
)

_DOMAIN_CODES = {
    ListType.ALLOW_EXACT: (ALLOW_EXACT_CODE,),
    ListType.ALLOW_REGEX: (ALLOW_REGEX_CODE,),
    ListType.ALLOW_ALL: (ALLOW_EXACT_CODE, ALLOW_REGEX_CODE),
    ListType.DENY_EXACT: (DENY_EXACT_CODE,),
    ListType.DENY_REGEX: (DENY_REGEX_CODE,),
    ListType.DENY_ALL: (DENY_EXACT_CODE, DENY_REGEX_CODE),
    ListType.ALL_EXACT: (ALLOW_EXACT_CODE, DENY_EXACT_CODE),
    ListType.ALL_REGEX: (ALLOW_REGEX_CODE, DENY_REGEX_CODE),
    ListType.ALL_ALL: (ALLOW_EXACT_CODE, DENY_EXACT_CODE, ALLOW_REGEX_CODE, DENY_REGEX_CODE),
}


def domain_type_code(tag: str) -> int | None:
    """
    Map a domain type tag to its code.

    Accepts "allow-exact" as well as "allow/exact" (case-insensitive).
    Returns None for unknown tags.
    """
    normalized = (tag or "").strip().lower().replace("/", "-")
    for code, known in DOMAIN_TYPE_TAGS.items():
        if known == normalized:
            return code
    return None
