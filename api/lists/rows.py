"""
Row shapes for the gravity lists and their JSON rendering.

`Row` is a union over the four row kinds; which one a record becomes is
decided by the list type it was read for (see `row_from_record`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .types import DOMAIN_TYPE_TAGS, ListType, RowKind


@dataclass(frozen=True)
class BaseRow:
    id: int
    enabled: bool
    date_added: int
    date_modified: int

    def base_fields(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "date_added": self.date_added,
            "date_modified": self.date_modified,
        }


@dataclass(frozen=True)
class GroupRow(BaseRow):
    name: str = ""
    description: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description, **self.base_fields()}


@dataclass(frozen=True)
class AdlistRow(BaseRow):
    address: str = ""
    comment: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "address": self.address, "comment": self.comment, **self.base_fields()}


@dataclass(frozen=True)
class ClientRow(BaseRow):
    client: str = ""
    comment: str | None = None
    groups: list[int] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client": self.client,
            "comment": self.comment,
            "groups": list(self.groups),
            **self.base_fields(),
        }


@dataclass(frozen=True)
class DomainRow(BaseRow):
    domain: str = ""
    type: str = ""
    comment: str | None = None
    groups: list[int] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "domain": self.domain,
            "type": self.type,
            "comment": self.comment,
            "groups": list(self.groups),
            **self.base_fields(),
        }


Row = Union[GroupRow, AdlistRow, ClientRow, DomainRow]


def parse_group_ids(raw: str | None) -> list[int]:
    """
    Parse the comma-separated group id string aggregated by the store.

    None or "" means no membership and yields [].
    """
    if not raw:
        return []
    return [int(part) for part in raw.split(",") if part.strip()]


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def row_from_record(list_type: ListType, record: Mapping[str, Any]) -> Row:
    base = {
        "id": int(record["id"]),
        "enabled": bool(record["enabled"]),
        "date_added": int(record["date_added"]),
        "date_modified": int(record["date_modified"]),
    }
    kind = list_type.kind
    if kind is RowKind.GROUP:
        return GroupRow(
            name=str(record["name"]),
            description=_optional_text(record["description"]),
            **base,
        )
    if kind is RowKind.ADLIST:
        return AdlistRow(
            address=str(record["address"]),
            comment=_optional_text(record["comment"]),
            **base,
        )
    if kind is RowKind.CLIENT:
        return ClientRow(
            client=str(record["client"]),
            comment=_optional_text(record["comment"]),
            groups=parse_group_ids(record["group_ids"]),
            **base,
        )
    return DomainRow(
        domain=str(record["domain"]),
        type=DOMAIN_TYPE_TAGS.get(int(record["type"]), "unknown"),
        comment=_optional_text(record["comment"]),
        groups=parse_group_ids(record["group_ids"]),
        **base,
    )
