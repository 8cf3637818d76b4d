"""
Shared fixtures: an in-memory gravity store standing in for the asyncpg
row provider, and a TestClient on the real app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi.testclient import TestClient

from lists import repository
from lists.rows import row_from_record
from lists.schemas import ListItemWrite
from lists.types import DOMAIN_TYPE_TAGS, ListType, RowKind, domain_type_code

_KEY_COLUMNS = {
    RowKind.GROUP: "name",
    RowKind.ADLIST: "address",
    RowKind.CLIENT: "client",
    RowKind.DOMAIN: "domain",
}


class InMemoryGravity:
    """
    Mirrors the semantics of `lists.repository` over plain dicts.

    `fail_on` maps an operation name ("open", "iterate", "add", "groups",
    "delete") to the sql_msg the next call of it should fail with.
    """

    def __init__(self) -> None:
        self.tables: dict[RowKind, list[dict[str, Any]]] = {kind: [] for kind in RowKind}
        self.memberships: dict[tuple[RowKind, int], list[int]] = {}
        self.fail_on: dict[str, str] = {}
        self.opened = 0
        self.closed = 0
        self._next_id = 1
        self._clock = 1_700_000_000

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def _fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise repository.RowProviderError(self.fail_on.pop(operation))

    def _matches(self, list_type: ListType, record: dict[str, Any], argument: str | None) -> bool:
        kind = list_type.kind
        if kind is RowKind.DOMAIN and record["type"] not in list_type.domain_codes:
            return False
        return argument is None or record[_KEY_COLUMNS[kind]] == argument

    def _as_store_record(self, kind: RowKind, record: dict[str, Any]) -> dict[str, Any]:
        out = dict(record)
        if kind in (RowKind.CLIENT, RowKind.DOMAIN):
            group_ids = self.memberships.get((kind, record["id"]))
            out["group_ids"] = ",".join(str(g) for g in group_ids) if group_ids else None
        return out

    def seed(self, list_type: ListType, key: str, **fields: Any) -> dict[str, Any]:
        kind = list_type.kind
        record: dict[str, Any] = {
            "id": self._next_id,
            _KEY_COLUMNS[kind]: key,
            "enabled": fields.pop("enabled", True),
            "date_added": self._tick(),
            "date_modified": self._clock,
        }
        if kind is RowKind.GROUP:
            record["description"] = fields.pop("description", None)
        else:
            record["comment"] = fields.pop("comment", None)
        if kind is RowKind.DOMAIN:
            (record["type"],) = list_type.domain_codes
        groups = fields.pop("groups", None)
        assert not fields, f"unknown seed fields: {fields}"
        self._next_id += 1
        self.tables[kind].append(record)
        if groups is not None:
            self.memberships[(kind, record["id"])] = list(groups)
        return record

    @asynccontextmanager
    async def open_table(self, list_type: ListType, argument: str | None):
        self._fail("open")
        self.opened += 1
        kind = list_type.kind
        records = [
            self._as_store_record(kind, r)
            for r in self.tables[kind]
            if self._matches(list_type, r, argument)
        ]

        async def rows():
            # An injected "iterate" failure fires after the first row.
            for record in records:
                yield row_from_record(list_type, record)
                self._fail("iterate")
            self._fail("iterate")

        try:
            yield rows()
        finally:
            self.closed += 1

    async def add_to_table(self, list_type: ListType, item: ListItemWrite, *, replace: bool) -> int:
        self._fail("add")
        kind = list_type.kind
        key_column = _KEY_COLUMNS[kind]
        text_column = "description" if kind is RowKind.GROUP else "comment"
        text_value = item.description if kind is RowKind.GROUP else item.comment

        if kind is RowKind.DOMAIN:
            (type_code,) = list_type.domain_codes
            if replace and item.oldtype is not None:
                old_code = domain_type_code(item.oldtype)
                if old_code is None:
                    raise repository.RowProviderError(f"Invalid oldtype: {item.oldtype}")
                for record in self.tables[kind]:
                    if record["domain"] == item.argument and record["type"] == old_code:
                        record.update(type=type_code, enabled=item.enabled, comment=item.comment)
                        record["date_modified"] = self._tick()
                        return record["id"]

        if kind is RowKind.GROUP and replace and item.name and item.name != item.argument:
            for record in self.tables[kind]:
                if record["name"] == item.argument:
                    record.update(name=item.name, enabled=item.enabled, description=item.description)
                    record["date_modified"] = self._tick()
                    return record["id"]
            raise repository.RowProviderError(f"No such group: {item.argument}")

        existing = [r for r in self.tables[kind] if self._matches(list_type, r, item.argument)]
        if existing:
            if not replace:
                raise repository.RowProviderError(
                    f"duplicate key value violates unique constraint on {key_column}"
                )
            record = existing[0]
            record["enabled"] = item.enabled
            record[text_column] = text_value
            record["date_modified"] = self._tick()
            return record["id"]

        fields: dict[str, Any] = {"enabled": item.enabled}
        fields["description" if kind is RowKind.GROUP else "comment"] = text_value
        return self.seed(list_type, item.argument, **fields)["id"]

    async def edit_groups(self, list_type: ListType, row_id: int, group_ids: list[int]) -> None:
        self._fail("groups")
        kind = list_type.kind
        if kind is RowKind.GROUP:
            raise repository.RowProviderError("Groups cannot be assigned to groups.")
        known = {g["id"] for g in self.tables[RowKind.GROUP]} | {0}
        unknown = [g for g in group_ids if g not in known]
        if unknown:
            raise repository.RowProviderError(f"violates foreign key constraint: group {unknown[0]}")
        self.memberships[(kind, row_id)] = list(dict.fromkeys(group_ids))

    async def delete_from_table(self, list_type: ListType, argument: str) -> None:
        self._fail("delete")
        kind = list_type.kind
        before = len(self.tables[kind])
        self.tables[kind] = [r for r in self.tables[kind] if not self._matches(list_type, r, argument)]
        if len(self.tables[kind]) == before:
            raise repository.RowProviderError(f"No such {kind.value}: {argument}")

    def domain(self, domain: str, tag: str) -> dict[str, Any] | None:
        for record in self.tables[RowKind.DOMAIN]:
            if record["domain"] == domain and DOMAIN_TYPE_TAGS[record["type"]] == tag:
                return record
        return None


@pytest.fixture
def store(monkeypatch) -> InMemoryGravity:
    fake = InMemoryGravity()
    monkeypatch.setattr(repository, "open_table", fake.open_table)
    monkeypatch.setattr(repository, "add_to_table", fake.add_to_table)
    monkeypatch.setattr(repository, "edit_groups", fake.edit_groups)
    monkeypatch.setattr(repository, "delete_from_table", fake.delete_from_table)
    return fake


@pytest.fixture
def client(monkeypatch, store) -> TestClient:
    """TestClient with authentication disabled. Lifespan (DB pool) is not run."""
    monkeypatch.delenv("WEB_PASSWORD_HASH", raising=False)
    from main import app

    return TestClient(app)
