"""Tests for tent store adapters."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from havenox.adapters.json_tent_repository import JsonFileTentRepository
from havenox.adapters.supabase_tent_repository import SupabaseTentRepository
from havenox.domain.errors import ConflictError
from havenox.domain.tents import Tent

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


def _tent(**overrides: object) -> Tent:
    values: dict[str, object] = {
        "id": uuid4(),
        "initiator": "kaspa:abc",
        "counterparty": None,
        "asset_ref": "nft-1",
        "price": 12.5,
        "status": "awaiting_partner",
        "created_at": NOW,
        "updated_at": NOW,
        "metadata": {"image": "a.png"},
    }
    values.update(overrides)
    return Tent(**values)  # type: ignore[arg-type]


def test_json_repository_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "data" / "tents.json"
    first = _tent()
    second = _tent(initiator="kaspa:def")

    writer = JsonFileTentRepository(path)
    writer.create_tent(first)
    writer.create_tent(second)

    reader = JsonFileTentRepository(path)
    assert reader.get_tent(first.id) == first
    assert [tent.id for tent in reader.list_tents()] == [first.id, second.id]


def test_json_repository_missing_file_is_empty(tmp_path) -> None:
    repository = JsonFileTentRepository(tmp_path / "absent.json")

    assert repository.list_tents() == []
    assert repository.get_tent(uuid4()) is None


def test_json_repository_rejects_stale_version(tmp_path) -> None:
    repository = JsonFileTentRepository(tmp_path / "tents.json")
    tent = repository.create_tent(_tent())
    repository.save_tent(replace(tent, status="active", version=2), expected_version=1)

    with pytest.raises(ConflictError):
        repository.save_tent(
            replace(tent, status="cancelled", version=2), expected_version=1
        )

    stored = repository.get_tent(tent.id)
    assert stored is not None
    assert stored.status == "active"


def test_json_repository_rejects_duplicate_id(tmp_path) -> None:
    repository = JsonFileTentRepository(tmp_path / "tents.json")
    tent = repository.create_tent(_tent())

    with pytest.raises(ConflictError):
        repository.create_tent(tent)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _row(tent: Tent) -> dict[str, object]:
    return {
        "id": str(tent.id),
        "initiator": tent.initiator,
        "counterparty": tent.counterparty,
        "asset_ref": tent.asset_ref,
        "price": tent.price,
        "status": tent.status,
        "metadata_json": tent.metadata,
        "created_at": "2026-03-01T09:30:00+00:00",
        "updated_at": "2026-03-01T09:30:00+00:00",
        "version": tent.version,
    }


def test_supabase_tent_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("tents")
    tent = _tent()
    table.queue("insert", [_row(tent)])
    table.queue("select", [_row(tent)])

    repository = SupabaseTentRepository(client)  # type: ignore[arg-type]
    created = repository.create_tent(tent)
    fetched = repository.get_tent(tent.id)

    assert created == tent
    assert fetched == tent
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["metadata_json"] == {"image": "a.png"}


def test_supabase_tent_repository_update_filters_on_version() -> None:
    client = FakeSupabaseClient()
    table = client.table("tents")
    tent = _tent(status="active", counterparty="kaspa:buyer", version=3)
    table.queue("update", [_row(tent)])

    repository = SupabaseTentRepository(client)  # type: ignore[arg-type]
    saved = repository.save_tent(tent, expected_version=2)

    assert saved.counterparty == "kaspa:buyer"
    assert ("id", str(tent.id)) in table.last_filters
    assert ("version", 2) in table.last_filters


def test_supabase_tent_repository_stale_update_conflicts() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseTentRepository(client)  # type: ignore[arg-type]

    with pytest.raises(ConflictError):
        repository.save_tent(_tent(version=2), expected_version=1)


def test_supabase_tent_repository_missing_and_list() -> None:
    client = FakeSupabaseClient()
    table = client.table("tents")
    tent = _tent()
    table.queue("select", [])
    table.queue("select", [_row(tent)])

    repository = SupabaseTentRepository(client)  # type: ignore[arg-type]

    assert repository.get_tent(uuid4()) is None
    assert [item.id for item in repository.list_tents()] == [tent.id]
