"""Supabase-backed tent repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from havenox.domain.errors import ConflictError
from havenox.domain.tents import NO_ASSET, Tent
from havenox.services.tents import TentRepository

_COLUMNS = (
    "id, initiator, counterparty, asset_ref, price, status, metadata_json, "
    "created_at, updated_at, version"
)


@dataclass
class SupabaseTentRepository(TentRepository):
    """Supabase implementation for tents."""

    client: Client
    table_name: str = "tents"

    def create_tent(self, tent: Tent) -> Tent:
        """Insert a tent row and return it."""
        response = (
            self.client.table(self.table_name).insert(_to_row(tent)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create tent")
        return _from_row(response.data[0])

    def get_tent(self, tent_id: UUID) -> Tent | None:
        """Return a tent by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("id", str(tent_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _from_row(response.data[0])

    def save_tent(self, tent: Tent, expected_version: int) -> Tent:
        """Update a tent row only if its version still matches."""
        response = (
            self.client.table(self.table_name)
            .update(_to_row(tent))
            .eq("id", str(tent.id))
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise ConflictError(
                f"Tent {tent.id} changed since version {expected_version}"
            )
        return _from_row(response.data[0])

    def list_tents(self) -> list[Tent]:
        """Return all tents ordered by creation time."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .order("created_at")
            .execute()
        )
        return [_from_row(row) for row in response.data or []]


def _to_row(tent: Tent) -> dict[str, object]:
    return {
        "id": str(tent.id),
        "initiator": tent.initiator,
        "counterparty": tent.counterparty,
        "asset_ref": tent.asset_ref,
        "price": tent.price,
        "status": tent.status,
        "metadata_json": tent.metadata,
        "created_at": tent.created_at.isoformat(),
        "updated_at": tent.updated_at.isoformat(),
        "version": tent.version,
    }


def _from_row(row: dict[str, object]) -> Tent:
    metadata = row.get("metadata_json")
    return Tent(
        id=UUID(str(row["id"])),
        initiator=str(row["initiator"]),
        counterparty=str(row["counterparty"]) if row.get("counterparty") else None,
        asset_ref=str(row.get("asset_ref") or NO_ASSET),
        price=float(row.get("price") or 0),
        status=str(row["status"]),
        metadata=dict(metadata) if isinstance(metadata, dict) else {},
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
        version=int(row.get("version") or 1),
    )
