"""Domain models for escrow tents."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

AWAITING_PARTNER = "awaiting_partner"
ACTIVE = "active"
NO_ASSET = "none"


@dataclass(frozen=True)
class Tent:
    """Represents a persisted two-party escrow session."""

    id: UUID
    initiator: str
    counterparty: str | None
    asset_ref: str
    price: float
    status: str
    created_at: datetime
    updated_at: datetime
    metadata: dict[str, object] = field(default_factory=dict)
    version: int = 1

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase wire representation of the tent."""
        return {
            "id": str(self.id),
            "initiator": self.initiator,
            "counterparty": self.counterparty,
            "assetRef": self.asset_ref,
            "price": self.price,
            "status": self.status,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "version": self.version,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "Tent":
        """Build a tent from its wire representation."""
        metadata = payload.get("metadata")
        return cls(
            id=UUID(str(payload["id"])),
            initiator=str(payload["initiator"]),
            counterparty=(
                str(payload["counterparty"])
                if payload.get("counterparty") is not None
                else None
            ),
            asset_ref=str(payload.get("assetRef") or NO_ASSET),
            price=float(payload.get("price") or 0),
            status=str(payload["status"]),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
            created_at=datetime.fromisoformat(str(payload["createdAt"])),
            updated_at=datetime.fromisoformat(str(payload["updatedAt"])),
            version=int(payload.get("version") or 1),
        )
