"""JSON file backed tent repository."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from havenox.domain.errors import ConflictError
from havenox.domain.tents import Tent
from havenox.services.tents import TentRepository


@dataclass
class JsonFileTentRepository(TentRepository):
    """Stores every tent as one ordered JSON array on disk."""

    path: Path

    def create_tent(self, tent: Tent) -> Tent:
        """Append a tent to the collection."""
        rows = self._read()
        if any(row.get("id") == str(tent.id) for row in rows):
            raise ConflictError(f"Tent {tent.id} already exists")
        rows.append(tent.to_payload())
        self._write(rows)
        return tent

    def get_tent(self, tent_id: UUID) -> Tent | None:
        """Return a tent by id, if present."""
        for row in self._read():
            if row.get("id") == str(tent_id):
                return Tent.from_payload(row)
        return None

    def save_tent(self, tent: Tent, expected_version: int) -> Tent:
        """Replace a stored tent, rejecting writes against a stale version."""
        rows = self._read()
        for index, row in enumerate(rows):
            if row.get("id") != str(tent.id):
                continue
            stored_version = int(row.get("version") or 1)
            if stored_version != expected_version:
                raise ConflictError(
                    f"Tent {tent.id} is at version {stored_version}, "
                    f"expected {expected_version}"
                )
            rows[index] = tent.to_payload()
            self._write(rows)
            return tent
        raise ConflictError(f"Tent {tent.id} disappeared during update")

    def list_tents(self) -> list[Tent]:
        """Return every tent in file order."""
        return [Tent.from_payload(row) for row in self._read()]

    def _read(self) -> list[dict[str, object]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        data = json.loads(raw)
        return data if isinstance(data, list) else []

    def _write(self, rows: list[dict[str, object]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
