"""Tent lifecycle service."""

import asyncio
import html
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from havenox.adapters.sendgrid_client import MailClient
from havenox.domain.errors import NotFoundError, ValidationError
from havenox.domain.tents import ACTIVE, AWAITING_PARTNER, NO_ASSET, Tent

logger = logging.getLogger(__name__)


class TentRepository(Protocol):
    """Persistence interface for tents."""

    def create_tent(self, tent: Tent) -> Tent:
        """Persist a new tent and return it."""

    def get_tent(self, tent_id: UUID) -> Tent | None:
        """Return a tent by id, if present."""

    def save_tent(self, tent: Tent, expected_version: int) -> Tent:
        """Replace a tent whose stored version equals ``expected_version``."""

    def list_tents(self) -> list[Tent]:
        """Return every tent in creation order."""


class TentBroadcaster(Protocol):
    """Receives the full tent record after each persisted mutation."""

    async def on_session_changed(self, tent: Tent) -> None:
        """Fan the updated tent out to connected participants."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TentService:
    """Application service for creating, joining and updating tents."""

    repository: TentRepository
    broadcaster: TentBroadcaster
    mail_client: MailClient | None = None
    frontend_base_url: str = "http://localhost:5173"
    clock: Callable[[], datetime] = _utcnow
    _locks: dict[UUID, asyncio.Lock] = field(
        default_factory=dict, init=False, repr=False
    )
    _lock_users: dict[UUID, int] = field(default_factory=dict, init=False, repr=False)

    async def create(  # noqa: PLR0913
        self,
        initiator: str,
        counterparty: str | None = None,
        asset_ref: str | None = None,
        price: float | None = None,
        metadata: dict[str, object] | None = None,
    ) -> Tent:
        """Create a tent and invite the counterparty when mail is configured."""
        if not initiator or not initiator.strip():
            raise ValidationError("Initiator address is required")
        if price is not None and price < 0:
            raise ValidationError("Price must be non-negative")
        counterparty = (counterparty or "").strip() or None
        now = self.clock()
        tent = Tent(
            id=uuid4(),
            initiator=initiator,
            counterparty=counterparty,
            asset_ref=asset_ref or NO_ASSET,
            price=float(price or 0),
            status=ACTIVE if counterparty else AWAITING_PARTNER,
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        created = self.repository.create_tent(tent)
        logger.info("Tent created", extra={"tent_id": str(created.id)})
        if created.counterparty and self.mail_client is not None:
            await self._send_invitation(created)
        return created

    async def join(self, tent_id: UUID, counterparty: str) -> Tent:
        """Attach the counterparty and activate the tent."""
        if not counterparty or not counterparty.strip():
            raise ValidationError("Counterparty is required")
        self.get(tent_id)
        async with self._tent_lock(tent_id):
            tent = self.get(tent_id)
            joined = replace(
                tent,
                counterparty=counterparty,
                status=ACTIVE,
                updated_at=self.clock(),
                version=tent.version + 1,
            )
            saved = self.repository.save_tent(joined, expected_version=tent.version)
            await self.broadcaster.on_session_changed(saved)
        return saved

    async def update(
        self,
        tent_id: UUID,
        status: str | None = None,
        metadata_patch: dict[str, object] | None = None,
    ) -> Tent:
        """Apply a status and merge metadata into an existing tent."""
        self.get(tent_id)
        async with self._tent_lock(tent_id):
            tent = self.get(tent_id)
            metadata = dict(tent.metadata)
            if metadata_patch:
                metadata.update(metadata_patch)
            updated = replace(
                tent,
                status=status or tent.status,
                metadata=metadata,
                updated_at=self.clock(),
                version=tent.version + 1,
            )
            saved = self.repository.save_tent(updated, expected_version=tent.version)
            await self.broadcaster.on_session_changed(saved)
        return saved

    def get(self, tent_id: UUID) -> Tent:
        """Return a tent or raise NotFoundError."""
        tent = self.repository.get_tent(tent_id)
        if tent is None:
            raise NotFoundError("Tent not found")
        return tent

    def list_tents(self) -> list[Tent]:
        """Return all tents in creation order."""
        return self.repository.list_tents()

    @asynccontextmanager
    async def _tent_lock(self, tent_id: UUID) -> AsyncIterator[None]:
        """Hold a per-tent lock, dropped once no task holds or awaits it."""
        lock = self._locks.setdefault(tent_id, asyncio.Lock())
        self._lock_users[tent_id] = self._lock_users.get(tent_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[tent_id] -= 1
            if not self._lock_users[tent_id]:
                del self._lock_users[tent_id]
                del self._locks[tent_id]

    async def _send_invitation(self, tent: Tent) -> None:
        if self.mail_client is None or tent.counterparty is None:
            return
        join_url = f"{self.frontend_base_url.rstrip('/')}/tent/{tent.id}"
        try:
            await self.mail_client.send_email(
                to=tent.counterparty,
                subject=f"Invitation to join HavenOx Tent {tent.id}",
                html=_invitation_html(tent, join_url),
            )
        except Exception:
            logger.exception(
                "Failed to send tent invitation", extra={"tent_id": str(tent.id)}
            )
            return
        logger.info("Invitation email sent", extra={"tent_id": str(tent.id)})


def _invitation_html(tent: Tent, join_url: str) -> str:
    """Render the invitation email body."""
    image = tent.metadata.get("image")
    image_tag = (
        f'<img src="{html.escape(str(image))}" width="200" '
        'style="border-radius:10px;margin:10px 0;" />'
        if image
        else ""
    )
    price = f"{tent.price:g}"
    return (
        '<div style="font-family:Arial,sans-serif;padding:20px">'
        '<h2 style="color:#00FFA3">You\'ve been invited to join a HavenOx Tent</h2>'
        f"<p><b>{html.escape(tent.initiator)}</b> created a Tent for NFT "
        f"<b>{html.escape(tent.asset_ref)}</b> worth <b>{price} KAS</b>.</p>"
        f"{image_tag}"
        "<p>Click below to join:</p>"
        f'<a href="{html.escape(join_url)}" style="display:inline-block;'
        "background:#00FFA3;color:#000;padding:10px 15px;border-radius:8px;"
        'text-decoration:none;">Join Tent</a>'
        "</div>"
    )
