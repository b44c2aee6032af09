"""Room-scoped fan-out of tent events to connected participants."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from havenox.domain.errors import ValidationError
from havenox.domain.tents import Tent

logger = logging.getLogger(__name__)

PRESENCE_UPDATE = "presenceUpdate"
MEMBER_JOINED = "memberJoined"
CHAT_MESSAGE = "chatMessage"
STATUS_UPDATE = "statusUpdate"
SESSION_CHANGED = "sessionChanged"


class Connection(Protocol):
    """A connected participant able to receive JSON events."""

    id: str

    async def send_json(self, event: dict[str, object]) -> None:
        """Deliver one event to the participant."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _event(event_type: str, payload: dict[str, object]) -> dict[str, object]:
    return {"type": event_type, "payload": payload}


@dataclass
class BroadcastCoordinator:
    """Tracks room membership and relays events to every member of a room.

    Rooms are keyed by tent id. Sends to one room are serialized so every
    member observes events in the same order. A member whose send fails is
    dropped as if it had disconnected.
    """

    clock: Callable[[], datetime] = _utcnow
    connections: dict[str, Connection] = field(default_factory=dict)
    rooms: dict[str, set[str]] = field(default_factory=dict)
    memberships: defaultdict[str, set[str]] = field(
        default_factory=lambda: defaultdict(set)
    )
    _room_locks: defaultdict[str, asyncio.Lock] = field(
        default_factory=lambda: defaultdict(asyncio.Lock), init=False, repr=False
    )

    def connect(self, connection: Connection) -> None:
        """Register a newly opened connection."""
        self.connections[connection.id] = connection
        logger.info("Participant connected", extra={"connection_id": connection.id})

    def presence(self, session_id: str) -> int:
        """Return the number of connections joined to a room."""
        return len(self.rooms.get(session_id, ()))

    async def join_room(self, connection_id: str, session_id: str) -> None:
        """Add a connection to a room and announce it to every member."""
        if connection_id not in self.connections:
            raise ValidationError(f"Unknown connection {connection_id}")
        self.rooms.setdefault(session_id, set()).add(connection_id)
        self.memberships[connection_id].add(session_id)
        await self._fan_out(
            session_id,
            _event(
                PRESENCE_UPDATE,
                {"sessionId": session_id, "online": self.presence(session_id)},
            ),
            _event(
                MEMBER_JOINED,
                {
                    "sessionId": session_id,
                    "connectionId": connection_id,
                    "message": f"{connection_id} joined {session_id}",
                },
            ),
        )

    async def relay_chat(self, session_id: str, sender: str, message: str) -> None:
        """Relay a chat line to the room."""
        await self._fan_out(
            session_id,
            _event(
                CHAT_MESSAGE,
                {
                    "sessionId": session_id,
                    "sender": sender,
                    "message": message,
                    "time": self.clock().isoformat(),
                },
            ),
        )

    async def relay_status(self, session_id: str, sender: str, status: str) -> None:
        """Relay an advisory trade status to the room."""
        await self._fan_out(
            session_id,
            _event(
                STATUS_UPDATE,
                {
                    "sessionId": session_id,
                    "sender": sender,
                    "status": status,
                    "time": self.clock().isoformat(),
                },
            ),
        )

    async def on_session_changed(self, tent: Tent) -> None:
        """Push the full updated tent record to its room."""
        await self._fan_out(str(tent.id), _event(SESSION_CHANGED, tent.to_payload()))

    async def leave(self, connection_id: str) -> None:
        """Forget a connection and re-announce presence in its former rooms."""
        self.connections.pop(connection_id, None)
        session_ids = self.memberships.pop(connection_id, set())
        for session_id in sorted(session_ids):
            members = self.rooms.get(session_id)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                self.rooms.pop(session_id, None)
                lock = self._room_locks.get(session_id)
                if lock is not None and not lock.locked():
                    del self._room_locks[session_id]
                continue
            await self._fan_out(
                session_id,
                _event(
                    PRESENCE_UPDATE,
                    {"sessionId": session_id, "online": len(members)},
                ),
            )
        logger.info("Participant disconnected", extra={"connection_id": connection_id})

    def close(self) -> None:
        """Drop every room and registered connection."""
        self.rooms.clear()
        self.memberships.clear()
        self.connections.clear()
        self._room_locks.clear()

    async def _fan_out(self, session_id: str, *events: dict[str, object]) -> None:
        dead: list[str] = []
        async with self._room_locks[session_id]:
            for connection_id in sorted(self.rooms.get(session_id, ())):
                connection = self.connections.get(connection_id)
                if connection is None:
                    continue
                try:
                    for event in events:
                        await connection.send_json(event)
                except Exception:
                    logger.exception(
                        "Failed to deliver room event",
                        extra={
                            "connection_id": connection_id,
                            "session_id": session_id,
                        },
                    )
                    dead.append(connection_id)
        for connection_id in dead:
            await self.leave(connection_id)
