"""WebSocket channel for tent presence, chat and status relay."""

import logging
from dataclasses import dataclass
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadValidationError

from havenox.api.models import (
    ChatMessageEvent,
    JoinRoomEvent,
    StatusUpdateEvent,
    client_event_adapter,
)
from havenox.containers import AppContainer
from havenox.domain.errors import ValidationError
from havenox.services.broadcast import BroadcastCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@dataclass
class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the broadcast connection interface."""

    id: str
    websocket: WebSocket

    async def send_json(self, event: dict[str, object]) -> None:
        """Send one JSON event over the socket."""
        await self.websocket.send_json(event)


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket) -> None:
    """Handle one participant connection until it disconnects.

    Frames from a single socket are processed one at a time in receipt order.
    """
    container: AppContainer = websocket.app.state.container
    coordinator = container.broadcast_coordinator
    await websocket.accept()
    connection = WebSocketConnection(id=uuid4().hex, websocket=websocket)
    coordinator.connect(connection)
    try:
        await connection.send_json(
            {"type": "connected", "payload": {"connectionId": connection.id}}
        )
        while True:
            raw = await websocket.receive_text()
            await _dispatch(coordinator, connection, raw)
    except WebSocketDisconnect:
        logger.debug("Socket closed", extra={"connection_id": connection.id})
    finally:
        await coordinator.leave(connection.id)


async def _dispatch(
    coordinator: BroadcastCoordinator, connection: WebSocketConnection, raw: str
) -> None:
    try:
        event = client_event_adapter.validate_json(raw)
    except PayloadValidationError as exc:
        await connection.send_json(
            {"type": "error", "payload": {"message": _describe(exc)}}
        )
        return

    try:
        if isinstance(event, JoinRoomEvent):
            await coordinator.join_room(connection.id, event.session_id)
        elif isinstance(event, ChatMessageEvent):
            await coordinator.relay_chat(event.session_id, event.sender, event.message)
        elif isinstance(event, StatusUpdateEvent):
            await coordinator.relay_status(
                event.session_id, event.sender, event.status
            )
    except ValidationError as exc:
        await connection.send_json({"type": "error", "payload": {"message": str(exc)}})


def _describe(exc: PayloadValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid event"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid event: {location} {first.get('msg', '')}".strip()
