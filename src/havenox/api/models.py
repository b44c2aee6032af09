"""Pydantic models for HTTP and WebSocket payloads."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TentCreateRequest(_CamelModel):
    """Body of a tent creation request."""

    initiator: str | None = None
    counterparty: str | None = None
    asset_ref: str | None = None
    price: float | None = Field(default=None, ge=0)
    metadata: dict[str, object] | None = None


class TentJoinRequest(_CamelModel):
    """Body of a tent join request."""

    counterparty: str | None = None


class TentUpdateRequest(_CamelModel):
    """Body of a tent update request."""

    status: str | None = None
    metadata: dict[str, object] | None = None


class VerifyRequest(_CamelModel):
    """Body of an ownership verification request."""

    address: str | None = None
    signature: str | None = None
    message: str | None = None


class JoinRoomEvent(_CamelModel):
    """Client request to join a tent room."""

    type: Literal["joinRoom"]
    session_id: str = Field(min_length=1)


class ChatMessageEvent(_CamelModel):
    """Client chat line for a tent room."""

    type: Literal["chatMessage"]
    session_id: str = Field(min_length=1)
    sender: str
    message: str


class StatusUpdateEvent(_CamelModel):
    """Client advisory trade status for a tent room."""

    type: Literal["statusUpdate"]
    session_id: str = Field(min_length=1)
    sender: str
    status: str


ClientEvent = Annotated[
    JoinRoomEvent | ChatMessageEvent | StatusUpdateEvent,
    Field(discriminator="type"),
]

client_event_adapter = TypeAdapter(ClientEvent)
