"""Tent API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request

from havenox.api.models import (  # noqa: TC001
    TentCreateRequest,
    TentJoinRequest,
    TentUpdateRequest,
)

if TYPE_CHECKING:
    from havenox.containers import AppContainer

router = APIRouter(tags=["tents"])


@router.post("/tent/create")
async def create_tent(body: TentCreateRequest, request: Request) -> dict[str, object]:
    """Create a tent and invite the counterparty if one is given."""
    container: AppContainer = request.app.state.container
    tent = await container.tent_service.create(
        initiator=body.initiator or "",
        counterparty=body.counterparty,
        asset_ref=body.asset_ref,
        price=body.price,
        metadata=body.metadata,
    )
    return {"status": "created", "tent": tent.to_payload()}


@router.post("/tent/join/{tent_id}")
async def join_tent(
    tent_id: UUID, body: TentJoinRequest, request: Request
) -> dict[str, object]:
    """Join a tent as its counterparty."""
    container: AppContainer = request.app.state.container
    tent = await container.tent_service.join(tent_id, body.counterparty or "")
    return {"status": "joined", "tent": tent.to_payload()}


@router.post("/tent/update/{tent_id}")
async def update_tent(
    tent_id: UUID, body: TentUpdateRequest, request: Request
) -> dict[str, object]:
    """Update a tent's status and merge its metadata."""
    container: AppContainer = request.app.state.container
    tent = await container.tent_service.update(
        tent_id, status=body.status, metadata_patch=body.metadata
    )
    return {"status": "updated", "tent": tent.to_payload()}


@router.get("/tent/{tent_id}")
async def get_tent(tent_id: UUID, request: Request) -> dict[str, object]:
    """Return a single tent."""
    container: AppContainer = request.app.state.container
    tent = container.tent_service.get(tent_id)
    return {"status": "ok", "tent": tent.to_payload()}


@router.get("/tents")
async def list_tents(request: Request) -> dict[str, object]:
    """Return every tent in creation order."""
    container: AppContainer = request.app.state.container
    tents = container.tent_service.list_tents()
    return {"count": len(tents), "tents": [tent.to_payload() for tent in tents]}
