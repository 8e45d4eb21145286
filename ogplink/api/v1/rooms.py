import json
from typing import Annotated, AsyncIterator, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from ogplink.api.deps import (
    get_optional_user,
    get_publisher,
    get_resolver,
    get_settings_dep,
    get_viewer,
)
from ogplink.api.v1.ogp import card_payload
from ogplink.config import Settings
from ogplink.models import User
from ogplink.schemas import LinkRead, RoomCreate, RoomPublished, RoomRead
from ogplink.schemas.room import DEFAULT_ROOM_DESCRIPTION, DEFAULT_ROOM_NAME
from ogplink.services.resolver import OGPResolver, Resolution
from ogplink.services.rooms import LinkInput, RoomMeta, RoomPublisher, RoomViewer

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.post("", response_model=RoomPublished, status_code=status.HTTP_201_CREATED)
async def publish_room(
    payload: RoomCreate,
    publisher: Annotated[RoomPublisher, Depends(get_publisher)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
) -> RoomPublished:
    """Publish the collected links as a new room."""
    meta = RoomMeta(
        name=payload.name if payload.name is not None else DEFAULT_ROOM_NAME,
        description=(
            payload.description
            if payload.description is not None
            else DEFAULT_ROOM_DESCRIPTION
        ),
        owner_id=current_user.id if current_user else None,
    )
    links = [LinkInput(url=link.url, note=link.note or None) for link in payload.links]
    public_id = await publisher.publish(meta, links)
    return RoomPublished(
        room_id=public_id,
        url=f"{str(settings.public_base_url).rstrip('/')}/{public_id}",
    )


@router.get("/{room_id}", response_model=RoomRead)
async def get_room(
    room_id: str,
    viewer: Annotated[RoomViewer, Depends(get_viewer)],
) -> RoomRead:
    view = await viewer.load_room(room_id)
    return RoomRead(
        room_id=view.public_id,
        name=view.name,
        description=view.description,
        locked=view.locked,
        created_at=view.created_at,
        links=[LinkRead.model_validate(link) for link in view.links],
    )


@router.get("/{room_id}/cards")
async def get_room_cards(
    room_id: str,
    viewer: Annotated[RoomViewer, Depends(get_viewer)],
    resolver: Annotated[OGPResolver, Depends(get_resolver)],
) -> StreamingResponse:
    """Stream one NDJSON line per link as soon as its metadata settles."""
    view, cards = await viewer.load_room_cards(room_id, resolver)
    link_ids = [link.id for link in view.links]

    async def _lines(results: AsyncIterator[tuple[int, Resolution]]):
        async for index, resolution in results:
            line = {"index": index, "link_id": link_ids[index]}
            line.update(card_payload(resolution))
            yield json.dumps(line, ensure_ascii=False) + "\n"

    return StreamingResponse(_lines(cards), media_type="application/x-ndjson")
