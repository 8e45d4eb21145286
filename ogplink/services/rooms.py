"""Publishing rooms and reading them back."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ogplink.errors import EmptyRoomError, IdAllocationError, RoomNotFoundError, StoreError
from ogplink.models import Link, LinkRoom
from ogplink.repositories import RoomRepository
from ogplink.services.codec import RoomIdCodec
from ogplink.services.resolver import OGPResolver, Resolution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomMeta:
    name: Optional[str] = None
    description: Optional[str] = None
    owner_id: Optional[UUID] = None


@dataclass(frozen=True)
class LinkInput:
    url: str
    note: Optional[str] = None


@dataclass
class RoomView:
    public_id: str
    name: Optional[str]
    description: Optional[str]
    locked: bool
    created_at: Optional[datetime]
    links: list[Link] = field(default_factory=list)


def _store_error(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    return StoreError(str(orig) if orig is not None else str(exc))


class RoomPublisher:
    def __init__(self, session: AsyncSession, codec: RoomIdCodec):
        self.session = session
        self.codec = codec
        self.rooms = RoomRepository(session)

    async def publish(self, meta: RoomMeta, links: Sequence[LinkInput]) -> str:
        """Persist a room with its links and return the room's public id.

        The room row, its public id and the links are written in a single
        transaction: the public id is derived from the store-assigned primary
        key, so two concurrent publishes can never share an id, and a failed
        link insert leaves no empty room behind.
        """
        if not links:
            raise EmptyRoomError()

        try:
            room = await self.rooms.add_room(
                name=meta.name,
                description=meta.description,
                owner_id=meta.owner_id,
            )
            if not room.id:
                raise IdAllocationError()
            public_id = self.codec.encode(room.id)
            await self.rooms.set_public_id(room, public_id)
            await self.rooms.add_links(room, ((link.url, link.note) for link in links))
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Publishing room failed: %s", exc)
            raise _store_error(exc) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Published room %s with %d links",
            public_id,
            len(links),
            extra={"room_pk": room.id, "owner_id": str(meta.owner_id or "")},
        )
        return public_id


class RoomViewer:
    def __init__(self, session: AsyncSession, codec: RoomIdCodec):
        self.codec = codec
        self.rooms = RoomRepository(session)

    async def _get_room(self, public_id: str) -> LinkRoom:
        if not self.codec.is_valid_public_id(public_id):
            raise RoomNotFoundError(
                "Invalid room id. Room ids are at least "
                f"{self.codec.min_length} letters, digits or symbols."
            )
        try:
            room = await self.rooms.get_by_public_id(public_id)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        if room is None:
            raise RoomNotFoundError()
        return room

    async def load_room(self, public_id: str) -> RoomView:
        room = await self._get_room(public_id)
        try:
            links = await self.rooms.list_links(room.id)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        return RoomView(
            public_id=public_id,
            name=room.room_name,
            description=room.room_description,
            locked=room.locked,
            created_at=room.created_at,
            links=list(links),
        )

    async def load_room_cards(
        self, public_id: str, resolver: OGPResolver
    ) -> Tuple[RoomView, AsyncIterator[Tuple[int, Resolution]]]:
        """Load a room and start resolving its links' metadata.

        Returns the room immediately together with an iterator yielding
        ``(link index, resolution)`` in completion order.
        """
        view = await self.load_room(public_id)
        cards = resolver.resolve_many([(link.url, link.note) for link in view.links])
        return view, cards

    async def list_rooms(self, owner_id: UUID) -> Sequence[LinkRoom]:
        try:
            return await self.rooms.list_for_owner(owner_id)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
