from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ogplink.models import Link, LinkRoom


class RoomRepository:
    """Queries against ``link_rooms`` and ``links``. Callers own the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_room(
        self,
        *,
        name: Optional[str],
        description: Optional[str],
        owner_id: Optional[UUID],
    ) -> LinkRoom:
        room = LinkRoom(
            room_name=name,
            room_description=description,
            locked=False,
            user_id=owner_id,
        )
        self.session.add(room)
        await self.session.flush()
        return room

    async def set_public_id(self, room: LinkRoom, public_id: str) -> None:
        room.room_id = public_id
        await self.session.flush()

    async def add_links(
        self, room: LinkRoom, links: Iterable[tuple[str, Optional[str]]]
    ) -> list[Link]:
        rows = [Link(link_room_id=room.id, url=url, note=note) for url, note in links]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def get_by_public_id(self, public_id: str) -> Optional[LinkRoom]:
        result = await self.session.execute(
            select(LinkRoom).where(LinkRoom.room_id == public_id)
        )
        return result.scalar_one_or_none()

    async def list_links(self, room_pk: int) -> Sequence[Link]:
        result = await self.session.execute(
            select(Link).where(Link.link_room_id == room_pk).order_by(Link.id)
        )
        return result.scalars().all()

    async def list_for_owner(self, owner_id: UUID) -> Sequence[LinkRoom]:
        result = await self.session.execute(
            select(LinkRoom)
            .where(LinkRoom.user_id == owner_id)
            .order_by(LinkRoom.created_at.desc(), LinkRoom.id.desc())
        )
        return result.scalars().all()
