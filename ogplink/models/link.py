from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ogplink.models.base import Base

if TYPE_CHECKING:
    from ogplink.models.room import LinkRoom


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    link_room_id: Mapped[int] = mapped_column(
        ForeignKey("link_rooms.id", ondelete="CASCADE"), index=True
    )
    url: Mapped[str]
    note: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    room: Mapped["LinkRoom"] = relationship("LinkRoom", back_populates="links")
