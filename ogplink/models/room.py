from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ogplink.models.base import Base

if TYPE_CHECKING:
    from ogplink.models.link import Link
    from ogplink.models.user import User


class LinkRoom(Base):
    __tablename__ = "link_rooms"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Public id, filled in from `id` in the same transaction as the insert
    room_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, index=True)
    room_name: Mapped[Optional[str]]
    room_description: Mapped[Optional[str]]
    locked: Mapped[bool] = mapped_column(default=False)
    user_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}

    # Relationships
    owner: Mapped[Optional["User"]] = relationship("User", back_populates="rooms")
    links: Mapped[list["Link"]] = relationship(
        "Link",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Link.id",
    )
