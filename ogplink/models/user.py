from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ogplink.models.base import Base

if TYPE_CHECKING:
    from ogplink.models.room import LinkRoom


class User(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(unique=True, index=True)
    api_key: Mapped[str] = mapped_column(unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    # Rooms outlive their owner; the FK is nulled on delete
    rooms: Mapped[list["LinkRoom"]] = relationship(
        "LinkRoom", back_populates="owner", passive_deletes=True
    )
