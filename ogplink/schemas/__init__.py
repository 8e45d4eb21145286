from ogplink.schemas.ogp import OGPFetchRequest, OGPFetchResponse, OGPRecord
from ogplink.schemas.room import (
    LinkCreate,
    LinkRead,
    RoomCreate,
    RoomPublished,
    RoomRead,
    RoomSummary,
)
from ogplink.schemas.user import MagicLinkRequest, SessionRead, UserRead, VerifyRequest

__all__ = [
    "LinkCreate",
    "LinkRead",
    "MagicLinkRequest",
    "OGPFetchRequest",
    "OGPFetchResponse",
    "OGPRecord",
    "RoomCreate",
    "RoomPublished",
    "RoomRead",
    "RoomSummary",
    "SessionRead",
    "UserRead",
    "VerifyRequest",
]
