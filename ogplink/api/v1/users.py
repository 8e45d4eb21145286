from typing import Annotated

from fastapi import APIRouter, Depends

from ogplink.api.deps import get_current_user, get_viewer
from ogplink.models import User
from ogplink.schemas import RoomSummary, UserRead
from ogplink.services.rooms import RoomViewer

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserRead:
    """Get the current authenticated user."""
    return UserRead.model_validate(current_user)


@router.get("/me/rooms", response_model=list[RoomSummary])
async def list_my_rooms(
    current_user: Annotated[User, Depends(get_current_user)],
    viewer: Annotated[RoomViewer, Depends(get_viewer)],
) -> list[RoomSummary]:
    """List rooms published by the current user, newest first."""
    rooms = await viewer.list_rooms(current_user.id)
    return [RoomSummary.model_validate(room) for room in rooms]
