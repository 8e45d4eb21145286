from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ogplink.config import Settings
from ogplink.database import get_db
from ogplink.errors import AuthRequiredError
from ogplink.models.user import User
from ogplink.repositories import UserRepository
from ogplink.services.auth import AuthService
from ogplink.services.codec import RoomIdCodec
from ogplink.services.resolver import OGPResolver
from ogplink.services.rooms import RoomPublisher, RoomViewer


async def get_session(session: AsyncSession = Depends(get_db)) -> AsyncSession:
    return session


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_codec(request: Request) -> RoomIdCodec:
    return request.app.state.codec


def get_resolver(request: Request) -> OGPResolver:
    return request.app.state.resolver


def get_publisher(
    session: Annotated[AsyncSession, Depends(get_session)],
    codec: Annotated[RoomIdCodec, Depends(get_codec)],
) -> RoomPublisher:
    return RoomPublisher(session, codec)


def get_viewer(
    session: Annotated[AsyncSession, Depends(get_session)],
    codec: Annotated[RoomIdCodec, Depends(get_codec)],
) -> RoomViewer:
    return RoomViewer(session, codec)


def get_auth_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthService:
    settings: Settings = request.app.state.settings
    return AuthService(
        session,
        request.app.state.mailer,
        request.app.state.session_events,
        public_base_url=str(settings.public_base_url),
        token_ttl=timedelta(minutes=settings.magic_link_ttl_minutes),
    )


async def get_optional_user(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Resolve the caller from the X-API-Key header; anonymous when absent."""
    if not x_api_key:
        return None
    user = await UserRepository(db).get_by_api_key(x_api_key)
    if user is None:
        raise AuthRequiredError()
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise AuthRequiredError("Sign in required")
    return user
