"""Passwordless sign-in by emailed link.

A verified link signs the user in and hands back their API key, which
serves as the session's access token (sent as ``X-API-Key``). Signing out
rotates the key. Session changes are announced through ``SessionEvents``.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from urllib.parse import urlencode
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ogplink.errors import InvalidTokenError
from ogplink.models import User
from ogplink.repositories import UserRepository
from ogplink.services.mail import MailSender
from ogplink.utils.security import generate_api_key, generate_login_token, hash_token

logger = logging.getLogger(__name__)


class SessionEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class Session:
    user_id: UUID
    email: str
    access_token: str

    @classmethod
    def for_user(cls, user: User) -> "Session":
        return cls(user_id=user.id, email=user.email, access_token=user.api_key)


SessionListener = Callable[[SessionEvent, Optional[Session]], None]


class SessionEvents:
    """Explicit subscribe/unsubscribe registry for session changes."""

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: SessionEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Session listener failed for %s", event.value)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        mailer: MailSender,
        events: SessionEvents,
        *,
        public_base_url: str,
        token_ttl: timedelta = timedelta(minutes=60),
    ):
        self.session = session
        self.users = UserRepository(session)
        self.mailer = mailer
        self.events = events
        self.public_base_url = public_base_url.rstrip("/")
        self.token_ttl = token_ttl

    def _verify_url(self, token: str) -> str:
        return f"{self.public_base_url}/auth/verify?{urlencode({'token': token})}"

    async def send_magic_link(self, email: str) -> None:
        email = email.strip().lower()
        token = generate_login_token()
        expires_at = datetime.now(timezone.utc) + self.token_ttl
        await self.users.add_login_token(email, hash_token(token), expires_at)
        await self.session.commit()

        await self.mailer.send(
            email,
            "Your sign-in link",
            "Open this link to sign in:\n\n"
            f"{self._verify_url(token)}\n\n"
            f"The link expires in {int(self.token_ttl.total_seconds() // 60)} minutes.",
        )
        logger.info("Sign-in link sent", extra={"email": email})

    async def verify_token(self, token: str) -> Session:
        login = await self.users.get_login_token(hash_token(token))
        now = datetime.now(timezone.utc)
        if login is None or login.used_at is not None or _as_utc(login.expires_at) <= now:
            raise InvalidTokenError()

        login.used_at = now
        user = await self.users.get_by_email(login.email)
        if user is None:
            user = await self.users.add_user(login.email, generate_api_key())
        await self.session.commit()

        session = Session.for_user(user)
        self.events.publish(SessionEvent.SIGNED_IN, session)
        return session

    async def current_session(self, api_key: Optional[str]) -> Optional[Session]:
        if not api_key:
            return None
        user = await self.users.get_by_api_key(api_key)
        return Session.for_user(user) if user is not None else None

    async def sign_out(self, user: User) -> None:
        user.api_key = generate_api_key()
        await self.session.commit()
        self.events.publish(SessionEvent.SIGNED_OUT, None)
