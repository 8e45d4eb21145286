from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ogplink.models import LoginToken, User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_api_key(self, api_key: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.api_key == api_key))
        return result.scalar_one_or_none()

    async def add_user(self, email: str, api_key: str) -> User:
        user = User(email=email, api_key=api_key)
        self.session.add(user)
        await self.session.flush()
        return user

    async def add_login_token(
        self, email: str, token_hash: str, expires_at: datetime
    ) -> LoginToken:
        token = LoginToken(email=email, token_hash=token_hash, expires_at=expires_at)
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_login_token(self, token_hash: str) -> Optional[LoginToken]:
        result = await self.session.execute(
            select(LoginToken).where(LoginToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()
