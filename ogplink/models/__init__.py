from ogplink.models.base import Base
from ogplink.models.link import Link
from ogplink.models.login_token import LoginToken
from ogplink.models.room import LinkRoom
from ogplink.models.user import User

__all__ = ["Base", "Link", "LinkRoom", "LoginToken", "User"]
