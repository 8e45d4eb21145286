from ogplink.repositories.rooms import RoomRepository
from ogplink.repositories.users import UserRepository

__all__ = ["RoomRepository", "UserRepository"]
