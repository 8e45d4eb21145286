from fastapi import APIRouter

from ogplink.api.v1 import auth, ogp, rooms, users

api_router = APIRouter(prefix="/api")
api_router.include_router(rooms.router)
api_router.include_router(ogp.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)

__all__ = ["api_router"]
