from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from ogplink.api.deps import get_auth_service, get_current_user
from ogplink.models import User
from ogplink.schemas import MagicLinkRequest, SessionRead, VerifyRequest
from ogplink.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/magic-link", status_code=status.HTTP_202_ACCEPTED)
async def send_magic_link(
    payload: MagicLinkRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> dict[str, str]:
    """Email a one-time sign-in link."""
    await auth.send_magic_link(payload.email)
    return {"status": "sent"}


@router.post("/verify", response_model=SessionRead)
async def verify(
    payload: VerifyRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> SessionRead:
    """Exchange a sign-in token for a session (API key)."""
    session = await auth.verify_token(payload.token)
    return SessionRead(
        user_id=session.user_id,
        email=session.email,
        access_token=session.access_token,
    )


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    current_user: Annotated[User, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    await auth.sign_out(current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
