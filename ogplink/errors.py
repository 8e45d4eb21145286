import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error rendered as a structured JSON response."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code


class EmptyRoomError(AppError):
    def __init__(self, message: str = "There are no links to publish"):
        super().__init__(message, "EMPTY_ROOM", status.HTTP_400_BAD_REQUEST)


class IdAllocationError(AppError):
    def __init__(self, message: str = "Could not allocate a room id"):
        super().__init__(
            message, "ID_ALLOCATION_FAILED", status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class StoreError(AppError):
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, "STORE_ERROR", status.HTTP_503_SERVICE_UNAVAILABLE)


class RoomNotFoundError(AppError):
    def __init__(self, message: str = "Room not found"):
        super().__init__(message, "ROOM_NOT_FOUND", status.HTTP_404_NOT_FOUND)


class InvalidTokenError(AppError):
    def __init__(self, message: str = "Sign-in link is invalid or has expired"):
        super().__init__(message, "INVALID_TOKEN", status.HTTP_401_UNAUTHORIZED)


class AuthRequiredError(AppError):
    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message, "AUTH_REQUIRED", status.HTTP_401_UNAUTHORIZED)


class MailDeliveryError(AppError):
    def __init__(self, message: str = "Could not send the sign-in email"):
        super().__init__(message, "MAIL_DELIVERY_FAILED", status.HTTP_502_BAD_GATEWAY)


class UpstreamFetchError(AppError):
    def __init__(self, message: str = "Failed to fetch the page"):
        super().__init__(message, "UPSTREAM_FETCH_FAILED", status.HTTP_502_BAD_GATEWAY)


class InvalidTargetError(AppError):
    def __init__(self, message: str = "URL cannot be fetched"):
        super().__init__(message, "INVALID_TARGET", status.HTTP_400_BAD_REQUEST)


class MetadataFetchError(Exception):
    """Fetching page metadata failed. Degradable, never rendered to clients."""


class AllProxiesFailedError(MetadataFetchError):
    def __init__(self, last_error: str):
        super().__init__(f"All proxy attempts failed. Last error: {last_error}")
        self.last_error = last_error


class DelegatedFetchError(MetadataFetchError):
    pass


def create_error_response(error_code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": error_code, "message": message}},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.warning(
            "%s: %s",
            exc.error_code,
            exc.message,
            extra={"path": request.url.path},
        )
        return create_error_response(exc.error_code, exc.message, exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception: %s: %s",
            type(exc).__name__,
            exc,
            extra={"path": request.url.path},
            exc_info=exc,
        )
        return create_error_response(
            "INTERNAL_ERROR",
            "An internal error occurred",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
