import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from ogplink.api import api_router
from ogplink.config import Settings, get_settings
from ogplink.database import create_engine, create_session_factory, init_db
from ogplink.errors import setup_exception_handlers
from ogplink.log_config import configure_logging
from ogplink.services.auth import Session, SessionEvent, SessionEvents
from ogplink.services.codec import RoomIdCodec
from ogplink.services.mail import LoggingMailSender, MailSender, SendGridMailSender
from ogplink.services.proxy import ProxyEndpoint, ProxyFetcher
from ogplink.services.resolver import OGPResolver, ResolverMode

logger = logging.getLogger(__name__)


def build_resolver(settings: Settings, client: httpx.AsyncClient) -> OGPResolver:
    mode = ResolverMode(settings.ogp_resolver_mode)
    if mode is ResolverMode.DELEGATED:
        return OGPResolver(client, mode, delegate_url=settings.ogp_delegate_url)
    fetcher = ProxyFetcher(client, [ProxyEndpoint.parse(p) for p in settings.ogp_proxies])
    return OGPResolver(client, mode, fetcher=fetcher)


def build_mailer(settings: Settings, client: httpx.AsyncClient) -> MailSender:
    if settings.sendgrid_api_key and settings.sendgrid_from_email:
        return SendGridMailSender(
            client, settings.sendgrid_api_key, settings.sendgrid_from_email
        )
    return LoggingMailSender()


def _log_session_event(event: SessionEvent, session: Optional[Session]) -> None:
    logger.info(
        "Session %s",
        event.value.lower(),
        extra={"user_id": str(session.user_id) if session else None},
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application. ``transport`` replaces outbound HTTP (tests)."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        # Startup
        engine = create_engine(settings.database_url)
        await init_db(engine)
        http_client = httpx.AsyncClient(
            timeout=settings.ogp_fetch_timeout,
            follow_redirects=True,
            headers={"User-Agent": settings.ogp_user_agent},
            transport=transport,
        )
        events = SessionEvents()
        unsubscribe = events.subscribe(_log_session_event)

        app.state.settings = settings
        app.state.session_factory = create_session_factory(engine)
        app.state.http_client = http_client
        app.state.codec = RoomIdCodec(min_length=settings.room_id_min_length)
        app.state.resolver = build_resolver(settings, http_client)
        app.state.mailer = build_mailer(settings, http_client)
        app.state.session_events = events
        logger.info(
            "%s started", settings.app_name, extra={"resolver": settings.ogp_resolver_mode}
        )
        try:
            yield
        finally:
            # Shutdown
            unsubscribe()
            await http_client.aclose()
            await engine.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    setup_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok", "app": settings.app_name}

    return app
