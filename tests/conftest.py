from typing import Callable

import httpx
import pytest

from ogplink.config import Settings
from ogplink.database import create_engine, create_session_factory, init_db
from ogplink.main import create_app
from ogplink.services.codec import RoomIdCodec
from ogplink.services.proxy import ProxyEndpoint, ProxyFetcher
from ogplink.services.resolver import OGPResolver, ResolverMode

ARTICLE_HTML = """
<html><head>
<title>Fallback title</title>
<meta property="og:title" content="An Article">
<meta property="og:description" content="About things">
<meta property="og:image" content="https://a.example/cover.png">
<meta property="og:site_name" content="A Example">
</head><body>hi</body></html>
"""


class StoreSpy:
    """Stands in for a database session and fails on any use."""

    def __getattr__(self, name: str):
        raise AssertionError(f"store was used: {name}")


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code, text=body, headers={"content-type": "text/html; charset=utf-8"}
    )


def make_transport(pages: dict[str, httpx.Response]) -> httpx.MockTransport:
    """Serve canned responses by exact URL; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        page = pages.get(str(request.url))
        if page is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(page.status_code, headers=page.headers, content=page.content)

    return httpx.MockTransport(handler)


def direct_resolver(transport: httpx.AsyncBaseTransport) -> OGPResolver:
    """Resolver that fetches target pages straight through ``transport``."""
    client = httpx.AsyncClient(transport=transport)
    fetcher = ProxyFetcher(client, [ProxyEndpoint("direct", "{url}")])
    return OGPResolver(client, ResolverMode.DIRECT, fetcher=fetcher)


@pytest.fixture
def codec() -> RoomIdCodec:
    return RoomIdCodec(min_length=8)


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'rooms.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def pages() -> dict[str, httpx.Response]:
    return {
        "https://a.example/article": html_response(ARTICLE_HTML),
        "https://b.example/plain": html_response("<html><head></head></html>"),
    }


@pytest.fixture
def settings_factory(tmp_path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = dict(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
            public_base_url="http://testserver",
            log_format="text",
            ogp_proxies=["direct|{url}"],
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
async def app(settings_factory, pages):
    app = create_app(settings_factory(), transport=make_transport(pages))
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
