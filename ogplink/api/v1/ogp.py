import ipaddress
from typing import Annotated, Optional
from urllib.parse import urlsplit

import httpx
from fastapi import APIRouter, Depends, Query, Request

from ogplink.api.deps import get_resolver
from ogplink.errors import InvalidTargetError, UpstreamFetchError
from ogplink.schemas import OGPFetchRequest, OGPFetchResponse
from ogplink.services.metadata import extract_metadata
from ogplink.services.resolver import Complete, OGPResolver, Resolution

router = APIRouter(tags=["ogp"])

MAX_REDIRECTS = 5


def card_payload(resolution: Resolution) -> dict:
    status = "complete" if isinstance(resolution, Complete) else "degraded"
    return {"status": status, "card": resolution.to_record().as_card()}


def check_public_target(url: str) -> None:
    """Reject non-http(s) URLs and hosts that are local or private addresses."""
    parts = urlsplit(url)
    host = (parts.hostname or "").rstrip(".").lower()
    if parts.scheme not in ("http", "https") or not host:
        raise InvalidTargetError(f"Only http(s) URLs can be fetched: {url}")
    if host == "localhost" or host.endswith(".localhost"):
        raise InvalidTargetError(f"Refusing to fetch local address: {url}")
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return
    if not address.is_global:
        raise InvalidTargetError(f"Refusing to fetch non-public address: {url}")


async def fetch_page(client: httpx.AsyncClient, url: str, max_bytes: int) -> str:
    """GET ``url`` following redirects by hand so every hop is checked."""
    for _ in range(MAX_REDIRECTS + 1):
        check_public_target(url)
        async with client.stream("GET", url, follow_redirects=False) as response:
            if response.is_redirect:
                url = str(response.url.join(response.headers["location"]))
                continue
            response.raise_for_status()
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise UpstreamFetchError(
                        f"Response from {url} is larger than {max_bytes} bytes"
                    )
            return body.decode(response.charset_encoding or "utf-8", errors="replace")
    raise UpstreamFetchError(f"Too many redirects fetching {url}")


@router.get("/ogp")
async def preview_link(
    resolver: Annotated[OGPResolver, Depends(get_resolver)],
    url: str = Query(..., min_length=1, max_length=2048),
    note: Optional[str] = Query(default=None, max_length=2000),
) -> dict:
    """Resolve a single URL for the compose screen. Always returns a card."""
    return card_payload(await resolver.resolve(url, note or None))


@router.post(
    "/ogp_fetch",
    response_model=OGPFetchResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def ogp_fetch(payload: OGPFetchRequest, request: Request) -> OGPFetchResponse:
    """Trusted server-side fetch + extraction used by delegated resolvers."""
    client: httpx.AsyncClient = request.app.state.http_client
    max_bytes = request.app.state.settings.ogp_fetch_max_bytes
    try:
        html = await fetch_page(client, payload.url, max_bytes)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise UpstreamFetchError(f"Failed to fetch {payload.url}: {exc}") from exc

    record = extract_metadata(html, payload.url)
    return OGPFetchResponse(
        title=record.title,
        description=record.description,
        image=record.image,
        site_name=record.site_name,
    )
