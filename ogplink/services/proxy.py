"""Fetch a page's HTML through an ordered list of public CORS relays.

Relays are tried in order and the first non-empty HTML wins. Every attempt
produces an explicit result value; the fetch ends either with a
``FetchSuccess`` or with a ``FetchFailure`` carrying the last reason.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union
from urllib.parse import quote

import httpx

from ogplink.errors import AllProxiesFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyEndpoint:
    name: str
    template: str
    unwrap_json: bool = False

    def build_url(self, target_url: str) -> str:
        return self.template.format(url=target_url, encoded=quote(target_url, safe=""))

    @classmethod
    def parse(cls, spec: str) -> "ProxyEndpoint":
        """Parse ``name|template`` or ``name|template|json``."""
        parts = spec.split("|")
        if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid proxy definition: {spec!r}")
        unwrap = len(parts) == 3 and parts[2].strip().lower() == "json"
        return cls(name=parts[0].strip(), template=parts[1].strip(), unwrap_json=unwrap)


@dataclass(frozen=True)
class FetchSuccess:
    html: str
    endpoint: str


@dataclass(frozen=True)
class FetchFailure:
    reason: str


FetchResult = Union[FetchSuccess, FetchFailure]


def _unwrap_contents(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("contents"), str):
        return data["contents"]
    return None


class ProxyFetcher:
    def __init__(self, client: httpx.AsyncClient, endpoints: Iterable[ProxyEndpoint]):
        self.client = client
        self.endpoints = list(endpoints)
        if not self.endpoints:
            raise ValueError("ProxyFetcher needs at least one endpoint")

    async def _attempt(self, endpoint: ProxyEndpoint, target_url: str) -> FetchResult:
        proxy_url = endpoint.build_url(target_url)
        try:
            response = await self.client.get(proxy_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchFailure(str(exc) or type(exc).__name__)

        if not response.is_success:
            return FetchFailure(f"Failed to fetch from {proxy_url}")

        content_type = response.headers.get("content-type", "")
        if endpoint.unwrap_json or content_type.startswith("application/json"):
            html = _unwrap_contents(response)
            if html is None and endpoint.unwrap_json:
                return FetchFailure(f"Malformed JSON envelope from {proxy_url}")
            if html is None:
                html = response.text
        else:
            html = response.text

        if not html:
            return FetchFailure(f"Empty response from {proxy_url}")
        return FetchSuccess(html=html, endpoint=endpoint.name)

    async def attempt_all(self, target_url: str) -> FetchResult:
        result: FetchResult = FetchFailure("No proxy attempted")
        for endpoint in self.endpoints:
            result = await self._attempt(endpoint, target_url)
            if isinstance(result, FetchSuccess):
                return result
            logger.debug(
                "Proxy %s failed for %s: %s", endpoint.name, target_url, result.reason
            )
        return result

    async def fetch_html(self, target_url: str) -> str:
        result = await self.attempt_all(target_url)
        if isinstance(result, FetchFailure):
            raise AllProxiesFailedError(result.reason)
        return result.html
