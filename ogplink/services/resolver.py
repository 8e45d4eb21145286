"""Resolve a URL to display metadata, degrading to a bare link on failure."""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Sequence, Tuple, Union

import httpx
from pydantic import ValidationError

from ogplink.errors import DelegatedFetchError, MetadataFetchError
from ogplink.schemas.ogp import OGPFetchResponse, OGPRecord
from ogplink.services.metadata import extract_metadata
from ogplink.services.proxy import ProxyFetcher

logger = logging.getLogger(__name__)


class ResolverMode(str, enum.Enum):
    DIRECT = "direct"
    DELEGATED = "delegated"


@dataclass(frozen=True)
class Complete:
    record: OGPRecord

    def to_record(self) -> OGPRecord:
        return self.record


@dataclass(frozen=True)
class Degraded:
    source_url: str
    note: Optional[str] = None
    reason: str = ""

    def to_record(self) -> OGPRecord:
        return OGPRecord(url=self.source_url, source_url=self.source_url, note=self.note)


Resolution = Union[Complete, Degraded]


class OGPResolver:
    def __init__(
        self,
        client: httpx.AsyncClient,
        mode: ResolverMode = ResolverMode.DIRECT,
        fetcher: Optional[ProxyFetcher] = None,
        delegate_url: Optional[str] = None,
    ):
        if mode is ResolverMode.DIRECT and fetcher is None:
            raise ValueError("direct mode needs a ProxyFetcher")
        if mode is ResolverMode.DELEGATED and not delegate_url:
            raise ValueError("delegated mode needs a delegate_url")
        self.client = client
        self.mode = mode
        self.fetcher = fetcher
        self.delegate_url = delegate_url

    async def _direct(self, url: str, note: Optional[str]) -> OGPRecord:
        if self.fetcher is None:
            raise ValueError("direct mode needs a ProxyFetcher")
        html = await self.fetcher.fetch_html(url)
        return extract_metadata(html, url, note=note)

    async def _delegated(self, url: str, note: Optional[str]) -> OGPRecord:
        if self.delegate_url is None:
            raise ValueError("delegated mode needs a delegate_url")
        response = await self.client.post(self.delegate_url, json={"url": url})
        if not response.is_success:
            raise DelegatedFetchError(
                f"Metadata endpoint returned {response.status_code} for {url}"
            )
        try:
            payload = OGPFetchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise DelegatedFetchError(f"Malformed metadata response for {url}: {exc}")
        return OGPRecord(
            url=url,
            source_url=url,
            title=payload.title or None,
            description=payload.description or None,
            image=payload.image or None,
            site_name=payload.site_name or None,
            note=note,
        )

    async def resolve(self, url: str, note: Optional[str] = None) -> Resolution:
        try:
            if self.mode is ResolverMode.DELEGATED:
                record = await self._delegated(url, note)
            else:
                record = await self._direct(url, note)
        except (MetadataFetchError, httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Failed to fetch OGP for %s: %s", url, exc)
            return Degraded(source_url=url, note=note, reason=str(exc))
        return Complete(record)

    async def resolve_many(
        self, items: Sequence[Tuple[str, Optional[str]]]
    ) -> AsyncIterator[Tuple[int, Resolution]]:
        """Resolve every ``(url, note)`` concurrently, yielding as each settles."""

        async def _indexed(index: int, url: str, note: Optional[str]):
            return index, await self.resolve(url, note)

        tasks = [
            asyncio.ensure_future(_indexed(i, url, note))
            for i, (url, note) in enumerate(items)
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def resolve_all(
        self, items: Sequence[Tuple[str, Optional[str]]]
    ) -> list[Resolution]:
        return list(
            await asyncio.gather(*(self.resolve(url, note) for url, note in items))
        )
