"""
Fetcher module: bounded-concurrency HTTP GET with a per-call timeout and a body size cap.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from product_scout.config import CrawlerConfig
from product_scout.crawler.models import FetchResult

_CHUNK_SIZE = 64 * 1024

DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9",
    "Accept-Language": "en-US,en;q=0.9",
}


class ResponseTooLarge(ClientError):
    """Body exceeded ``max_content_bytes``."""


class Fetcher:
    """Handles HTTP fetching for the crawl; at most ``http_concurrency`` requests in flight."""

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.fetch_timeout)
        self._semaphore = semaphore or asyncio.Semaphore(config.http_concurrency)
        self.logger = logging.getLogger("ProductScout")

    async def fetch(self, url: str) -> FetchResult:
        """
        GET *url* and return its decoded body.

        Timeouts, connection errors, non-2xx statuses and oversized bodies
        produce ``FetchResult(success=False)``; nothing is raised.
        """
        async with self._semaphore:
            try:
                html, final_url = await self._get(url)
            except asyncio.TimeoutError:
                self.logger.warning("Failed to fetch %s: timed out after %.1f s", url, self.config.fetch_timeout)
                return FetchResult(url, None, False)
            except ClientError as exc:
                self.logger.warning("Failed to fetch %s: %s", url, str(exc) or type(exc).__name__)
                return FetchResult(url, None, False)
        return FetchResult(url, html, True, final_url)

    async def _get(self, url: str) -> Tuple[str, str]:
        limit = self.config.max_content_bytes
        async with self.session.get(
            url,
            timeout=self._timeout,
            headers={"User-Agent": self.config.user_agent, **DEFAULT_HEADERS},
            raise_for_status=False,
        ) as resp:
            if not 200 <= resp.status < 300:
                raise ClientError(f"HTTP {resp.status}")
            if resp.content_length is not None and resp.content_length > limit:
                raise ResponseTooLarge(f"content-length {resp.content_length} exceeds {limit} bytes")
            body = bytearray()
            async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > limit:
                    raise ResponseTooLarge(f"body exceeds {limit} bytes")
            try:
                text = body.decode(resp.charset or "utf-8", errors="replace")
            except LookupError:
                text = body.decode("utf-8", errors="replace")
            return text, str(resp.url)
