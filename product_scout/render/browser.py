"""
Playwright browser session owned by one crawl.

The browser is launched lazily on first use and shared by all render calls;
every call gets its own context and page, closed on every exit path.
"""
from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, FrozenSet, List, Optional, Pattern

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

from product_scout.config import CrawlerConfig

_LAUNCH_ARGS = ["--disable-gpu", "--disable-dev-shm-usage", "--no-sandbox"]
_VIEWPORT = {"width": 1280, "height": 720}


class BrowserSession:
    """Lazily started Chromium instance with isolated per-call pages."""

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self.logger = logging.getLogger("ProductScout")
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._blocked_types: FrozenSet[str] = frozenset(t.lower() for t in config.blocked_resource_types)
        self._blocked_urls: List[Pattern[str]] = [
            re.compile(p, re.IGNORECASE) for p in config.blocked_url_patterns
        ]

    async def __aenter__(self) -> BrowserSession:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                playwright = await async_playwright().start()
                try:
                    browser = await playwright.chromium.launch(
                        headless=self.config.headless, args=_LAUNCH_ARGS
                    )
                except BaseException:
                    # cancellation included
                    await playwright.stop()
                    raise
                self._playwright, self._browser = playwright, browser
                self.logger.info("Browser launched")
            return self._browser

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    def should_block(self, resource_type: str, url: str) -> bool:
        if resource_type.lower() in self._blocked_types:
            return True
        return any(p.search(url) for p in self._blocked_urls)

    async def _route(self, route: Route) -> None:
        request = route.request
        if self.should_block(request.resource_type, request.url):
            await route.abort()
        else:
            await route.continue_()

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[Page]:
        browser = await self._ensure_browser()
        context: BrowserContext = await browser.new_context(
            user_agent=self.config.browser_user_agent,
            viewport=_VIEWPORT,
            java_script_enabled=True,
        )
        try:
            page = await context.new_page()
            await page.route("**/*", self._route)
            yield page
        finally:
            await context.close()

    async def render(self, url: str) -> str:
        """Load *url* and return the serialized DOM once it is parsed."""
        timeout_ms = self.config.render_timeout * 1000
        async with self.open_page() as page:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return await page.content()
