from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from aiohttp import ClientSession

from product_scout.classifier.content import ContentClassifier
from product_scout.classifier.patterns import PatternClassifier
from product_scout.config import CrawlerConfig
from product_scout.crawler.fetcher import Fetcher
from product_scout.crawler.frontier import Frontier
from product_scout.crawler.link_extractor import extract_links
from product_scout.crawler.models import FetchResult, FrontierEntry
from product_scout.persister import BatchPersister
from product_scout.render.browser import BrowserSession
from product_scout.render.executor import PatternOnlyExecutor, RenderExecutor, Renderer
from product_scout.storage.base import ProductStorage
from product_scout.utils import in_domain, resolve

__all__ = ("ProductCrawler", "UrlCallback")

UrlCallback = Callable[[str], None]


class ProductCrawler:
    """Crawls one domain at a time in batch rounds and collects product URLs.

    Each round dispatches a batch of frontier entries to the fetch pool, waits
    for all of them, then classifies the newly discovered in-domain links:
    URL patterns first, the render pool for the rest. Confirmed products are
    buffered for the persister; other links go back to the frontier one level
    deeper.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        storage: ProductStorage,
        *,
        session: Optional[ClientSession] = None,
        renderer: Optional[Renderer] = None,
    ) -> None:
        self.config = config
        self.storage = storage
        self.session = session
        self.renderer = renderer
        self._own_session = session is None
        self._own_renderer = renderer is None
        self.logger = logging.getLogger("ProductScout")
        self.fetcher: Optional[Fetcher] = None
        self.render_pool: RenderExecutor | PatternOnlyExecutor = PatternOnlyExecutor()
        self.frontier: Optional[Frontier] = None

    async def __aenter__(self) -> ProductCrawler:
        if self.session is None:
            self.session = ClientSession()
        self.fetcher = Fetcher(self.session, self.config)
        if self.config.render_enabled:
            if self.renderer is None:
                self.renderer = BrowserSession(self.config)
            self.render_pool = RenderExecutor(
                self.renderer,
                ContentClassifier(self.config.confidence_threshold),
                concurrency=self.config.render_concurrency,
                timeout=self.config.render_timeout,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._own_renderer and isinstance(self.renderer, BrowserSession):
                await self.renderer.close()
        finally:
            if self._own_session and self.session and not self.session.closed:
                await self.session.close()

    async def crawl(self, seed_url: str, on_url_visited: Optional[UrlCallback] = None) -> List[str]:
        """Crawl from *seed_url* within its domain; return the product URLs found."""
        if self.fetcher is None:
            raise RuntimeError("ProductCrawler must be used as an async context manager")
        seed = resolve(str(seed_url), str(seed_url))
        if seed is None:
            raise ValueError(f"Seed URL must be an absolute http(s) URL: {seed_url!r}")
        target = self.config.target_for(seed)
        frontier = self.frontier = Frontier(target)
        patterns = PatternClassifier(self.config.product_patterns)

        domain_id = await asyncio.to_thread(self.storage.upsert_domain, seed)
        persister = BatchPersister(self.storage, domain_id, self.config.flush_threshold)

        self.logger.info("Старт обхода: %s", seed)
        start = time.monotonic()
        frontier.seed(seed)
        try:
            while not frontier.exhausted:
                batch = frontier.next_batch(self.config.batch_size)
                results = await asyncio.gather(*(self.fetcher.fetch(e.url) for e in batch))
                candidates = self._discover(frontier, batch, results, on_url_visited)
                if not candidates:
                    continue
                new_products = set(await self._classify(patterns, list(candidates)))
                for url in new_products:
                    frontier.add_product(url)
                persister.add(new_products)
                for url, depth in candidates.items():
                    if url not in new_products:
                        frontier.enqueue(url, depth)
                await persister.maybe_flush()
        finally:
            await persister.flush()

        duration = time.monotonic() - start
        self.logger.info(
            "Завершено %s: %d страниц, %d товаров за %.2f с",
            seed,
            frontier.fetched,
            len(frontier.products),
            duration,
        )
        if persister.pending:
            self.logger.warning("%d product URLs for %s were not persisted", persister.pending, seed)
        return sorted(frontier.products)

    def _discover(
        self,
        frontier: Frontier,
        batch: List[FrontierEntry],
        results: List[FetchResult],
        on_url_visited: Optional[UrlCallback],
    ) -> Dict[str, int]:
        """
        Collect unseen in-domain links of successful fetches with their depth.

        Links resolve against the post-redirect address of each page; pages
        redirected off the target domain are not expanded.
        """
        candidates: Dict[str, int] = {}
        base = frontier.target.base_url
        for entry, result in zip(batch, results):
            if not result.success or result.html is None:
                continue
            if on_url_visited is not None:
                on_url_visited(entry.url)
            page_url = result.final_url or entry.url
            if not in_domain(page_url, base):
                self.logger.debug("%s redirected off-domain to %s", entry.url, page_url)
                continue
            for link in extract_links(result.html, page_url):
                if not in_domain(link, base) or frontier.is_known(link):
                    continue
                depth = entry.depth + 1
                if depth < candidates.get(link, depth + 1):
                    candidates[link] = depth
        return candidates

    async def _classify(self, patterns: PatternClassifier, urls: List[str]) -> List[str]:
        likely: List[str] = []
        need_check: List[str] = []
        for url in urls:
            (likely if patterns.is_likely_product(url) else need_check).append(url)
        if likely:
            self.logger.debug("%d URLs matched product patterns", len(likely))
        verdicts = await self.render_pool.classify_many(need_check)
        return likely + [url for url, is_product in verdicts.items() if is_product]

