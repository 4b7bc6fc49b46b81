"""
Render pool: bounded concurrent content classification of candidate URLs.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, Protocol

from product_scout.classifier.content import ContentClassifier
from product_scout.crawler.models import RenderedPage


class Renderer(Protocol):
    async def render(self, url: str) -> str: ...


class RenderExecutor:
    """Classifies URLs through a renderer, ``concurrency`` calls at a time.

    Unreachable pages, timeouts and evaluation errors all yield False.
    """

    def __init__(
        self,
        renderer: Renderer,
        classifier: ContentClassifier,
        *,
        concurrency: int,
        timeout: float,
    ) -> None:
        self.renderer = renderer
        self.classifier = classifier
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(concurrency)
        self.logger = logging.getLogger("ProductScout")

    async def is_product(self, url: str) -> bool:
        async with self._semaphore:
            try:
                # the renderer's own navigation timeout covers goto; this one bounds the whole call
                html = await asyncio.wait_for(self.renderer.render(url), timeout=self.timeout * 1.5)
                return self.classifier.classify(RenderedPage(url, html))
            except asyncio.TimeoutError:
                self.logger.warning("Render timed out for %s", url)
            except Exception as exc:
                self.logger.warning("Error analyzing %s: %s", url, exc)
        return False

    async def classify_many(self, urls: Iterable[str]) -> Dict[str, bool]:
        pending = list(urls)
        if not pending:
            return {}
        verdicts = await asyncio.gather(*(self.is_product(u) for u in pending))
        return dict(zip(pending, verdicts))


class PatternOnlyExecutor:
    """Stand-in used when rendering is disabled: every candidate is negative."""

    async def classify_many(self, urls: Iterable[str]) -> Dict[str, bool]:
        return {u: False for u in urls}

    async def is_product(self, url: str) -> bool:
        return False
