"""
Crawl state of one run: visited set, pending queue and discovered products.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, List, Set

from product_scout.config import CrawlTarget
from product_scout.crawler.models import FrontierEntry


class Frontier:
    """Dedup authority for a crawl run.

    A URL enters ``visited`` when it is dispatched for fetching or confirmed
    as a product, and is never dispatched or classified again afterwards.
    """

    def __init__(self, target: CrawlTarget) -> None:
        self.target = target
        self.visited: Set[str] = set()
        self.products: Set[str] = set()
        self.fetched = 0
        self._pending: Deque[FrontierEntry] = deque()
        self._queued: Set[str] = set()
        # non-product links that were classified but are too deep to crawl
        self._discarded: Set[str] = set()

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def budget_left(self) -> int:
        return max(0, self.target.max_pages - self.fetched)

    @property
    def exhausted(self) -> bool:
        return not self._pending or self.budget_left == 0

    def is_known(self, url: str) -> bool:
        return url in self.visited or url in self._queued or url in self._discarded

    def seed(self, url: str) -> None:
        self.enqueue(url, 0)

    def enqueue(self, url: str, depth: int) -> bool:
        """Queue *url* at *depth*; False when it is known or deeper than ``max_depth``."""
        if self.is_known(url):
            return False
        if depth > self.target.max_depth:
            self._discarded.add(url)
            return False
        self._pending.append(FrontierEntry(url, depth))
        self._queued.add(url)
        return True

    def next_batch(self, size: int) -> List[FrontierEntry]:
        """Dequeue up to *size* entries within the page budget and mark them visited."""
        batch: List[FrontierEntry] = []
        limit = min(size, self.budget_left)
        while self._pending and len(batch) < limit:
            entry = self._pending.popleft()
            self._queued.discard(entry.url)
            if entry.url in self.visited:
                continue
            self.visited.add(entry.url)
            batch.append(entry)
        self.fetched += len(batch)
        return batch

    def add_product(self, url: str) -> bool:
        """Record a confirmed product; it is visited but never fetched."""
        if url in self.products:
            return False
        self.products.add(url)
        self.visited.add(url)
        self._discarded.discard(url)
        return True
