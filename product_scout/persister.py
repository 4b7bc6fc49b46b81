"""product_scout.persister: batched, idempotent writes of confirmed product URLs."""

from __future__ import annotations

import asyncio
from typing import Iterable, Set

from product_scout.logger import logger
from product_scout.storage.base import ProductStorage, StorageError

__all__ = ["BatchPersister"]


class BatchPersister:
    """Buffers product URLs of one domain and writes them in bulk.

    URLs stay buffered until a flush succeeds, so a failed flush is retried by
    the next size-triggered flush or by the final one.
    """

    def __init__(self, storage: ProductStorage, domain_id: int, threshold: int = 50) -> None:
        self.storage = storage
        self.domain_id = domain_id
        self.threshold = max(1, threshold)
        self._unflushed: Set[str] = set()
        self.flushed = 0

    @property
    def pending(self) -> int:
        return len(self._unflushed)

    def add(self, urls: Iterable[str]) -> None:
        self._unflushed.update(urls)

    async def maybe_flush(self) -> int:
        if len(self._unflushed) < self.threshold:
            return 0
        return await self.flush()

    async def flush(self) -> int:
        """Write every buffered URL; return the number of new rows, 0 on failure."""
        if not self._unflushed:
            return 0
        batch = sorted(self._unflushed)
        try:
            inserted = await asyncio.to_thread(self.storage.upsert_product_urls, batch, self.domain_id)
        except StorageError as exc:
            logger.error("Failed to insert %d product URLs: %s", len(batch), exc)
            return 0
        self._unflushed.difference_update(batch)
        self.flushed += len(batch)
        logger.info("Inserted %d product URLs (%d new)", len(batch), inserted)
        return inserted
