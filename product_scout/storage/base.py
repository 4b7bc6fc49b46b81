"""
Storage layer interfaces for crawl results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class StorageError(RuntimeError):
    """A storage operation failed; the transaction was rolled back."""


class ProductStorage(ABC):
    """
    Storage abstraction for domain and product URL writes.
    """

    @abstractmethod
    def upsert_domain(self, url: str) -> int:
        """
        Insert the domain or refresh its last crawl timestamp; return its id.
        """

    @abstractmethod
    def upsert_product_urls(self, urls: Sequence[str], domain_id: int) -> int:
        """
        Bulk insert product URLs, ignoring ones already stored; return inserted row count.
        """
