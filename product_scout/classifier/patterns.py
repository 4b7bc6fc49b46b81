"""
URL-shape product detection: no network, memoized per crawl run.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Pattern

# product path segments and product-identifier query keys
PRODUCT_PATH_RE: Pattern[str] = re.compile(r"/(p|product|item|pd)/", re.IGNORECASE)
PRODUCT_QUERY_RE: Pattern[str] = re.compile(r"[?&](pid|product_id|productid|itemid|sku)=", re.IGNORECASE)


class PatternClassifier:
    """High-precision ``url -> bool`` filter run before any render check."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self._patterns: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in patterns]
        self._patterns.extend((PRODUCT_PATH_RE, PRODUCT_QUERY_RE))
        self._cache: Dict[str, bool] = {}
        self.evaluations = 0

    def is_likely_product(self, url: str) -> bool:
        cached = self._cache.get(url)
        if cached is not None:
            return cached
        self.evaluations += 1
        result = any(p.search(url) for p in self._patterns)
        self._cache[url] = result
        return result

    __call__ = is_likely_product

    def __len__(self) -> int:
        return len(self._cache)
