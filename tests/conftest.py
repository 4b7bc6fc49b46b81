# File: tests/conftest.py
import logging
from pathlib import Path
from typing import Dict, List

import pytest
from sqlalchemy.pool import StaticPool

from product_scout.config import CrawlerConfig
from product_scout.logger import LOGGER_NAME
from product_scout.storage.base import ProductStorage, StorageError
from product_scout.storage.sqlalchemy_storage import build_storage


PRODUCT_HTML = """
<html><head><title>Red shoe</title></head><body>
  <h1 class="product-title">Red shoe</h1>
  <span class="price">$40</span>
  <button class="add-to-cart">Add to cart</button>
</body></html>
"""

ARTICLE_HTML = """
<html><head><title>About us</title></head><body>
  <h1>Our story</h1>
  <div class="description">We sell shoes.</div>
</body></html>
"""


@pytest.fixture()
def make_config(tmp_path: Path):
    """
    Build a CrawlerConfig for tests; keyword arguments override defaults.
    """
    def _make(**overrides) -> CrawlerConfig:
        data = {
            "target_domains": ["http://example.com"],
            "max_depth": 2,
            "max_pages": 100,
            "fetch_timeout": 2.0,
            "render_timeout": 2.0,
            "render_enabled": False,
            "database_url": f"sqlite:///{tmp_path / 'products.db'}",
        }
        data.update(overrides)
        return CrawlerConfig(**data)

    return _make


@pytest.fixture()
def sqlite_storage():
    """
    In-memory SQLite storage shared across threads.
    """
    return build_storage(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


class RecordingStorage(ProductStorage):
    """Storage double recording calls; ``fail_times`` flushes raise StorageError."""

    def __init__(self, fail_times: int = 0) -> None:
        self.domains: List[str] = []
        self.flushes: List[List[str]] = []
        self.rows: Dict[str, int] = {}
        self.fail_times = fail_times

    def upsert_domain(self, url: str) -> int:
        self.domains.append(url)
        return len(self.domains)

    def upsert_product_urls(self, urls, domain_id: int) -> int:
        if self.fail_times > 0:
            self.fail_times -= 1
            raise StorageError("database is down")
        self.flushes.append(list(urls))
        new = [u for u in urls if u not in self.rows]
        for u in new:
            self.rows[u] = domain_id
        return len(new)


@pytest.fixture()
def recording_storage() -> RecordingStorage:
    return RecordingStorage()


class FakeRenderer:
    """Returns canned HTML per URL; raises for URLs listed in ``broken``."""

    def __init__(self, pages: Dict[str, str], broken=()) -> None:
        self.pages = pages
        self.broken = set(broken)
        self.calls: List[str] = []
        self.closed = False

    async def render(self, url: str) -> str:
        self.calls.append(url)
        if url in self.broken:
            raise RuntimeError("page crashed")
        return self.pages.get(url, "<html><body></body></html>")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_project_logger():
    """
    The CLI replaces handlers and disables propagation; undo it after each test.
    """
    yield
    lg = logging.getLogger(LOGGER_NAME)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
    lg.propagate = True
    lg.setLevel(logging.NOTSET)
