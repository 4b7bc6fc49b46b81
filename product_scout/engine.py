# File: product_scout/engine.py
"""product_scout.engine: запуск обхода по списку доменов из конфигурации."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from product_scout.classifier.content import ContentClassifier
from product_scout.config import CrawlerConfig
from product_scout.crawler.crawler import ProductCrawler, UrlCallback
from product_scout.logger import logger
from product_scout.render.browser import BrowserSession
from product_scout.render.executor import RenderExecutor, Renderer
from product_scout.storage.base import ProductStorage
from product_scout.storage.sqlalchemy_storage import build_storage

__all__ = ["check_url", "start_crawl"]


async def start_crawl(
    config: CrawlerConfig,
    storage: Optional[ProductStorage] = None,
    on_url_visited: Optional[UrlCallback] = None,
) -> Dict[str, List[str]]:
    """Обходит все target_domains по очереди и возвращает найденные товары по доменам."""
    if storage is None:
        storage = await asyncio.to_thread(
            build_storage, config.database_url, create_schema=config.create_schema
        )

    results: Dict[str, List[str]] = {}
    async with ProductCrawler(config, storage) as crawler:
        for domain in config.target_domains:
            seed = str(domain)
            logger.info("Crawling %s", seed)
            try:
                products = await crawler.crawl(seed, on_url_visited)
            except Exception as exc:
                logger.error("Crawl of %s failed: %s", seed, exc)
                raise
            logger.info("Found %d product URLs on %s", len(products), seed)
            results[seed] = products
    logger.info("Crawling complete")
    return results


async def check_url(
    config: CrawlerConfig,
    url: str,
    renderer: Optional[Renderer] = None,
) -> bool:
    """
    Рендерит один URL и возвращает вердикт ContentClassifier.

    Без *renderer* открывает собственный BrowserSession и закрывает его в конце.
    """
    session = BrowserSession(config) if renderer is None else None
    executor = RenderExecutor(
        renderer or session,
        ContentClassifier(config.confidence_threshold),
        concurrency=1,
        timeout=config.render_timeout,
    )
    try:
        verdict = await executor.is_product(url)
    finally:
        if session is not None:
            await session.close()
    logger.info("%s: %s", url, "product" if verdict else "not a product")
    return verdict
