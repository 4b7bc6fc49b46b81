"""Crawl engine: frontier, fetcher, link extraction and the orchestrator."""
