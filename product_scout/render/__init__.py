"""Headless-browser rendering used by the content classifier."""
from product_scout.render.browser import BrowserSession
from product_scout.render.executor import RenderExecutor

__all__ = ("BrowserSession", "RenderExecutor")
