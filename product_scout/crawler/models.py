"""
Data models for the ProductScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A discovered in-domain URL waiting to be fetched."""

    url: str
    depth: int


@dataclass(slots=True)
class FetchResult:
    """Outcome of one HTTP fetch; ``html`` is None when ``success`` is False.

    ``final_url`` is the address after redirects; links resolve against it.
    """

    url: str
    html: Optional[str]
    success: bool
    final_url: Optional[str] = None


@dataclass(slots=True)
class RenderedPage:
    """Serialized DOM of a page loaded in the browser."""

    url: str
    html: str
