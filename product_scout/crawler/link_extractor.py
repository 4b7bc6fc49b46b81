"""
Link extraction for ProductScout.
"""
from __future__ import annotations

from typing import Set

from bs4 import BeautifulSoup
from bs4.element import Tag

from product_scout.utils import resolve


def extract_links(html: str, base_url: str) -> Set[str]:
    """
    Extract absolute HTTP(S) links from anchor tags of *html*.

    Relative references are resolved against the document's ``<base href>``
    when present, otherwise against *base_url*; mailto:, javascript:
    and malformed hrefs are dropped. Domain filtering is left to the caller.
    """
    soup = BeautifulSoup(html, "html.parser")
    base_tag = soup.find("base", href=True)
    base_href = base_tag.get("href") if isinstance(base_tag, Tag) else None
    if isinstance(base_href, str):
        base_url = resolve(base_href, base_url) or base_url
    links: Set[str] = set()
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        absolute = resolve(href_val, base_url)
        if absolute is not None:
            links.add(absolute)
    return links
