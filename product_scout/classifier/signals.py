"""
Page signals for the content classifier.

Signals are read from the serialized DOM of a rendered page with
BeautifulSoup CSS selectors. :data:`SIGNAL_WEIGHTS` is the scoring table:
each present signal adds its weight to the confidence score.
"""
from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass
from typing import Any, Iterator, Sequence, Tuple

from bs4 import BeautifulSoup

__all__: Sequence[str] = (
    "ClassificationSignals",
    "SIGNAL_WEIGHTS",
    "read_metadata",
    "read_structure",
    "score",
)


@dataclass(frozen=True, slots=True)
class ClassificationSignals:
    """Boolean features of one rendered page."""

    # metadata
    is_og_product: bool = False
    has_schema_product: bool = False
    has_microdata: bool = False
    has_product_og_title: bool = False
    has_product_meta: bool = False
    has_item_prop: bool = False
    # structure
    has_title: bool = False
    has_price: bool = False
    has_add_to_cart: bool = False
    has_options: bool = False
    has_product_images: bool = False
    has_breadcrumbs: bool = False
    has_description: bool = False
    has_reviews: bool = False
    has_related_products: bool = False
    # url shape
    has_product_url_pattern: bool = False
    has_product_id_param: bool = False

    @property
    def is_strong_product(self) -> bool:
        """Metadata alone is conclusive."""
        return self.has_schema_product or self.is_og_product or self.has_microdata


SIGNAL_WEIGHTS: Tuple[Tuple[str, int], ...] = (
    ("has_product_url_pattern", 2),
    ("has_product_id_param", 2),
    ("has_product_og_title", 1),
    ("has_product_meta", 2),
    ("has_item_prop", 2),
    ("has_title", 3),
    ("has_price", 3),
    ("has_add_to_cart", 4),
    ("has_options", 2),
    ("has_product_images", 1),
    ("has_breadcrumbs", 1),
    ("has_description", 2),
    ("has_reviews", 1),
    ("has_related_products", 1),
)


def score(signals: ClassificationSignals) -> int:
    return sum(weight for name, weight in SIGNAL_WEIGHTS if getattr(signals, name))


# --------------------------------------------------------------------------- #
# Selectors                                                                   #
# --------------------------------------------------------------------------- #

TITLE_SELECTORS = (
    "h1",
    "h2",
    ".product-title",
    ".product-name",
    ".product-heading",
    ".pdp-title",
    "#product-title",
    '[data-testid*="product-title"]',
    '[data-testid*="productTitle"]',
    "[data-product-title]",
)
PRICE_SELECTORS = (
    ".price",
    ".product-price",
    ".pdp-price",
    ".current-price",
    '[data-testid*="price"]',
    "[data-price]",
    ".price-tag",
    '[itemprop="price"]',
)
CART_SELECTORS = (
    "button:not([disabled])",
    'input[type="submit"]:not([disabled])',
    "a.add-to-cart",
    "a.add-to-bag",
    ".add-to-cart",
    ".add-to-bag",
    ".buy-now",
    ".purchase-button",
    '[data-testid*="add-to-cart"]',
    '[data-testid*="buy-now"]',
)
CART_TEXT_RE = re.compile(
    r"add\s*to\s*cart|add\s*to\s*bag|buy\s*now|purchase|add\s*item|order\s*now|checkout",
    re.IGNORECASE,
)
OPTIONS_SELECTOR = 'select[name*="size"], select[name*="color"], .size-selector, .color-selector'
IMAGES_SELECTOR = ".product-images, .pdp-images, .carousel, .slider, [data-images], .product-gallery"
BREADCRUMBS_SELECTOR = '.breadcrumbs, .breadcrumb, nav[aria-label*="breadcrumb"]'
DESCRIPTION_SELECTOR = '.product-description, .description, .details, [data-testid*="description"]'
REVIEWS_SELECTOR = '.reviews, .ratings, .stars, [data-testid*="review"]'
RELATED_SELECTOR = ".related-products, .you-may-also-like, .similar-products"

OG_TITLE_RE = re.compile(r"buy|shop|product|item", re.IGNORECASE)
URL_PRODUCT_PATHS = ("/product/", "/p/", "/item/", "/pd/", "/shop/", "/buy/")
URL_PRODUCT_ID_RE = re.compile(r"[?&](pid|product_id|productid|itemid|sku|id)=", re.IGNORECASE)


# --------------------------------------------------------------------------- #
# Readers                                                                     #
# --------------------------------------------------------------------------- #


def _meta_content(soup: BeautifulSoup, prop: str) -> str:
    tag = soup.find("meta", attrs={"property": prop})
    if tag is None:
        return ""
    content = tag.get("content")
    return content if isinstance(content, str) else ""


def _json_ld_nodes(data: Any) -> Iterator[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _json_ld_nodes(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                if isinstance(item, dict):
                    yield item


def _is_product_type(node: dict) -> bool:
    kind = node.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _has_schema_product(soup: BeautifulSoup) -> bool:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        if any(_is_product_type(node) for node in _json_ld_nodes(data)):
            return True
    return False


def read_metadata(soup: BeautifulSoup) -> ClassificationSignals:
    """Open Graph, JSON-LD and microdata signals."""
    og_type = _meta_content(soup, "og:type")
    og_title = _meta_content(soup, "og:title")
    return ClassificationSignals(
        is_og_product="product" in og_type.lower(),
        has_schema_product=_has_schema_product(soup),
        has_microdata=soup.select_one('[itemtype*="schema.org/Product"]') is not None,
        has_product_og_title=bool(og_title and OG_TITLE_RE.search(og_title)),
        has_product_meta=soup.find("meta", attrs={"property": "product:price:amount"}) is not None,
        has_item_prop=soup.select_one('[itemprop="price"]') is not None,
    )


def _any(soup: BeautifulSoup, selectors: Sequence[str]) -> bool:
    return any(soup.select_one(s) is not None for s in selectors)


def _has_add_to_cart(soup: BeautifulSoup) -> bool:
    for el in soup.select(", ".join(CART_SELECTORS)):
        text = el.get_text(" ", strip=True) or str(el.get("value") or "")
        if CART_TEXT_RE.search(text):
            return True
    return False


def read_structure(soup: BeautifulSoup, url: str, metadata: ClassificationSignals) -> ClassificationSignals:
    """Add DOM-structure and URL-shape signals to *metadata*."""
    lowered = url.lower()
    return dataclasses.replace(
        metadata,
        has_title=_any(soup, TITLE_SELECTORS),
        has_price=_any(soup, PRICE_SELECTORS),
        has_add_to_cart=_has_add_to_cart(soup),
        has_options=soup.select_one(OPTIONS_SELECTOR) is not None,
        has_product_images=soup.select_one(IMAGES_SELECTOR) is not None,
        has_breadcrumbs=soup.select_one(BREADCRUMBS_SELECTOR) is not None,
        has_description=soup.select_one(DESCRIPTION_SELECTOR) is not None,
        has_reviews=soup.select_one(REVIEWS_SELECTOR) is not None,
        has_related_products=soup.select_one(RELATED_SELECTOR) is not None,
        has_product_url_pattern=any(p in lowered for p in URL_PRODUCT_PATHS),
        has_product_id_param=URL_PRODUCT_ID_RE.search(url) is not None,
    )
