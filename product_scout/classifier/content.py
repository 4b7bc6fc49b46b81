"""
Content classifier: decides whether a rendered page is a product detail page.
"""
from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from product_scout.classifier.signals import read_metadata, read_structure, score
from product_scout.crawler.models import RenderedPage

DEFAULT_THRESHOLD = 7


class ContentClassifier:
    """Two-stage verdict.

    Stage one returns True as soon as the page metadata declares a product
    (JSON-LD ``Product``, schema.org Product microdata, ``og:type`` product).
    Otherwise the structural signals are scored against ``threshold``.
    """

    def __init__(self, threshold: int = DEFAULT_THRESHOLD) -> None:
        self.threshold = threshold
        self.logger = logging.getLogger("ProductScout")

    def classify(self, page: RenderedPage) -> bool:
        soup = BeautifulSoup(page.html, "html.parser")
        metadata = read_metadata(soup)
        if metadata.is_strong_product:
            self.logger.debug("Product metadata on %s", page.url)
            return True
        confidence = score(read_structure(soup, page.url, metadata))
        self.logger.debug("Confidence %d/%d for %s", confidence, self.threshold, page.url)
        return confidence >= self.threshold

    __call__ = classify
