"""Product page classifiers: URL-pattern fast path and rendered-content heuristic."""
from product_scout.classifier.content import ContentClassifier
from product_scout.classifier.patterns import PatternClassifier

__all__ = ("ContentClassifier", "PatternClassifier")
