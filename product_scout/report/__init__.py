"""Report writers for crawl results."""
from product_scout.report.json_report import render_json

__all__ = ["render_json"]
