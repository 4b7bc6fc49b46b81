import json

import pytest
from bs4 import BeautifulSoup

from conftest import ARTICLE_HTML, PRODUCT_HTML
from product_scout.classifier.content import ContentClassifier
from product_scout.classifier.patterns import PatternClassifier
from product_scout.classifier.signals import (
    SIGNAL_WEIGHTS,
    ClassificationSignals,
    read_metadata,
    read_structure,
    score,
)
from product_scout.crawler.models import RenderedPage

PLAIN_URL = "https://shop.example/red-shoe"


# --------------------------------------------------------------------------- #
#                              Pattern classifier                             #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://shop.example/product/42", True),
        ("https://shop.example/p/123", True),
        ("https://shop.example/PD/shoe-1", True),
        ("https://shop.example/item/9/", True),
        ("https://shop.example/view?pid=7", True),
        ("https://shop.example/view?color=red&SKU=7", True),
        ("https://shop.example/about", False),
        ("https://shop.example/cat/shoes", False),
        ("https://shop.example/products", False),
        ("https://shop.example/search?q=sku", False),
    ],
)
def test_pattern_classifier(url, expected):
    assert PatternClassifier().is_likely_product(url) is expected


def test_pattern_classifier_custom_patterns():
    classifier = PatternClassifier([r"-\d+\.html$"])
    assert classifier("https://shop.example/red-shoe-123.html")
    assert not classifier("https://shop.example/red-shoe.html")


def test_pattern_classifier_memoizes():
    classifier = PatternClassifier()
    url = "https://shop.example/product/42"
    first = classifier.is_likely_product(url)
    assert classifier.evaluations == 1
    for _ in range(3):
        assert classifier.is_likely_product(url) is first
    assert classifier.evaluations == 1
    assert classifier.is_likely_product("https://shop.example/about") is False
    assert classifier.is_likely_product("https://shop.example/about") is False
    assert classifier.evaluations == 2
    assert len(classifier) == 2


def test_pattern_caches_are_per_instance():
    a, b = PatternClassifier(), PatternClassifier()
    a("https://shop.example/product/1")
    assert len(a) == 1
    assert len(b) == 0


# --------------------------------------------------------------------------- #
#                               Signals & scoring                             #
# --------------------------------------------------------------------------- #


def test_score_uses_weight_table():
    assert score(ClassificationSignals()) == 0
    everything = ClassificationSignals(**{name: True for name, _ in SIGNAL_WEIGHTS})
    assert score(everything) == sum(w for _, w in SIGNAL_WEIGHTS)
    assert score(ClassificationSignals(has_add_to_cart=True)) == 4
    assert max(SIGNAL_WEIGHTS, key=lambda pair: pair[1])[0] == "has_add_to_cart"


def test_read_structure_signals():
    html = """
    <nav aria-label="breadcrumb"><a href="/">Home</a></nav>
    <div class="product-gallery"></div>
    <select name="size"><option>M</option></select>
    <div class="reviews"></div>
    <div class="similar-products"></div>
    <button disabled>Add to cart</button>
    """
    soup = BeautifulSoup(html, "html.parser")
    signals = read_structure(soup, "https://shop.example/shop/x?id=3", read_metadata(soup))
    assert signals.has_breadcrumbs
    assert signals.has_product_images
    assert signals.has_options
    assert signals.has_reviews
    assert signals.has_related_products
    assert signals.has_product_url_pattern
    assert signals.has_product_id_param
    # disabled buttons do not count
    assert not signals.has_add_to_cart
    assert not signals.has_title
    assert not signals.has_price


def test_add_to_cart_matches_submit_value():
    soup = BeautifulSoup("<button>Subscribe</button><input type='submit' value='Buy now'>", "html.parser")
    signals = read_structure(soup, PLAIN_URL, ClassificationSignals())
    assert signals.has_add_to_cart


@pytest.mark.parametrize(
    "ld",
    [
        {"@context": "https://schema.org", "@type": "Product", "name": "Shoe"},
        {"@graph": [{"@type": "WebPage"}, {"@type": "Product"}]},
        [{"@type": "BreadcrumbList"}, {"@type": ["Product", "Thing"]}],
    ],
)
def test_json_ld_product_detected(ld):
    html = f'<script type="application/ld+json">{json.dumps(ld)}</script>'
    assert read_metadata(BeautifulSoup(html, "html.parser")).has_schema_product


def test_broken_json_ld_is_ignored():
    html = '<script type="application/ld+json">{not json</script>'
    assert not read_metadata(BeautifulSoup(html, "html.parser")).has_schema_product


# --------------------------------------------------------------------------- #
#                              Content classifier                             #
# --------------------------------------------------------------------------- #


def test_structured_data_short_circuits():
    html = '<html><head><script type="application/ld+json">{"@type": "Product"}</script></head><body></body></html>'
    assert ContentClassifier().classify(RenderedPage(PLAIN_URL, html)) is True


@pytest.mark.parametrize(
    "head",
    [
        '<meta property="og:type" content="og:Product">',
        '<meta property="og:type" content="product.item">',
    ],
)
def test_open_graph_product_short_circuits(head):
    html = f"<html><head>{head}</head><body></body></html>"
    assert ContentClassifier().classify(RenderedPage(PLAIN_URL, html))


def test_microdata_short_circuits():
    html = '<div itemscope itemtype="https://schema.org/Product"><span>Shoe</span></div>'
    assert ContentClassifier().classify(RenderedPage(PLAIN_URL, html))


def test_cart_title_price_page_is_product():
    assert ContentClassifier().classify(RenderedPage(PLAIN_URL, PRODUCT_HTML)) is True


def test_title_and_description_page_is_not_product():
    assert ContentClassifier().classify(RenderedPage(PLAIN_URL, ARTICLE_HTML)) is False


def test_threshold_is_inclusive():
    # title (3) + add-to-cart (4) == 7
    html = "<h1>Shoe</h1><button>Add to bag</button>"
    assert ContentClassifier(threshold=7).classify(RenderedPage(PLAIN_URL, html))
    assert not ContentClassifier(threshold=8).classify(RenderedPage(PLAIN_URL, html))


def test_url_shape_adds_to_score():
    # title (3) + description (2) + /shop/ path (2) == 7
    url = "https://shop.example/shop/red-shoe"
    assert ContentClassifier().classify(RenderedPage(url, ARTICLE_HTML))
