"""product_scout.utils: URL resolution and domain matching helpers."""

from __future__ import annotations

from typing import Optional, Sequence
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from product_scout.logger import logger

__all__: Sequence[str] = ("resolve", "in_domain", "hostname", "is_http_url")

_SCHEMES = frozenset({"http", "https"})


def hostname(url: str) -> Optional[str]:
    """Return the lower-cased host of *url*, or None when it cannot be parsed."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host.lower() if host else None


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in _SCHEMES and bool(parts.netloc)


def resolve(href: str, base_url: str) -> Optional[str]:
    """Resolve *href* against *base_url*.

    Returns the absolute URL without its fragment, or None when the result is
    not an http(s) URL or cannot be parsed.
    """
    raw = href.strip()
    if not raw:
        return None
    try:
        absolute, _ = urldefrag(urljoin(base_url, raw))
    except ValueError as exc:
        logger.debug("Skip malformed href %r on %s: %s", raw, base_url, exc)
        return None
    if not is_http_url(absolute):
        return None
    parts = urlsplit(absolute)
    # urlsplit is lazy about ports; force validation of the netloc
    try:
        parts.port
    except ValueError:
        return None
    if not parts.path:
        return urlunsplit(parts._replace(path="/"))
    return absolute


def in_domain(url: str, target: str) -> bool:
    """Check that *url* belongs to *target*'s host or one of its subdomains."""
    url_host = hostname(url)
    target_host = hostname(target)
    if not url_host or not target_host:
        return False
    return url_host == target_host or url_host.endswith("." + target_host)
