"""
Link discovery: entry page -> candidate detail pages.

Collects anchors from a rendered page and keeps absolute, same-origin
URLs whose href or text matches the site's keyword pattern.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urldefrag, urljoin, urlsplit

import structlog
from playwright.async_api import Page

from funding_crawler.core.models import DEFAULT_LINK_KEYWORDS

logger = structlog.get_logger(__name__)


SKIPPED_PREFIXES = ("#", "mailto:", "tel:")

DEFAULT_PORTS = {"http": 80, "https": 443}

# Runs in the page; returns plain serializable data
ANCHORS_SCRIPT = "anchors => anchors.map(a => ({href: a.getAttribute('href') || '', text: a.textContent || ''}))"


def origin(url: str) -> Optional[tuple[str, str, int]]:
    """(scheme, host, port) of url, or None if it cannot be parsed."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if not scheme or not parts.hostname:
        return None

    return scheme, parts.hostname.lower(), port or DEFAULT_PORTS.get(scheme, 0)


def same_origin(a: str, b: str) -> bool:
    """True when scheme, host and port of both URLs are identical."""
    origin_a = origin(a)
    return origin_a is not None and origin_a == origin(b)


def filter_links(
    anchors: Iterable[dict],
    base_url: str,
    keyword_regex: Optional[re.Pattern] = None,
) -> list[str]:
    """
    Filter raw anchors down to candidate detail-page URLs.

    Args:
        anchors: Dicts with "href" and "text" as read from the page
        base_url: URL the anchors were found on
        keyword_regex: Pattern matched against href or anchor text

    Returns:
        Ordered, de-duplicated absolute URLs
    """
    keyword_regex = keyword_regex or re.compile(DEFAULT_LINK_KEYWORDS, re.IGNORECASE)

    urls: list[str] = []
    seen: set[str] = set()

    for anchor in anchors:
        href = (anchor.get("href") or "").strip()
        text = anchor.get("text") or ""

        if not href or href.startswith(SKIPPED_PREFIXES):
            continue

        try:
            url = urldefrag(urljoin(base_url, href)).url
        except ValueError:
            continue

        if not (keyword_regex.search(href) or keyword_regex.search(text)):
            continue

        if not same_origin(url, base_url):
            continue

        if url in seen:
            continue
        seen.add(url)
        urls.append(url)

    return urls


async def discover_links(page: Page, base_url: str, keyword_regex: Optional[re.Pattern] = None) -> list[str]:
    """
    Discover candidate detail-page links on a rendered page.

    Args:
        page: Page already navigated to base_url
        base_url: Entry URL used for resolution and origin checks
        keyword_regex: Site keyword pattern

    Returns:
        Ordered, de-duplicated same-origin URLs (the caller applies max_links)
    """
    anchors = await page.eval_on_selector_all("a[href]", ANCHORS_SCRIPT)
    links = filter_links(anchors or [], base_url, keyword_regex)

    logger.info("links_discovered", url=base_url, anchors=len(anchors or []), candidates=len(links))

    return links
