"""Tests for link discovery."""

import re
from unittest.mock import AsyncMock

import pytest

from funding_crawler.navigators.links import discover_links, filter_links, origin, same_origin

BASE_URL = "https://www.sefa.org.za/products"


class TestOrigin:
    """Tests for origin helpers."""

    def test_default_port(self):
        """Test default ports are filled in."""
        assert origin("https://x.org/a") == ("https", "x.org", 443)
        assert same_origin("https://x.org/a", "https://X.org:443/b") is True

    @pytest.mark.parametrize(
        "other",
        ["http://x.org/a", "https://x.org:8443/a", "https://sub.x.org/a", "not a url"],
    )
    def test_different_origin(self, other):
        """Test scheme, port and host must all match."""
        assert same_origin(other, "https://x.org/") is False


class TestFilterLinks:
    """Tests for filter_links function."""

    def test_filters_and_resolves(self):
        """Test relative links resolve and off-origin or skipped links are dropped."""
        anchors = [
            {"href": "/funding/a", "text": "A"},
            {"href": "https://www.sefa.org.za/programmes/b", "text": "B"},
            {"href": "https://other.org/funding", "text": "Funding"},
            {"href": "#top", "text": "Funding"},
            {"href": "mailto:loans@sefa.org.za", "text": "Apply"},
            {"href": "tel:0127489600", "text": "Apply"},
            {"href": "/funding/a", "text": "Duplicate"},
            {"href": "/contact", "text": "Contact"},
        ]

        assert filter_links(anchors, BASE_URL) == [
            "https://www.sefa.org.za/funding/a",
            "https://www.sefa.org.za/programmes/b",
        ]

    def test_fragments_stripped(self):
        """Test links differing only by fragment collapse to one page URL."""
        anchors = [
            {"href": "/funding/a", "text": "Fund A"},
            {"href": "/funding/a#apply", "text": "Apply now"},
            {"href": "https://www.sefa.org.za/funding/b#criteria", "text": "Fund B"},
        ]

        assert filter_links(anchors, BASE_URL) == [
            "https://www.sefa.org.za/funding/a",
            "https://www.sefa.org.za/funding/b",
        ]

    def test_keyword_in_text(self):
        """Test anchor text alone can satisfy the keyword pattern."""
        anchors = [{"href": "/page?id=7", "text": "Apply for a grant"}]
        assert filter_links(anchors, BASE_URL) == ["https://www.sefa.org.za/page?id=7"]

    def test_site_keyword_pattern(self):
        """Test the site pattern replaces the default vocabulary."""
        anchors = [{"href": "/incentives/a", "text": "A"}, {"href": "/funding/b", "text": "B"}]
        keyword_regex = re.compile(r"(incentive)", re.IGNORECASE)

        assert filter_links(anchors, BASE_URL, keyword_regex) == ["https://www.sefa.org.za/incentives/a"]


class TestDiscoverLinks:
    """Tests for discover_links function."""

    @pytest.mark.asyncio
    async def test_reads_anchors_from_page(self):
        """Test anchors are read through the page and filtered."""
        page = AsyncMock()
        page.eval_on_selector_all.return_value = [
            {"href": "/funding/a", "text": "Fund A"},
            {"href": "https://elsewhere.org/funding", "text": "Funding"},
        ]

        links = await discover_links(page, "https://x.org/")

        assert links == ["https://x.org/funding/a"]
        assert page.eval_on_selector_all.await_args.args[0] == "a[href]"
