"""Tests for browser page helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from funding_crawler.core.browser import (
    NavigationStrategy,
    block_heavy_resources,
    navigate,
    navigation_strategies,
    open_page,
)
from funding_crawler.core.errors import NavigationError


def make_page() -> MagicMock:
    """Page double with async navigation methods."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.route = AsyncMock()
    page.close = AsyncMock()
    return page


class TestNavigationStrategies:
    """Tests for navigation_strategies function."""

    def test_default_fallback_timeout(self):
        """Test the commit attempt defaults to three quarters of the timeout."""
        assert navigation_strategies(20000) == [
            NavigationStrategy("domcontentloaded", 20000),
            NavigationStrategy("load", 20000),
            NavigationStrategy("commit", 15000),
        ]


class TestNavigate:
    """Tests for navigate function."""

    @pytest.mark.asyncio
    async def test_first_strategy_succeeds(self):
        """Test first successful wait condition is returned."""
        page = make_page()

        assert await navigate(page, "https://x.org/") == "domcontentloaded"
        page.goto.assert_awaited_once_with("https://x.org/", wait_until="domcontentloaded", timeout=20000)

    @pytest.mark.asyncio
    async def test_falls_back(self):
        """Test a timeout on one strategy moves on to the next."""
        page = make_page()
        page.goto.side_effect = [PlaywrightError("Timeout 20000ms exceeded"), None]

        assert await navigate(page, "https://x.org/") == "load"
        assert page.goto.await_count == 2

    @pytest.mark.asyncio
    async def test_all_strategies_fail(self):
        """Test NavigationError lists every failed attempt."""
        page = make_page()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(NavigationError) as exc_info:
            await navigate(page, "https://x.org/")

        assert exc_info.value.url == "https://x.org/"
        assert len(exc_info.value.attempts) == 3


class TestOpenPage:
    """Tests for open_page context manager."""

    @pytest.mark.asyncio
    async def test_page_closed_on_error(self):
        """Test the page is closed even when the work item fails."""
        page = make_page()
        factory = MagicMock()
        factory.new_page = AsyncMock(return_value=page)

        with pytest.raises(RuntimeError):
            async with open_page(factory, 15000):
                raise RuntimeError("extraction failed")

        page.set_default_navigation_timeout.assert_called_once_with(15000)
        page.route.assert_awaited_once_with("**/*", block_heavy_resources)
        page.close.assert_awaited_once()


class TestBlockHeavyResources:
    """Tests for the request interceptor."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource_type,blocked", [("image", True), ("font", True), ("document", False)])
    async def test_blocking(self, resource_type, blocked):
        """Test heavy resources are aborted and the rest continue."""
        route = MagicMock()
        route.request.resource_type = resource_type
        route.abort = AsyncMock()
        route.continue_ = AsyncMock()

        await block_heavy_resources(route)

        assert route.abort.await_count == (1 if blocked else 0)
        assert route.continue_.await_count == (0 if blocked else 1)
