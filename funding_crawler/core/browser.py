"""
Headless browser wiring built on Playwright.

Provides:
- BrowserSession: owns the Playwright driver, browser and context
- open_page: one page per work item, heavy resources blocked, always closed
- navigate: ordered wait-condition strategies, first success wins
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from .errors import NavigationError

logger = structlog.get_logger(__name__)


BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

# Post-DOMContentLoaded settle time
SETTLE_DELAY_MS = 100

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class PageFactory(Protocol):
    """Anything that can create pages (Browser, BrowserContext, BrowserSession)."""

    async def new_page(self) -> Page: ...


@dataclass(frozen=True)
class NavigationStrategy:
    """One navigation attempt: a wait condition and its own timeout."""
    wait_until: str
    timeout_ms: int


def navigation_strategies(timeout_ms: int, fallback_timeout_ms: Optional[int] = None) -> list[NavigationStrategy]:
    """
    Degrading navigation chain.

    DOMContentLoaded first, then full load, then a bare commit as the
    last resort. The commit attempt defaults to three quarters of the
    main timeout.
    """
    if fallback_timeout_ms is None:
        fallback_timeout_ms = timeout_ms * 3 // 4
    return [
        NavigationStrategy("domcontentloaded", timeout_ms),
        NavigationStrategy("load", timeout_ms),
        NavigationStrategy("commit", fallback_timeout_ms),
    ]


# Detail pages and the site entry page use different budgets
DETAIL_NAVIGATION = navigation_strategies(20000, 15000)
ENTRY_NAVIGATION = navigation_strategies(30000, 20000)


async def block_heavy_resources(route: Route) -> None:
    """Abort image/stylesheet/font/media requests, let everything else through."""
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


@asynccontextmanager
async def open_page(factory: PageFactory, navigation_timeout_ms: int = 20000) -> AsyncIterator[Page]:
    """
    Open a page for the duration of one work item.

    The page blocks heavy resources for its whole lifetime and is closed
    on exit whether or not the work item succeeded.
    """
    page = await factory.new_page()
    try:
        page.set_default_navigation_timeout(navigation_timeout_ms)
        await page.route("**/*", block_heavy_resources)
        yield page
    finally:
        try:
            await page.close()
        except PlaywrightError as e:
            logger.debug("page_close_failed", error=str(e))


async def navigate(page: Page, url: str, strategies: list[NavigationStrategy] = DETAIL_NAVIGATION) -> str:
    """
    Navigate page to url, trying each strategy in order.

    Args:
        page: Browser page
        url: Target URL
        strategies: Ordered navigation strategies

    Returns:
        The wait condition that succeeded

    Raises:
        NavigationError: If every strategy failed
    """
    attempts: list[str] = []

    for strategy in strategies:
        try:
            await page.goto(url, wait_until=strategy.wait_until, timeout=strategy.timeout_ms)
        except PlaywrightError as e:
            attempts.append(f"{strategy.wait_until}: {e}")
            logger.debug("navigation_attempt_failed", url=url, wait_until=strategy.wait_until, error=str(e))
            continue

        if attempts:
            logger.debug("navigation_recovered", url=url, wait_until=strategy.wait_until, failed_attempts=len(attempts))
        return strategy.wait_until

    raise NavigationError(url, attempts)


async def settle(page: Page, delay_ms: int = SETTLE_DELAY_MS) -> None:
    await page.wait_for_timeout(delay_ms)


class BrowserSession:
    """
    Playwright Chromium session.

    Usage:
        async with BrowserSession() as session:
            async with open_page(session) as page:
                await navigate(page, "https://example.com")
    """

    def __init__(self, headless: bool = True, user_agent: Optional[str] = DEFAULT_USER_AGENT):
        """
        Initialize session.

        Args:
            headless: Run Chromium without a window
            user_agent: User agent for every page in the session
        """
        self.headless = headless
        self.user_agent = user_agent

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "BrowserSession":
        """Start driver and launch the browser."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(user_agent=self.user_agent)
        logger.info("browser_started", headless=self.headless)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the context, browser and driver."""
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        logger.info("browser_stopped")

    async def new_page(self) -> Page:
        if not self._context:
            raise RuntimeError("Browser not started. Use 'async with' context.")
        return await self._context.new_page()
