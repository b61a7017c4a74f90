"""
Site crawl orchestrator.

For one site:
- navigate the entry page and discover candidate links
- extract the entry page itself as the main program
- optionally follow the main program's subprogram links (children)
- follow the discovered links (independent top-level candidates)
- validate, optionally AI-enhance, and deduplicate by (name, source)
"""

from dataclasses import replace
from typing import Optional
from urllib.parse import urljoin

import structlog

from .core.batching import process_in_batches
from .core.browser import PageFactory, navigate, navigation_strategies, open_page, settle
from .core.deduplicator import deduplicate
from .core.models import PageExtraction, ProgramRecord, SiteConfig, SubprogramLink
from .core.validation import is_valid_program
from .navigators.links import discover_links, same_origin
from .parsers.page import PageExtractor
from .plugins.llm import ProgramEnhancer

logger = structlog.get_logger(__name__)


class SiteCrawler:
    """
    Crawls one funding site.

    Every detail page gets its own browser page; failures of single
    pages are isolated by the batch controller. A failure on the entry
    page propagates so the caller can retry the whole site.
    """

    def __init__(
        self,
        factory: PageFactory,
        site: SiteConfig,
        enhancer: Optional[ProgramEnhancer] = None,
    ):
        """
        Initialize crawler.

        Args:
            factory: Creates browser pages (session, browser or context)
            site: Site policy
            enhancer: Optional AI enhancer applied to accepted records
        """
        self.factory = factory
        self.site = site
        self.enhancer = enhancer
        self.extractor = PageExtractor(site)
        self.logger = logger.bind(site=site.site_id)

        self.entry_navigation = navigation_strategies(site.entry_timeout_ms, site.entry_timeout_ms * 2 // 3)
        self.detail_navigation = navigation_strategies(site.navigation_timeout_ms)

    async def crawl(self) -> list[ProgramRecord]:
        """
        Crawl the site.

        Returns:
            Deduplicated records: main program, children, then linked programs
        """
        site = self.site
        self.logger.info("crawling_site", url=site.start_url)

        async with open_page(self.factory, site.entry_timeout_ms) as entry:
            await navigate(entry, site.start_url, self.entry_navigation)
            await settle(entry)

            links = (await discover_links(entry, site.start_url, site.keyword_regex))[: site.max_links]
            main = await self.extractor.extract(entry, site.start_url, strategies=[])

        results: list[ProgramRecord] = []

        children: list[ProgramRecord] = []
        if site.extract_subprograms and main.subprogram_links:
            child_links = list(main.subprogram_links[: site.max_subprograms])
            self.logger.info("following_subprograms", parent=main.record.name[:60], count=len(child_links))
            children = await process_in_batches(
                child_links,
                site.concurrency,
                lambda link: self._extract_child(link, main.record.name),
                delay_ms=site.delay_ms,
                label=f"{site.site_id}:subprograms",
            )

        if is_valid_program(main.record):
            results.append(await self._enhance(main))
        results.extend(children)

        if links:
            linked = await process_in_batches(
                links,
                site.concurrency,
                self._extract_linked,
                delay_ms=site.delay_ms,
                label=f"{site.site_id}:links",
            )
            results.extend(linked)

        programs = deduplicate(results)

        self.logger.info(
            "site_crawled",
            links=len(links),
            subprograms=len(children),
            candidates=len(results),
            programs=len(programs),
        )
        return programs

    async def _extract_page(self, url: str) -> PageExtraction:
        async with open_page(self.factory, self.site.navigation_timeout_ms) as page:
            return await self.extractor.extract(page, url, self.detail_navigation)

    async def _extract_child(self, link: SubprogramLink, parent_name: str) -> Optional[ProgramRecord]:
        """Extract one subprogram page and tag it with its parent."""
        url = link.href if link.href.startswith("http") else urljoin(self.site.start_url, link.href)
        if not same_origin(url, self.site.start_url):
            self.logger.debug("subprogram_off_origin", url=url)
            return None

        extraction = await self._extract_page(url)
        if not is_valid_program(extraction.record):
            return None

        tagged = replace(
            extraction.record,
            parent_program=parent_name,
            parent_source=self.site.start_url,
        )
        return await self._enhance(replace(extraction, record=tagged))

    async def _extract_linked(self, url: str) -> Optional[ProgramRecord]:
        extraction = await self._extract_page(url)
        if not is_valid_program(extraction.record):
            return None
        return await self._enhance(extraction)

    async def _enhance(self, extraction: PageExtraction) -> ProgramRecord:
        if self.enhancer is None:
            return extraction.record
        return await self.enhancer.enhance(extraction.record, extraction.page_text)


async def crawl_and_extract(
    factory: PageFactory,
    site: SiteConfig,
    enhancer: Optional[ProgramEnhancer] = None,
) -> list[ProgramRecord]:
    """
    Convenience function to crawl one site.

    Args:
        factory: Creates browser pages
        site: Site policy
        enhancer: Optional AI enhancer

    Returns:
        Deduplicated program records
    """
    return await SiteCrawler(factory, site, enhancer).crawl()
