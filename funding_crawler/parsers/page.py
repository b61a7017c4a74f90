"""
Program page extractor.

Drives one browser page through navigation, reads the rendered HTML
into an independent tree, and assembles a ProgramRecord from the DOM
sections plus the pattern-based field extractors.
"""

from typing import Optional

import structlog
from playwright.async_api import Page

from funding_crawler.core.browser import DETAIL_NAVIGATION, NavigationStrategy, navigate, settle
from funding_crawler.core.extractors import (
    extract_amounts,
    extract_application_process,
    extract_contact_info,
    extract_deadlines,
    extract_section_after_heading,
    extract_sectors,
)
from funding_crawler.core.models import PageExtraction, ProgramRecord, SiteConfig
from funding_crawler.core.normalizer import clean_eligibility, clean_text, extract_clean_summary, normalize_text
from funding_crawler.core.selectors import extract_sections

logger = structlog.get_logger(__name__)


def parse_program_html(html: str, url: str, site: SiteConfig, document_title: str = "") -> PageExtraction:
    """
    Extract a program from rendered HTML.

    Pure function: no browser, no network.

    Args:
        html: Rendered page HTML
        url: Canonical page URL (becomes the record source)
        site: Site policy
        document_title: Browser-reported document title

    Returns:
        PageExtraction with the record, subprogram links and page text
    """
    sections = extract_sections(html, site, document_title)
    raw = clean_text(sections.content_text)

    eligibility = sections.eligibility or extract_section_after_heading(raw, site.eligibility_regex)
    eligibility = clean_eligibility(eligibility)

    summary = extract_clean_summary(sections.overview or sections.first_paragraph, eligibility)
    contact = extract_contact_info(raw)

    record = ProgramRecord(
        name=normalize_text(clean_text(sections.title)),
        source=url,
        summary=normalize_text(summary),
        eligibility=eligibility,
        funding_amount=extract_amounts(raw),
        deadlines=extract_deadlines(raw),
        contact_email=contact["email"],
        contact_phone=contact["phone"],
        application_process=extract_application_process(raw),
        sectors=extract_sectors(raw),
    )

    return PageExtraction(
        record=record,
        subprogram_links=tuple(sections.subprogram_links),
        page_text=raw,
    )


class PageExtractor:
    """
    Extracts one program per browser page.

    Navigation failures propagate as NavigationError; missing fields
    are empty strings.
    """

    def __init__(self, site: SiteConfig):
        """
        Initialize extractor.

        Args:
            site: Site policy used for every page
        """
        self.site = site
        self.logger = logger.bind(site=site.site_id)

    async def extract(
        self,
        page: Page,
        url: str,
        strategies: Optional[list[NavigationStrategy]] = None,
    ) -> PageExtraction:
        """
        Navigate (unless strategies is an empty list) and extract.

        Args:
            page: Page owned by the caller
            url: Page URL
            strategies: Navigation chain; None uses the detail-page chain,
                [] extracts the already loaded page

        Returns:
            PageExtraction
        """
        if strategies is None:
            strategies = DETAIL_NAVIGATION

        if strategies:
            await navigate(page, url, strategies)
            await settle(page)

        html = await page.content()
        document_title = await page.title()

        extraction = parse_program_html(html, url, self.site, document_title)

        self.logger.debug(
            "page_extracted",
            url=url,
            name=extraction.record.name[:60],
            subprogram_links=len(extraction.subprogram_links),
        )
        return extraction
