"""
DOM section logic for rendered funding-program pages.

Works on an independent BeautifulSoup parse of the rendered HTML. The
main content region is copied into a new tree with navigation, footer,
sidebar and other noise subtrees left out; the source document is only
read, never modified.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

import soupsieve as sv
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

import structlog

from .models import SiteConfig, SubprogramLink
from .normalizer import collapse_whitespace, strip_title_decorations

logger = structlog.get_logger(__name__)


# Main content region, first match in document order
MAIN_CONTENT_SELECTOR = (
    'main, article, [role="main"], .content, .entry-content, .post-content, .page-content, .main-content'
)

# Subtrees left out of the content tree
NOISE_SELECTOR = (
    "nav, header, footer, aside, .nav, .navigation, .menu, .navbar, .header, .footer, .sidebar, "
    ".widget, .cookie, .disclaimer, .legal, [role=\"navigation\"], [role=\"banner\"], "
    "[role=\"contentinfo\"], [role=\"complementary\"], .success-stories, .testimonials, "
    ".related-posts, .social-share, .social-media, script, style, noscript, template"
)

SUMMARY_ALTERNATIVES_SELECTOR = "p, .intro, .summary, .description, .lead"

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

ELIGIBILITY_MAX_LENGTH = 400
ELIGIBILITY_MAX_ELEMENTS = 10
ELIGIBILITY_MIN_ELEMENT_LENGTH = 10
ELIGIBILITY_SECTION_BREAK_AFTER = 50

OVERVIEW_MIN_LENGTH = 30
OVERVIEW_MAX_LENGTH = 400
FIRST_PARAGRAPH_MIN_LENGTH = 20
FIRST_PARAGRAPH_MAX_LENGTH = 500
FALLBACK_PARAGRAPH_MIN_LENGTH = 30

SECTION_MARKETING_RE = re.compile(
    r"(success stories|testimonials|we want to|pay homage|related|see also|click here|learn more|"
    r"read more|case studies)",
    re.IGNORECASE,
)
MAJOR_SECTION_RE = re.compile(
    r"(overview|summary|funding|application|process|how to apply|contact|benefits|features|about|background)",
    re.IGNORECASE,
)

OVERVIEW_ELIGIBILITY_RE = re.compile(r"(eligibil|requirements|qualif|who can apply|criteria)", re.IGNORECASE)
OVERVIEW_MARKETING_RE = re.compile(
    r"(success stories|testimonials|we want to|pay homage|click here|learn more)",
    re.IGNORECASE,
)
NAVIGATION_START_RE = re.compile(r"^(apply|who we are|our mandate|vision|mission|copyright|privacy)", re.IGNORECASE)
SHORT_NAVIGATION_START_RE = re.compile(r"^(apply|who we are|our mandate|vision|mission)", re.IGNORECASE)

SUBPROGRAM_FUNDING_RE = re.compile(
    r"(funding|program|programme|grant|loan|apply|instrument|opportunit|support|finance|scheme|initiative)",
    re.IGNORECASE,
)
SUBPROGRAM_EXCLUDE_RE = re.compile(
    r"(about|contact|news|careers|privacy|terms|cookie|who we are|our mandate|vision|mission|values|board|"
    r"executive|philosophy|process|compliance|research|insights|media|speech|interview)",
    re.IGNORECASE,
)
MIN_SUBPROGRAM_TEXT_LENGTH = 3

_NOISE_MATCHER = sv.compile(NOISE_SELECTOR)


@dataclass
class PageSections:
    """Raw sections read from one rendered page, before post-processing."""
    title: str = ""
    first_paragraph: str = ""
    overview: str = ""
    eligibility: str = ""
    content_text: str = ""
    subprogram_links: list[SubprogramLink] = field(default_factory=list)


def element_text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return collapse_whitespace(element.get_text(" "))


def get_main_container(soup: BeautifulSoup) -> Tag:
    """
    Find the main content container in the page.

    Args:
        soup: Parsed HTML

    Returns:
        First main-content match or body/soup fallback
    """
    container = soup.select_one(MAIN_CONTENT_SELECTOR)
    if container:
        return container
    return soup.body or soup


def _copy_filtered(source: Tag, tree: BeautifulSoup, target: Tag) -> None:
    for child in source.children:
        if isinstance(child, Tag):
            if _NOISE_MATCHER.match(child):
                continue
            clone = tree.new_tag(child.name, attrs=dict(child.attrs))
            target.append(clone)
            _copy_filtered(child, tree, clone)
        elif isinstance(child, NavigableString) and not isinstance(child, Comment):
            target.append(str(child))


def build_content_tree(container: Tag) -> BeautifulSoup:
    """
    Build a new tree holding the container's content minus noise subtrees.

    Args:
        container: Main content element of the source document

    Returns:
        Independent BeautifulSoup tree rooted at a copy of the container
    """
    tree = BeautifulSoup("", "lxml")
    if isinstance(container, BeautifulSoup):
        root = tree.new_tag("div")
    else:
        root = tree.new_tag(container.name, attrs=dict(container.attrs))
    tree.append(root)
    _copy_filtered(container, tree, root)
    return tree


def extract_page_title(soup: BeautifulSoup, name_selector: str, document_title: str = "") -> str:
    """Title from the configured heading selector, else the document title."""
    title = element_text(soup.select_one(name_selector))
    if not title:
        title = document_title or element_text(soup.title)
    return strip_title_decorations(title)


def extract_section_by_heading(
    content: BeautifulSoup,
    heading_regex: re.Pattern,
    max_length: int = ELIGIBILITY_MAX_LENGTH,
) -> str:
    """
    Collect the text that follows the first heading matching heading_regex.

    Sibling elements are accumulated until one of:
    - another heading element
    - a marketing marker in the element text
    - a major-section keyword once over 50 chars are collected
    - the element-count or length cap

    Args:
        content: Filtered content tree
        heading_regex: Compiled pattern for the section heading
        max_length: Maximum section length

    Returns:
        Section text or empty string
    """
    for heading in content.find_all(HEADING_TAGS):
        if not heading_regex.search(element_text(heading)):
            continue

        parts: list[str] = []
        collected = 0
        current = heading.find_next_sibling()
        element_count = 0

        while current is not None and collected < max_length and element_count < ELIGIBILITY_MAX_ELEMENTS:
            if current.name in HEADING_TAGS:
                break

            text = element_text(current)

            if SECTION_MARKETING_RE.search(text):
                break

            if MAJOR_SECTION_RE.search(text) and collected > ELIGIBILITY_SECTION_BREAK_AFTER:
                break

            if len(text) > ELIGIBILITY_MIN_ELEMENT_LENGTH:
                parts.append(text)
                collected += len(text) + 1

            current = current.find_next_sibling()
            element_count += 1

        return " ".join(parts).strip()[:max_length]

    return ""


def extract_overview(content: BeautifulSoup) -> str:
    """First paragraph of reasonable length that is not eligibility, marketing or navigation."""
    for paragraph in content.find_all("p"):
        text = element_text(paragraph)
        if len(text) < OVERVIEW_MIN_LENGTH or len(text) > OVERVIEW_MAX_LENGTH:
            continue
        if OVERVIEW_ELIGIBILITY_RE.search(text):
            continue
        if OVERVIEW_MARKETING_RE.search(text):
            continue
        if NAVIGATION_START_RE.search(text):
            continue
        return text
    return ""


def extract_first_paragraph(soup: BeautifulSoup, content: BeautifulSoup, summary_selector: str) -> str:
    """
    First meaningful paragraph.

    Tries the configured selector on the whole document, then
    paragraph-like elements of the content tree, and finally any
    content paragraph that does not open like a navigation menu.
    """
    text = element_text(soup.select_one(summary_selector))

    if len(text) < FIRST_PARAGRAPH_MIN_LENGTH:
        for candidate in content.select(SUMMARY_ALTERNATIVES_SELECTOR):
            candidate_text = element_text(candidate)
            if FIRST_PARAGRAPH_MIN_LENGTH <= len(candidate_text) < FIRST_PARAGRAPH_MAX_LENGTH:
                text = candidate_text
                break

    if not text or len(text) < FIRST_PARAGRAPH_MIN_LENGTH or SHORT_NAVIGATION_START_RE.search(text):
        for paragraph in content.find_all("p"):
            candidate_text = element_text(paragraph)
            if (
                FALLBACK_PARAGRAPH_MIN_LENGTH <= len(candidate_text) < FIRST_PARAGRAPH_MAX_LENGTH
                and not NAVIGATION_START_RE.search(candidate_text)
            ):
                text = candidate_text
                break

    return text


def extract_subprogram_links(soup: BeautifulSoup, selector: str, limit: int) -> list[SubprogramLink]:
    """
    Candidate child-program links.

    Each match must resolve to an anchor (itself or an ancestor), carry
    a funding keyword in its href or text, avoid the exclusion list in
    both, and have text longer than 3 chars.

    Args:
        soup: Full parsed document
        selector: Configured CSS selector for subprogram elements
        limit: Maximum number of links returned

    Returns:
        Links in document order
    """
    links: list[SubprogramLink] = []
    for element in soup.select(selector):
        anchor = element if element.name == "a" else element.find_parent("a")
        if anchor is None:
            continue

        href = (anchor.get("href") or "").strip()
        text = element_text(element) or element_text(anchor)

        if not href or len(text) <= MIN_SUBPROGRAM_TEXT_LENGTH:
            continue
        if not (SUBPROGRAM_FUNDING_RE.search(href) or SUBPROGRAM_FUNDING_RE.search(text)):
            continue
        if SUBPROGRAM_EXCLUDE_RE.search(text) or SUBPROGRAM_EXCLUDE_RE.search(href):
            continue

        links.append(SubprogramLink(href=href, text=text))
        if len(links) >= limit:
            break

    return links


def extract_sections(html: str, site: SiteConfig, document_title: str = "") -> PageSections:
    """
    Read every raw section the page extractor needs from rendered HTML.

    Args:
        html: Rendered page HTML
        site: Site policy (selectors, eligibility pattern, subprogram settings)
        document_title: Title reported by the browser

    Returns:
        PageSections
    """
    soup = BeautifulSoup(html or "", "lxml")
    content = build_content_tree(get_main_container(soup))

    overview = extract_overview(content)
    sections = PageSections(
        title=extract_page_title(soup, site.name_selector, document_title),
        overview=overview,
        first_paragraph=extract_first_paragraph(soup, content, site.summary_selector) or overview,
        eligibility=extract_section_by_heading(content, site.eligibility_regex),
        content_text=content.get_text(" ", strip=True),
    )

    if site.subprogram_selector:
        sections.subprogram_links = extract_subprogram_links(soup, site.subprogram_selector, site.max_subprograms)

    return sections
