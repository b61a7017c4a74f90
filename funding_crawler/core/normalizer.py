"""
Normalization utilities for scraped funding-program text.

Handles:
- Entity decoding, CDATA and markup removal
- Site navigation / footer noise spans
- Marketing and testimonial content
- Footer / legal boilerplate in eligibility sections
- Summary trimming to a sentence boundary

All functions are pure: empty input gives empty output and nothing raises.
"""

import re


# Eligibility text shorter than this after cleaning is discarded
MIN_ELIGIBILITY_LENGTH = 30

SUMMARY_MAX_LENGTH = 300
SUMMARY_MIN_SENTENCE_CUT = 200
SUMMARY_MIN_WORD_CUT = 250

_CDATA_RE = re.compile(r"<!\[CDATA\[.*?\]\]>", re.DOTALL)
_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_BASIC_ENTITIES = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
]

_EXTRA_ENTITIES = [
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
]

# Navigation menus and footers that leak into page text on the crawled sites
NOISE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"Apply for funding.*?Our mandate.*?Vision & mission.*?Our values",
        r"Who we are.*?Our mandate.*?Vision & mission.*?Our values",
        r"Copyright.*?All rights reserved",
        r"Site Map.*?Contact Us.*?Useful Links",
        r"Subscribe to our newsletter.*?stay informed",
        r"Whistle Blower.*?Hotline",
        r"Privacy Policy.*?Terms of Service",
        r"Cookie.*?Policy",
        r"Requirements set in the Protection of Personal Information Act",
        r"POPIA.*?personal information",
        r"Developed by.*?Paulimonic",
        r"Process Risk and Compliance.*?Environmental.*?Social.*?Governance",
        r"Application to list on Director Database.*?Supplier Database",
        r"Pension Claims.*?BEE.*?Isibaya.*?Whistle Blowers",
        r"Client Links.*?Useful Links.*?Contact Us.*?Site Map",
        r"Criteria.*?Pension Claims.*?BEE.*?Isibaya",
    ]
]

# Promotional, testimonial and call-to-action phrases
MARKETING_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"we want to pay homage.*?",
        r"pay homage to these entrepreneurs.*?",
        r"these entrepreneurs.*?courage.*?journey.*?",
        r"helped to shape our economy.*?",
        r"made a difference in their communities.*?",
        r"success stories.*?",
        r"our supplier stories.*?",
        r"our stories.*?",
        r"testimonials.*?",
        r"case studies.*?",
        r"click here.*?",
        r"learn more.*?",
        r"read more.*?",
        r"find out more.*?",
        r"discover more.*?",
        r"explore.*?",
        r"visit.*?website.*?",
        r"subscribe.*?newsletter.*?",
        r"follow us.*?",
        r"share.*?social.*?",
    ]
]

# Footer / legal spans; each removes to the end of the text
FOOTER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"copyright.*?all rights reserved.*",
        r"privacy policy.*?terms of service.*",
        r"requirements set in the protection of personal information act.*",
        r"popia.*?personal information.*",
        r"developed by.*",
        r"site map.*?contact us.*?useful links.*",
        r"whistle blower.*?hotline.*",
    ]
]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(value) -> str:
    """
    Light normalization for text that is already mostly clean.

    Removes CDATA blocks, decodes the common HTML entities and
    collapses whitespace.
    """
    if not value:
        return ""

    text = _CDATA_RE.sub("", str(value))
    for entity, replacement in _BASIC_ENTITIES:
        text = text.replace(entity, replacement)

    return collapse_whitespace(text)


def clean_text(text) -> str:
    """
    Heavy cleanup for raw page text.

    - Removes script/style blocks and any remaining tags
    - Removes CDATA blocks and decodes entities
    - Removes site navigation and footer noise spans
    - Collapses whitespace

    Args:
        text: Raw text (possibly containing markup)

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    cleaned = _SCRIPT_RE.sub("", str(text))
    cleaned = _STYLE_RE.sub("", cleaned)
    cleaned = _TAG_RE.sub(" ", cleaned)
    cleaned = _CDATA_RE.sub("", cleaned)
    for entity, replacement in _BASIC_ENTITIES + _EXTRA_ENTITIES:
        cleaned = cleaned.replace(entity, replacement)

    for pattern in NOISE_PATTERNS:
        cleaned = pattern.sub(" ", cleaned)

    return collapse_whitespace(cleaned)


def filter_marketing_content(text: str) -> str:
    """Remove promotional, testimonial and call-to-action phrases."""
    if not text:
        return ""

    filtered = str(text)
    for pattern in MARKETING_PATTERNS:
        filtered = pattern.sub("", filtered)

    return filtered.strip()


def strip_footer_boilerplate(text: str) -> str:
    """Remove copyright / privacy / legal footer spans from text."""
    if not text:
        return ""

    stripped = text
    for pattern in FOOTER_PATTERNS:
        stripped = pattern.sub("", stripped).strip()

    return stripped


def clean_eligibility(text: str) -> str:
    """
    Clean an eligibility section.

    Applies the marketing filter and the footer stripper; the result is
    discarded when fewer than MIN_ELIGIBILITY_LENGTH characters remain.

    Example:
        "Open to SMEs. Copyright 2024 All rights reserved." -> ""  (13 chars left)
    """
    if not text:
        return ""

    cleaned = filter_marketing_content(text)
    cleaned = strip_footer_boilerplate(cleaned)

    if len(cleaned) < MIN_ELIGIBILITY_LENGTH:
        return ""

    return cleaned


def extract_clean_summary(text: str, eligibility_text: str = "") -> str:
    """
    Build a human-facing summary.

    - Drops a leading span that duplicates the eligibility section
    - Removes marketing content
    - Trims to SUMMARY_MAX_LENGTH, ending on a sentence boundary when possible

    Args:
        text: Candidate summary (overview or first paragraph)
        eligibility_text: Cleaned eligibility text of the same page

    Returns:
        Cleaned summary
    """
    if not text:
        return ""

    if eligibility_text and len(eligibility_text) > 20:
        probe = eligibility_text.lower()[:50]
        start = text.lower().find(probe)
        if 0 < start < len(text) * 0.5:
            text = text[:start].strip()

    text = filter_marketing_content(text)

    if len(text) > SUMMARY_MAX_LENGTH:
        last_period = text.rfind(".", 0, SUMMARY_MAX_LENGTH + 1)
        if last_period > SUMMARY_MIN_SENTENCE_CUT:
            text = text[: last_period + 1]
        else:
            text = text[:SUMMARY_MAX_LENGTH].strip()
            last_space = text.rfind(" ")
            if last_space > SUMMARY_MIN_WORD_CUT:
                text = text[:last_space] + "..."

    return text.strip()


def strip_title_decorations(title: str) -> str:
    """Remove decorative '//' prefix/suffix tokens from a page title."""
    if not title:
        return ""
    title = re.sub(r"^//\s*", "", title.strip())
    title = re.sub(r"\s*//$", "", title)
    return title.strip()
