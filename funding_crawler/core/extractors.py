"""
Pattern-based field extractors.

Each extractor is a pure function over normalized page text that
returns a best-effort string fragment. Nothing here raises; empty
input gives empty output.

Match grammars:
- Amounts: currency-prefixed ("R", "ZAR") or magnitude-suffixed
  ("million", "bn", "billion", "k") numeric phrases
- Deadlines: deadline keyword + up to 100 trailing chars, dates as
  "15 Jan 2025", "2025-01-15" / "2025/01/15", "15-01-2025" / "15/01/2025" /
  "15.01.2025", and ongoing / rolling keywords
- Contacts: first email, first South African phone number
- Sectors: fixed industry vocabulary
- Application process: step, how-to-apply and action phrases
"""

import re
from typing import Iterable, Optional

from .normalizer import filter_marketing_content, normalize_text

MAX_FRAGMENTS = 5

AMOUNT_PATTERNS = [
    re.compile(r"\b(?:R|ZAR)\s?\d[\d\s,]*(?:\.\d+)?\s?(?:million|bn|billion|k)?", re.IGNORECASE),
    re.compile(r"\b\d[\d\s,]*(?:\.\d+)?\s?(?:million|bn|billion|k)\b", re.IGNORECASE),
]

MONTH_NAMES = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"

DEADLINE_PHRASE_RE = re.compile(
    r"\b(?:deadline|closing|apply by|closing date|applications close|application deadline)\b[^.]{0,100}",
    re.IGNORECASE,
)
DAY_MONTH_NAME_YEAR_RE = re.compile(rf"\b\d{{1,2}}\s{MONTH_NAMES}[a-z]*\s\d{{4}}\b", re.IGNORECASE)
YEAR_MONTH_DAY_RE = re.compile(r"\b\d{4}[-/]\d{1,2}[-/]\d{1,2}\b")
DAY_MONTH_YEAR_RE = re.compile(r"\b\d{1,2}[-/.]\d{1,2}[-/.]\d{4}\b")
ACTIVE_KEYWORD_RE = re.compile(
    r"\b(?:ongoing|rolling|open|continuous|always open|no deadline|open ended|until further notice)\b",
    re.IGNORECASE,
)

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
PHONE_RE = re.compile(r"(?:\+27|0)[\s-]?\d{2}[\s-]?\d{3}[\s-]?\d{4}")

SECTOR_RE = re.compile(
    r"\b(?:agriculture|manufacturing|technology|tourism|mining|energy|healthcare|education|retail|"
    r"services|construction|transport|finance|agricultural|tech|innovation|startup|sme|"
    r"small business|enterprise)\b",
    re.IGNORECASE,
)

PROCESS_NAVIGATION_PATTERNS = [
    re.compile(r"Apply for funding.*?Our mandate", re.IGNORECASE),
    re.compile(r"Application to list on.*?Database", re.IGNORECASE),
    re.compile(r"Process Risk and Compliance.*?Research", re.IGNORECASE),
]

PROCESS_PATTERNS = [
    re.compile(r"(?:step\s*\d+|1\.|2\.|3\.|4\.|5\.|first|second|third|fourth|fifth)[^.]{0,200}", re.IGNORECASE),
    re.compile(r"(?:to apply|application process|how to apply|apply now|application steps)[^.]{0,200}", re.IGNORECASE),
    re.compile(
        r"(?:submit.*?application|complete.*?form|provide.*?document|download.*?form|fill.*?application)[^.]{0,200}",
        re.IGNORECASE,
    ),
]

PROMOTIONAL_RE = re.compile(
    r"(success stories|testimonials|we want to|pay homage|click here|learn more|read more)",
    re.IGNORECASE,
)

# Section keywords that end a heading-delimited block in flat text
NEXT_SECTION_RE = re.compile(
    r"\b(overview|summary|funding|application|process|how to apply|contact|success|stories|testimonials|"
    r"related|see also|next steps|more information|benefits|features|about|background)\b",
    re.IGNORECASE,
)

SECTION_MARKETING_MARKERS = [
    re.compile(
        r"(we want to|pay homage|entrepreneurs.*?courage|journey|shape our economy|made a difference|"
        r"partner with|success stories|our stories|our supplier stories|testimonials|case studies)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(click here|learn more|read more|find out more|discover|explore|visit|subscribe|newsletter|follow us|share)",
        re.IGNORECASE,
    ),
]

SECTION_SCAN_WINDOW = 500
SECTION_MAX_LENGTH = 500
SECTION_MIN_SENTENCE_CUT = 300


def unique_fragments(fragments: Iterable[str], limit: Optional[int] = MAX_FRAGMENTS) -> list[str]:
    """De-duplicate fragments preserving first-seen order, capped at limit."""
    seen: set[str] = set()
    result: list[str] = []
    for fragment in fragments:
        fragment = fragment.strip()
        if not fragment or fragment in seen:
            continue
        seen.add(fragment)
        result.append(fragment)
        if limit is not None and len(result) >= limit:
            break
    return result


def extract_amounts(text: str) -> str:
    """
    Extract monetary amount phrases.

    Args:
        text: Normalized page text

    Returns:
        Up to 5 distinct phrases joined with "; "
    """
    if not text:
        return ""

    matches: list[str] = []
    for pattern in AMOUNT_PATTERNS:
        matches.extend(m.group(0) for m in pattern.finditer(text))

    return "; ".join(unique_fragments(matches))


def extract_deadlines(text: str) -> str:
    """
    Extract deadline phrases, dates and ongoing/rolling keywords.

    Args:
        text: Normalized page text

    Returns:
        Up to 5 distinct fragments joined with "; "
    """
    if not text:
        return ""

    matches: list[str] = []
    for pattern in (
        DEADLINE_PHRASE_RE,
        DAY_MONTH_NAME_YEAR_RE,
        YEAR_MONTH_DAY_RE,
        DAY_MONTH_YEAR_RE,
        ACTIVE_KEYWORD_RE,
    ):
        matches.extend(m.group(0) for m in pattern.finditer(text))

    return "; ".join(unique_fragments(matches))


def extract_contact_info(text: str) -> dict[str, str]:
    """Return the first email and first phone number found in text."""
    if not text:
        return {"email": "", "phone": ""}

    email = EMAIL_RE.search(text)
    phone = PHONE_RE.search(text)
    return {
        "email": email.group(0) if email else "",
        "phone": phone.group(0) if phone else "",
    }


def extract_sectors(text: str) -> str:
    """Return distinct lowercase sector tags joined with ", "."""
    if not text:
        return ""

    sectors = [m.group(0).lower() for m in SECTOR_RE.finditer(text)]
    return ", ".join(unique_fragments(sectors, limit=None))


def extract_application_process(text: str) -> str:
    """
    Extract application step phrases.

    Navigation menus and marketing content are removed first so that
    "Apply for funding" menu entries do not count as steps.
    """
    if not text:
        return ""

    filtered = text
    for pattern in PROCESS_NAVIGATION_PATTERNS:
        filtered = pattern.sub("", filtered)
    filtered = filter_marketing_content(filtered)

    steps: list[str] = []
    for pattern in PROCESS_PATTERNS:
        for match in pattern.finditer(filtered):
            phrase = match.group(0)
            if PROMOTIONAL_RE.search(phrase):
                continue
            steps.append(phrase)

    return "; ".join(unique_fragments(steps))


def extract_section_after_heading(text: str, heading_regex: re.Pattern) -> str:
    """
    Extract the block following a heading match in flat page text.

    Fallback for pages whose markup has no usable heading elements.

    Args:
        text: Cleaned page text
        heading_regex: Compiled pattern identifying the section heading

    Returns:
        Section text or empty string
    """
    if not text:
        return ""

    flat = re.sub(r"\s+", " ", text)
    heading = heading_regex.search(flat)
    if not heading:
        return ""

    extracted = flat[heading.end():].strip()

    next_section = NEXT_SECTION_RE.search(extracted)
    if next_section and next_section.start() < SECTION_SCAN_WINDOW:
        extracted = extracted[: next_section.start()]

    for marker in SECTION_MARKETING_MARKERS:
        marker_match = marker.search(extracted)
        if marker_match and marker_match.start() < SECTION_SCAN_WINDOW:
            extracted = extracted[: marker_match.start()]
            break

    extracted = extracted[:SECTION_MAX_LENGTH].strip()

    last_period = extracted.rfind(".")
    if last_period > SECTION_MIN_SENTENCE_CUT:
        extracted = extracted[: last_period + 1]

    return normalize_text(filter_marketing_content(extracted))
