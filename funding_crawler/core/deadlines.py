"""
Deadline classification.

Decides whether a (possibly "; "-joined) deadline string describes a
program that is no longer open. Ambiguous input fails open: a program
is only treated as expired on an explicit keyword or a parsed date in
the past.
"""

import re
from datetime import date
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


EXPIRED_KEYWORDS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"\bclosed\b",
        r"\bexpired\b",
        # "open ended" / "open-ended" is an active phrase
        r"(?<!open )(?<!open-)\bended\b",
        r"\bpast deadline\b",
        r"\bdeadline passed\b",
        r"\bno longer accepting\b",
        r"\bapplications closed\b",
        r"\bno longer available\b",
        r"\bdeadline has passed\b",
        r"\bclosed for applications\b",
    ]
]

ACTIVE_KEYWORDS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"\bongoing\b",
        r"\brolling\b",
        r"\bopen\b",
        r"\bcontinuous\b",
        r"\balways open\b",
        r"\bno deadline\b",
        r"\bopen[\s-]ended\b",
        r"\buntil further notice\b",
    ]
]

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# "15 Jan 2025" / "15 January 2025"
DAY_MONTH_NAME_YEAR = re.compile(
    r"\b(\d{1,2})\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s+(\d{4})\b",
    re.IGNORECASE,
)
# "2025-01-15" / "2025/01/15"
YEAR_MONTH_DAY = re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})\b")
# "15-01-2025" / "15/01/2025" / "15.01.2025"
DAY_MONTH_YEAR = re.compile(r"\b(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})\b")


def _date_or_none(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_deadline_date(text: str) -> Optional[date]:
    """
    Parse the first date found in a deadline string.

    Formats are tried in order (day-month-name-year, year-month-day,
    day-month-year); the first format that yields a valid calendar
    date wins. Conflicting dates within one string are not reconciled.

    Args:
        text: Deadline text

    Returns:
        date or None if no supported format parses
    """
    if not text:
        return None

    match = DAY_MONTH_NAME_YEAR.search(text)
    if match:
        day, month_name, year = match.groups()
        parsed = _date_or_none(int(year), MONTHS[month_name.lower()], int(day))
        if parsed:
            return parsed

    match = YEAR_MONTH_DAY.search(text)
    if match:
        year, month, day = match.groups()
        parsed = _date_or_none(int(year), int(month), int(day))
        if parsed:
            return parsed

    match = DAY_MONTH_YEAR.search(text)
    if match:
        day, month, year = match.groups()
        parsed = _date_or_none(int(year), int(month), int(day))
        if parsed:
            return parsed

    return None


def is_deadline_expired(deadline_text: Optional[str], today: Optional[date] = None) -> bool:
    """
    Classify a deadline string as expired or not.

    Priority:
    1. Empty / whitespace -> not expired (ongoing)
    2. Explicit closed/expired keyword -> expired
    3. Ongoing/rolling/open keyword -> not expired
    4. First parseable date: past -> expired, today or later -> not expired
    5. Nothing recognised -> not expired

    Args:
        deadline_text: Deadline string, possibly "; "-joined
        today: Reference day (defaults to date.today())

    Returns:
        True if the program should be treated as expired
    """
    if not deadline_text or not deadline_text.strip():
        return False

    text = deadline_text.strip().lower()

    if any(keyword.search(text) for keyword in EXPIRED_KEYWORDS):
        return True

    if any(keyword.search(text) for keyword in ACTIVE_KEYWORDS):
        return False

    parsed = parse_deadline_date(text)
    if parsed is None:
        return False

    reference = today or date.today()
    expired = parsed < reference
    if expired:
        logger.debug("deadline_expired", deadline=parsed.isoformat(), text=deadline_text[:80])
    return expired
