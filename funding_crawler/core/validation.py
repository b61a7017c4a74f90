"""
Post-extraction validity filter.

Rejects candidate records that are malformed or content-free:
markup artifacts in the name, navigation/about pages, footer-only
eligibility and expired programs. Rejection is silent; it is not an
error.
"""

import re

import structlog

from .deadlines import is_deadline_expired
from .models import ProgramRecord

logger = structlog.get_logger(__name__)


MIN_NAME_LENGTH = 5

# Eligibility that matches footer keywords and is shorter than this is
# treated as page chrome rather than criteria
FOOTER_ELIGIBILITY_MAX_LENGTH = 100

MIN_SUMMARY_LENGTH = 30
MIN_FIELD_LENGTH = 5
MIN_ELIGIBILITY_CONTENT_LENGTH = 50

NAME_ARTIFACTS = ["<![CDATA[", "_spBodyOnLoadFunctionNames", "// <!"]

NON_FUNDING_PATTERNS = [
    re.compile(
        r"^(who we are|our mandate|vision|mission|our values|our board|executive committee|strategic role|"
        r"investment philosophy|investment process|risk and compliance|research|insights|contact|about|news|"
        r"careers|privacy|terms|cookie)",
        re.IGNORECASE,
    ),
    re.compile(r"//(who-we-are|about|contact|news|careers|privacy|terms)", re.IGNORECASE),
    re.compile(r"(privacy policy|terms of service|cookie policy|site map|contact us|useful links)", re.IGNORECASE),
]

NAVIGATION_MENU_RE = re.compile(
    r"^(apply for funding|who we are|our mandate|vision|mission|our values|our board|executive committee|"
    r"strategic role|process risk|environmental social|research insights|economic research|sectoral research|"
    r"isibaya|early-stage|application to list|director database|supplier database|corporate procurement|"
    r"investment procurement|properties procurement|media releases|interviews|speeches)",
    re.IGNORECASE,
)

FOOTER_TEXT_RE = re.compile(
    r"(copyright|all rights reserved|privacy|personal information act|popia|developed by|site map|"
    r"contact us|useful links|whistle blower|pension claims|\bbee\b|isibaya)",
    re.IGNORECASE,
)


def is_footer_text(text: str) -> bool:
    return bool(text and FOOTER_TEXT_RE.search(text))


def rejection_reason(program: ProgramRecord) -> str:
    """
    Return why a record is rejected, or an empty string if it is valid.

    Args:
        program: Candidate record

    Returns:
        Short machine-readable reason, "" when accepted
    """
    name = (program.name or "").strip()
    summary = (program.summary or "").strip()
    eligibility = (program.eligibility or "").strip()
    source = program.source or ""

    if any(artifact in name for artifact in NAME_ARTIFACTS):
        return "markup_in_name"

    if not name or name == "Untitled program" or len(name) < MIN_NAME_LENGTH:
        return "name_too_short"

    name_lower = name.lower()
    for pattern in NON_FUNDING_PATTERNS:
        if pattern.search(name_lower) or pattern.search(source):
            return "non_funding_page"

    if NAVIGATION_MENU_RE.search(name_lower):
        return "navigation_menu"

    footer_eligibility = is_footer_text(eligibility)
    if footer_eligibility and len(eligibility) < FOOTER_ELIGIBILITY_MAX_LENGTH:
        return "footer_eligibility"

    if program.deadlines and program.deadlines.strip():
        if is_deadline_expired(program.deadlines):
            return "expired"

    has_content = (
        len(summary) >= MIN_SUMMARY_LENGTH
        or len(program.funding_amount or "") > MIN_FIELD_LENGTH
        or len(program.deadlines or "") > MIN_FIELD_LENGTH
        or (len(eligibility) > MIN_ELIGIBILITY_CONTENT_LENGTH and not footer_eligibility)
    )
    if not has_content:
        return "no_content"

    return ""


def is_valid_program(program: ProgramRecord) -> bool:
    """Check whether a candidate record should be kept."""
    reason = rejection_reason(program)
    if reason:
        logger.debug("program_rejected", name=program.name[:60], source=program.source, reason=reason)
        return False
    return True
