"""
Core layer - stable foundation for the crawler.

Components:
- models: ProgramRecord, SiteConfig, SiteRunLog dataclasses
- normalizer: Whitespace, marketing and footer cleanup
- extractors: Amount, deadline, contact, sector and process fields
- deadlines: Expired/active deadline classification
- validation: Record acceptance rules
- deduplicator: (name, source) deduplication
- browser: Playwright pages with resource blocking and fallback navigation
- batching: Bounded-concurrency batch processing
"""

from .errors import ConfigError, CrawlerError, NavigationError
from .models import PageExtraction, ProgramRecord, SiteConfig, SiteRunLog, SubprogramLink
from .normalizer import (
    clean_eligibility,
    clean_text,
    extract_clean_summary,
    filter_marketing_content,
    normalize_text,
    strip_footer_boilerplate,
)
from .extractors import (
    extract_amounts,
    extract_application_process,
    extract_contact_info,
    extract_deadlines,
    extract_sectors,
)
from .deadlines import is_deadline_expired, parse_deadline_date
from .validation import is_valid_program, rejection_reason
from .deduplicator import Deduplicator, deduplicate
from .batching import process_in_batches

__all__ = [
    "CrawlerError",
    "ConfigError",
    "NavigationError",
    "ProgramRecord",
    "SubprogramLink",
    "PageExtraction",
    "SiteConfig",
    "SiteRunLog",
    "normalize_text",
    "clean_text",
    "filter_marketing_content",
    "strip_footer_boilerplate",
    "clean_eligibility",
    "extract_clean_summary",
    "extract_amounts",
    "extract_deadlines",
    "extract_contact_info",
    "extract_sectors",
    "extract_application_process",
    "is_deadline_expired",
    "parse_deadline_date",
    "is_valid_program",
    "rejection_reason",
    "Deduplicator",
    "deduplicate",
    "process_in_batches",
]
