"""
Data models for the funding crawler.

Records are frozen: a program is assembled once per crawl run and
never mutated afterwards. Nesting children under a parent builds new
records with dataclasses.replace().
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .errors import ConfigError


DEFAULT_LINK_KEYWORDS = r"(funding|programme|program|apply|instrument|grant|loan|tender|opportunit|finance|support)"
DEFAULT_ELIGIBILITY_PATTERN = r"(eligibil|requirements|qualif|who can apply|criteria)"

DEFAULT_MAX_LINKS = 12
DEFAULT_DELAY_MS = 50
DEFAULT_CONCURRENCY = 6
DEFAULT_MAX_SUBPROGRAMS = 10


@dataclass(frozen=True)
class ProgramRecord:
    """
    One funding opportunity scraped from a source site.

    Identity within a run is the (name, source) pair.
    """

    name: str
    source: str
    summary: str = ""
    eligibility: str = ""
    funding_amount: str = ""  # "; "-joined amount phrases
    deadlines: str = ""  # "; "-joined deadline phrases / dates / keywords
    contact_email: str = ""
    contact_phone: str = ""
    application_process: str = ""
    sectors: str = ""  # ", "-joined lowercase tags

    # Set only on children discovered on another program's detail page
    parent_program: Optional[str] = None
    parent_source: Optional[str] = None

    # Filled by AI categorization
    program_type: str = ""
    target_audience: str = ""

    # Filled by the run coordinator when nesting children
    subprograms: tuple["ProgramRecord", ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.source)

    @property
    def is_subprogram(self) -> bool:
        return bool(self.parent_program and self.parent_source)

    def to_dict(self) -> dict:
        """Convert to the camelCase JSON shape used by the output artifact."""
        data = {
            "name": self.name,
            "summary": self.summary,
            "source": self.source,
            "eligibility": self.eligibility,
            "fundingAmount": self.funding_amount,
            "deadlines": self.deadlines,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
            "applicationProcess": self.application_process,
            "sectors": self.sectors,
        }
        if self.parent_program or self.parent_source:
            data["parentProgram"] = self.parent_program
            data["parentSource"] = self.parent_source
        if self.program_type:
            data["programType"] = self.program_type
        if self.target_audience:
            data["targetAudience"] = self.target_audience
        if self.subprograms:
            data["subprograms"] = [s.to_dict() for s in self.subprograms]
        return data


@dataclass(frozen=True)
class SubprogramLink:
    """Candidate child-program link found on a detail page."""
    href: str
    text: str


@dataclass(frozen=True)
class PageExtraction:
    """
    Result of extracting one detail page.

    Used by the site crawler to pass the record, its candidate
    subprogram links and the stripped page text (for AI enhancement)
    along without putting them on the record itself.
    """
    record: ProgramRecord
    subprogram_links: tuple[SubprogramLink, ...] = ()
    page_text: str = ""


@dataclass(frozen=True)
class SiteConfig:
    """Static crawl policy for one funding site."""

    site_id: str
    name: str
    start_url: str

    # Link discovery
    max_links: int = DEFAULT_MAX_LINKS
    keyword_pattern: str = DEFAULT_LINK_KEYWORDS

    # Scheduling
    delay_ms: int = DEFAULT_DELAY_MS
    concurrency: int = DEFAULT_CONCURRENCY

    # Extraction
    name_selector: str = "h1, h2"
    summary_selector: str = "main p, article p, p"
    eligibility_pattern: str = DEFAULT_ELIGIBILITY_PATTERN

    # Subprograms
    subprogram_selector: Optional[str] = None
    extract_subprograms: bool = False
    max_subprograms: int = DEFAULT_MAX_SUBPROGRAMS

    # Navigation timeouts
    navigation_timeout_ms: int = 20000
    entry_timeout_ms: int = 30000

    @property
    def keyword_regex(self) -> re.Pattern:
        return re.compile(self.keyword_pattern, re.IGNORECASE)

    @property
    def eligibility_regex(self) -> re.Pattern:
        return re.compile(self.eligibility_pattern, re.IGNORECASE)

    @classmethod
    def from_dict(cls, data: dict) -> "SiteConfig":
        """Create from dictionary (e.g., from YAML)."""
        for required in ("site_id", "name", "start_url"):
            if not data.get(required):
                raise ConfigError(f"Missing required field: {required}")

        concurrency = int(data.get("concurrency", DEFAULT_CONCURRENCY))
        if concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {concurrency}")

        return cls(
            site_id=data["site_id"],
            name=data["name"],
            start_url=data["start_url"],
            max_links=int(data.get("max_links", DEFAULT_MAX_LINKS)),
            keyword_pattern=data.get("keyword_pattern", DEFAULT_LINK_KEYWORDS),
            delay_ms=int(data.get("delay_ms", DEFAULT_DELAY_MS)),
            concurrency=concurrency,
            name_selector=data.get("name_selector", "h1, h2"),
            summary_selector=data.get("summary_selector", "main p, article p, p"),
            eligibility_pattern=data.get("eligibility_pattern", DEFAULT_ELIGIBILITY_PATTERN),
            subprogram_selector=data.get("subprogram_selector"),
            extract_subprograms=bool(data.get("extract_subprograms", False)),
            max_subprograms=int(data.get("max_subprograms", DEFAULT_MAX_SUBPROGRAMS)),
            navigation_timeout_ms=int(data.get("navigation_timeout_ms", 20000)),
            entry_timeout_ms=int(data.get("entry_timeout_ms", 30000)),
        )


@dataclass
class SiteRunLog:
    """Run-level log entry handed to the persistence collaborator."""

    site_name: str
    status: str  # success, partial, error
    programs_found: int = 0
    subprograms_found: int = 0
    duration_seconds: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error_message: Optional[str] = None
    source_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sourceName": self.site_name,
            "sourceUrl": self.source_url,
            "status": self.status,
            "programsFound": self.programs_found,
            "subprogramsFound": self.subprograms_found,
            "durationSeconds": round(self.duration_seconds, 3),
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat(),
            "errorMessage": self.error_message,
        }
