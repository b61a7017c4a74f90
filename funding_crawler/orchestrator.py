"""
Top-level run coordinator for the funding crawl pipeline.

Coordinates:
- Concurrent per-site crawls with one site-level retry
- Expired-program filtering
- Nesting subprograms under their parents (orphans kept separately)
- Persistence and run logging
"""

import asyncio
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

import structlog
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

from .core.browser import BrowserSession, PageFactory
from .core.deadlines import is_deadline_expired
from .core.models import ProgramRecord, SiteConfig, SiteRunLog
from .plugins.llm import AIEnhancementGate, ProgramEnhancer, create_provider
from .site_crawler import crawl_and_extract
from .storage import JsonFileSink, ProgramSink, SinkSummary

logger = structlog.get_logger(__name__)


SITE_RETRY_ATTEMPTS = 2
SITE_RETRY_WAIT_SECONDS = 0.5

AGGREGATE_LOG_NAME = "All Sites"


@dataclass
class OrganizedPrograms:
    """Top-level programs with children nested, plus orphaned children."""
    programs: list[ProgramRecord] = field(default_factory=list)
    orphaned_subprograms: list[ProgramRecord] = field(default_factory=list)
    subprogram_count: int = 0


@dataclass
class RunResult:
    """Outcome of a full run."""
    programs: list[ProgramRecord] = field(default_factory=list)
    orphaned_subprograms: list[ProgramRecord] = field(default_factory=list)
    subprogram_count: int = 0
    expired_count: int = 0
    site_logs: list[SiteRunLog] = field(default_factory=list)
    sink_summary: Optional[SinkSummary] = None


def drop_expired(programs: list[ProgramRecord]) -> tuple[list[ProgramRecord], int]:
    """Remove programs whose deadline text classifies as expired."""
    active = [p for p in programs if not (p.deadlines.strip() and is_deadline_expired(p.deadlines))]
    return active, len(programs) - len(active)


def organize_programs(programs: list[ProgramRecord]) -> OrganizedPrograms:
    """
    Nest children under the top-level program they reference.

    A child is re-attached when a top-level record's (name, source)
    equals the child's (parent_program, parent_source); its parent
    references are cleared once nested. Children without a parent in
    this set are returned as orphans with references intact.
    """
    top_level = [p for p in programs if not p.is_subprogram]
    children = [p for p in programs if p.is_subprogram]

    index: dict[tuple[str, str], int] = {}
    for i, program in enumerate(top_level):
        index.setdefault(program.key, i)

    nested: dict[int, list[ProgramRecord]] = {}
    orphans: list[ProgramRecord] = []

    for child in children:
        parent_index = index.get((child.parent_program, child.parent_source))
        if parent_index is None:
            orphans.append(child)
            continue
        nested.setdefault(parent_index, []).append(replace(child, parent_program=None, parent_source=None))

    organized = [
        replace(program, subprograms=program.subprograms + tuple(nested[i])) if i in nested else program
        for i, program in enumerate(top_level)
    ]

    return OrganizedPrograms(programs=organized, orphaned_subprograms=orphans, subprogram_count=len(children))


class RunCoordinator:
    """
    Runs every configured site concurrently and merges the results.

    No site failure escapes: a site that still fails after its retry is
    logged and contributes zero programs.
    """

    def __init__(
        self,
        sites: list[SiteConfig],
        factory: PageFactory,
        sink: Optional[ProgramSink] = None,
        enhancer: Optional[ProgramEnhancer] = None,
        retry_attempts: int = SITE_RETRY_ATTEMPTS,
        retry_wait_seconds: float = SITE_RETRY_WAIT_SECONDS,
    ):
        """
        Initialize coordinator.

        Args:
            sites: Site policies to crawl
            factory: Creates browser pages
            sink: Persistence collaborator (None skips persistence)
            enhancer: Optional AI enhancer shared by all sites
            retry_attempts: Attempts per site, including the first
            retry_wait_seconds: Fixed backoff between attempts
        """
        self.sites = sites
        self.factory = factory
        self.sink = sink
        self.enhancer = enhancer
        self.retry_attempts = retry_attempts
        self.retry_wait_seconds = retry_wait_seconds

        self.site_logs: list[SiteRunLog] = []

    async def run(self) -> RunResult:
        """
        Run the pipeline.

        Returns:
            RunResult with nested programs, orphans and run logs
        """
        self.site_logs = []
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        logger.info("starting_run", sites=[s.site_id for s in self.sites])

        per_site = await asyncio.gather(*(self._crawl_site(site) for site in self.sites))
        merged = [program for programs in per_site for program in programs]

        active, expired_count = drop_expired(merged)
        if expired_count:
            logger.info("expired_programs_filtered", count=expired_count)

        organized = organize_programs(active)

        result = RunResult(
            programs=organized.programs,
            orphaned_subprograms=organized.orphaned_subprograms,
            subprogram_count=organized.subprogram_count,
            expired_count=expired_count,
            site_logs=self.site_logs,
        )

        if self.sink is not None:
            result.sink_summary = await self._persist(organized, started_at, start)

        logger.info(
            "run_complete",
            duration_seconds=round(time.monotonic() - start, 1),
            programs=len(organized.programs),
            subprograms=organized.subprogram_count,
            orphaned=len(organized.orphaned_subprograms),
            expired=expired_count,
        )
        return result

    async def _crawl_once(self, site: SiteConfig) -> list[ProgramRecord]:
        """Crawl a site, retrying the whole site with a fixed backoff."""

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning("site_retry", site=site.site_id, attempt=retry_state.attempt_number, error=str(error))

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait_seconds),
            before_sleep=log_retry,
            reraise=True,
        ):
            with attempt:
                return await crawl_and_extract(self.factory, site, self.enhancer)
        return []

    async def _crawl_site(self, site: SiteConfig) -> list[ProgramRecord]:
        """Crawl one site in isolation; failures become an error run log."""
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        try:
            programs = await self._crawl_once(site)
        except Exception as e:
            logger.error("site_failed", site=site.site_id, error=str(e))
            await self._log_run(
                SiteRunLog(
                    site_name=site.name,
                    status="error",
                    duration_seconds=time.monotonic() - start,
                    started_at=started_at,
                    error_message=str(e),
                    source_url=site.start_url,
                )
            )
            return []

        logger.info("site_complete", site=site.site_id, programs=len(programs))
        await self._log_run(
            SiteRunLog(
                site_name=site.name,
                status="success",
                programs_found=len(programs),
                subprograms_found=sum(1 for p in programs if p.is_subprogram),
                duration_seconds=time.monotonic() - start,
                started_at=started_at,
                source_url=site.start_url,
            )
        )
        return programs

    async def _persist(self, organized: OrganizedPrograms, started_at: datetime, start: float) -> Optional[SinkSummary]:
        summary: Optional[SinkSummary] = None
        try:
            summary = await self.sink.save_programs(organized.programs, organized.orphaned_subprograms)
        except Exception as e:
            logger.error("persistence_failed", error=str(e))
            status, error_message = "error", str(e)
        else:
            if summary.errors:
                logger.warning("persistence_partial", errors=len(summary.errors))
                status, error_message = "partial", f"Errors: {len(summary.errors)}"
            else:
                status, error_message = "success", None

        await self._log_run(
            SiteRunLog(
                site_name=AGGREGATE_LOG_NAME,
                status=status,
                programs_found=len(organized.programs),
                subprograms_found=organized.subprogram_count,
                duration_seconds=time.monotonic() - start,
                started_at=started_at,
                error_message=error_message,
            )
        )
        return summary

    async def _log_run(self, entry: SiteRunLog) -> None:
        entry.completed_at = datetime.now(timezone.utc)
        self.site_logs.append(entry)
        if self.sink is None:
            return
        try:
            await self.sink.log_run(entry)
        except Exception as e:
            logger.warning("run_log_failed", site=entry.site_name, error=str(e))


async def run_crawler(
    sites: list[SiteConfig],
    output_path: str = "output/funding.json",
    headless: bool = True,
    use_ai: bool = False,
    ai_provider: Optional[str] = None,
) -> RunResult:
    """
    Convenience function to run the crawler end to end.

    Args:
        sites: Site policies
        output_path: JSON artifact path
        headless: Run the browser headless
        use_ai: Enable AI enhancement
        ai_provider: Provider name (openai, groq, claude)

    Returns:
        RunResult
    """
    enhancer = None
    if use_ai:
        gate = AIEnhancementGate(create_provider(ai_provider))
        if gate.is_available():
            enhancer = ProgramEnhancer(gate)
        else:
            logger.warning("ai_disabled", reason="provider not configured")

    async with BrowserSession(headless=headless) as session:
        coordinator = RunCoordinator(
            sites=sites,
            factory=session,
            sink=JsonFileSink(output_path),
            enhancer=enhancer,
        )
        return await coordinator.run()
