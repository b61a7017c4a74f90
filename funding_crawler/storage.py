"""
Persistence collaborators.

ProgramSink is the interface the run coordinator hands its results
to. JsonFileSink is the bundled implementation: it writes the merged
program set as a timestamped JSON document and appends run logs to a
JSON-lines file.
"""

import json
import re
import unicodedata
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import structlog

from .core.models import ProgramRecord, SiteRunLog

logger = structlog.get_logger(__name__)


SLUG_MAX_LENGTH = 120


def generate_slug(name: str = "", source: str = "") -> str:
    """
    Derive a stable slug from name and source.

    Example:
        generate_slug("Île Fund", "https://x.org/a") -> "ile-fund-https-x-org-a"
    """
    base = f"{name} {source}".lower()
    base = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", base).strip("-")
    return slug[:SLUG_MAX_LENGTH] or "program"


def extract_domain(source: str) -> str:
    """Hostname of source without a leading "www."."""
    if not source:
        return ""
    try:
        hostname = urlsplit(source).hostname or ""
    except ValueError:
        return ""
    return hostname[4:] if hostname.startswith("www.") else hostname


@dataclass
class SinkSummary:
    """Outcome of one save_programs call."""
    programs_saved: int = 0
    subprograms_saved: int = 0
    errors: list[str] = field(default_factory=list)


class ProgramSink(ABC):
    """Abstract persistence collaborator."""

    @abstractmethod
    async def save_programs(
        self,
        programs: list[ProgramRecord],
        orphaned_subprograms: list[ProgramRecord],
    ) -> SinkSummary:
        """
        Persist top-level programs (children nested) and orphaned children.

        Implementations upsert by generate_slug() and report per-record
        failures in the summary instead of raising.
        """
        pass

    @abstractmethod
    async def log_run(self, entry: SiteRunLog) -> None:
        """Record a run-level log entry."""
        pass


def program_document(program: ProgramRecord) -> dict:
    """JSON document for one program, including derived identity fields."""
    data = program.to_dict()
    data["slug"] = generate_slug(program.name, program.source)
    data["sourceDomain"] = extract_domain(program.source)
    return data


class JsonFileSink(ProgramSink):
    """
    File-based sink.

    Usage:
        sink = JsonFileSink("output/funding.json")
        summary = await sink.save_programs(programs, orphans)
    """

    def __init__(self, output_path: str = "output/funding.json", runs_path: Optional[str] = None):
        """
        Initialize sink.

        Args:
            output_path: Path of the JSON artifact
            runs_path: Path of the run log (defaults to runs.jsonl next to the artifact)
        """
        self.output_path = Path(output_path)
        self.runs_path = Path(runs_path) if runs_path else self.output_path.with_name("runs.jsonl")

    async def save_programs(
        self,
        programs: list[ProgramRecord],
        orphaned_subprograms: list[ProgramRecord],
    ) -> SinkSummary:
        summary = SinkSummary()

        documents = []
        for program in programs:
            try:
                documents.append(program_document(program))
            except (TypeError, ValueError) as e:
                summary.errors.append(f"{program.name}: {e}")
                continue
            summary.programs_saved += 1
            summary.subprograms_saved += len(program.subprograms)

        orphans = []
        for orphan in orphaned_subprograms:
            try:
                orphans.append(program_document(orphan))
            except (TypeError, ValueError) as e:
                summary.errors.append(f"{orphan.name}: {e}")
                continue
            summary.subprograms_saved += 1

        payload = {
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "programs": documents,
            "orphanedSubprograms": orphans,
        }

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

        logger.info(
            "saved_json",
            path=str(self.output_path),
            programs=summary.programs_saved,
            subprograms=summary.subprograms_saved,
            errors=len(summary.errors),
        )
        return summary

    async def log_run(self, entry: SiteRunLog) -> None:
        self.runs_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.runs_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
