"""
Program deduplication.

Identity within a run is the exact (name, source) pair; the first
occurrence wins and order of first appearance is preserved.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from .models import ProgramRecord

logger = structlog.get_logger(__name__)


@dataclass
class DeduplicationResult:
    """Result of deduplication check."""
    is_duplicate: bool
    existing_key: Optional[tuple[str, str]] = None
    action: str = "keep"  # keep, skip


class Deduplicator:
    """
    Key-based program deduplicator.

    Tracks seen programs by (name, source). A later record with the
    same key is skipped; no merging is attempted.
    """

    def __init__(self):
        """Initialize deduplicator with empty key store."""
        self._seen: dict[tuple[str, str], ProgramRecord] = {}

    def check(self, program: ProgramRecord) -> DeduplicationResult:
        """
        Check if program is a duplicate.

        Args:
            program: Program to check

        Returns:
            DeduplicationResult with action to take
        """
        if program.key in self._seen:
            return DeduplicationResult(is_duplicate=True, existing_key=program.key, action="skip")
        return DeduplicationResult(is_duplicate=False, action="keep")

    def add(self, program: ProgramRecord) -> None:
        self._seen[program.key] = program
        logger.debug("program_indexed", name=program.name[:50], source=program.source)

    def process(self, program: ProgramRecord) -> Optional[ProgramRecord]:
        """
        Process program through deduplication.

        Combines check and add in one operation.

        Args:
            program: Program to process

        Returns:
            Program if it should be kept, None if it is a duplicate
        """
        result = self.check(program)
        if result.is_duplicate:
            logger.debug("program_skipped_duplicate", name=program.name[:50], source=program.source)
            return None

        self.add(program)
        return program

    def get_all(self) -> list[ProgramRecord]:
        """Get all unique programs in first-seen order."""
        return list(self._seen.values())

    def clear(self) -> None:
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)


def deduplicate(programs: Iterable[ProgramRecord]) -> list[ProgramRecord]:
    """Keep the first record for each (name, source) pair, in order."""
    deduplicator = Deduplicator()
    for program in programs:
        deduplicator.process(program)
    return deduplicator.get_all()
