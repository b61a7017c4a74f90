"""Tests for deduplicator functionality."""

from funding_crawler.core.deduplicator import DeduplicationResult, Deduplicator, deduplicate
from funding_crawler.core.models import ProgramRecord


def make_program(name="Test Fund", source="https://example.org/fund", **kwargs) -> ProgramRecord:
    """Create a test program."""
    return ProgramRecord(name=name, source=source, **kwargs)


class TestDeduplicator:
    """Tests for Deduplicator class."""

    def test_first_program_not_duplicate(self):
        """Test that first program is never a duplicate."""
        dedup = Deduplicator()
        result = dedup.check(make_program())

        assert result == DeduplicationResult(is_duplicate=False, action="keep")

    def test_same_key_is_duplicate(self):
        """Test same (name, source) is detected."""
        dedup = Deduplicator()
        dedup.add(make_program(summary="first"))

        result = dedup.check(make_program(summary="second"))

        assert result.is_duplicate is True
        assert result.action == "skip"
        assert result.existing_key == ("Test Fund", "https://example.org/fund")

    def test_process_keeps_first(self):
        """Test process returns None for a later duplicate."""
        dedup = Deduplicator()
        first = make_program(summary="first")

        assert dedup.process(first) is first
        assert dedup.process(make_program(summary="second")) is None
        assert dedup.get_all() == [first]

    def test_same_name_different_source(self):
        """Test name alone is not an identity."""
        dedup = Deduplicator()
        dedup.process(make_program(source="https://a.org/fund"))
        dedup.process(make_program(source="https://b.org/fund"))

        assert len(dedup) == 2

    def test_clear(self):
        """Test clearing the key store."""
        dedup = Deduplicator()
        dedup.process(make_program())
        dedup.clear()

        assert len(dedup) == 0


class TestDeduplicate:
    """Tests for deduplicate function."""

    def test_order_of_first_appearance(self):
        """Test first occurrence wins and order is preserved."""
        a = make_program(name="Fund A", summary="a1")
        b = make_program(name="Fund B")
        a_again = make_program(name="Fund A", summary="a2")

        result = deduplicate([a, b, a_again])

        assert result == [a, b]
        assert result[0].summary == "a1"

    def test_empty(self):
        """Test empty input."""
        assert deduplicate([]) == []
