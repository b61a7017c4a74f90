"""Tests for the JSON file sink."""

import json

import pytest

from funding_crawler.core.models import ProgramRecord, SiteRunLog
from funding_crawler.storage import JsonFileSink, extract_domain, generate_slug, program_document


class TestSlugAndDomain:
    """Tests for identity helpers."""

    def test_generate_slug(self):
        """Test slug is ASCII, lowercase and dash-separated."""
        assert generate_slug("Île Fund", "https://x.org/a") == "ile-fund-https-x-org-a"

    def test_generate_slug_empty(self):
        """Test empty input still gives a slug."""
        assert generate_slug("", "") == "program"

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("https://www.sefa.org.za/products", "sefa.org.za"),
            ("https://nwdc.co.za/", "nwdc.co.za"),
            ("", ""),
        ],
    )
    def test_extract_domain(self, source, expected):
        """Test domain extraction strips www."""
        assert extract_domain(source) == expected

    def test_program_document(self):
        """Test document carries slug and domain."""
        document = program_document(ProgramRecord(name="Fund A", source="https://www.x.org/a"))

        assert document["slug"] == "fund-a-https-www-x-org-a"
        assert document["sourceDomain"] == "x.org"


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    @pytest.mark.asyncio
    async def test_save_programs(self, tmp_path):
        """Test artifact contains programs, nested children and orphans."""
        child = ProgramRecord(name="Fund A1", source="https://x.org/a1")
        parent = ProgramRecord(name="Fund A", source="https://x.org/a", subprograms=(child,))
        orphan = ProgramRecord(
            name="Fund B1",
            source="https://x.org/b1",
            parent_program="Fund B",
            parent_source="https://x.org/b",
        )
        sink = JsonFileSink(str(tmp_path / "out" / "funding.json"))

        summary = await sink.save_programs([parent], [orphan])

        assert summary.programs_saved == 1
        assert summary.subprograms_saved == 2
        assert summary.errors == []

        payload = json.loads((tmp_path / "out" / "funding.json").read_text(encoding="utf-8"))
        assert "lastUpdated" in payload
        assert payload["programs"][0]["subprograms"][0]["name"] == "Fund A1"
        assert payload["orphanedSubprograms"][0]["parentProgram"] == "Fund B"

    @pytest.mark.asyncio
    async def test_log_run_appends(self, tmp_path):
        """Test run logs are appended as JSON lines next to the artifact."""
        sink = JsonFileSink(str(tmp_path / "funding.json"))

        await sink.log_run(SiteRunLog(site_name="SEFA", status="success", programs_found=3))
        await sink.log_run(SiteRunLog(site_name="All Sites", status="partial"))

        lines = (tmp_path / "runs.jsonl").read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["sourceName"] for line in lines] == ["SEFA", "All Sites"]
        assert json.loads(lines[0])["programsFound"] == 3
