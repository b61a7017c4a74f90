"""Tests for command line handling."""

import pytest

from funding_crawler.__main__ import parse_args, select_sites
from funding_crawler.core.models import SiteConfig

SITES = [
    SiteConfig(site_id="sefa", name="SEFA", start_url="https://www.sefa.org.za/"),
    SiteConfig(site_id="tia", name="TIA", start_url="https://www.tia.org.za/"),
    SiteConfig(site_id="pic", name="PIC", start_url="https://www.pic.gov.za/"),
]


class TestParseArgs:
    """Tests for parse_args function."""

    def test_defaults(self):
        """Test default arguments."""
        args = parse_args([])

        assert args.output == "output/funding.json"
        assert args.ai is False
        assert args.headed is False
        assert args.log_level == "INFO"

    def test_provider_choice(self):
        """Test unknown providers are rejected."""
        with pytest.raises(SystemExit):
            parse_args(["--ai-provider", "gemini"])


class TestSelectSites:
    """Tests for select_sites function."""

    def test_all_sites(self):
        """Test no filter keeps every site."""
        assert select_sites(SITES, parse_args([])) == SITES

    def test_filter_and_override(self):
        """Test site filter and per-run overrides."""
        args = parse_args(["--sites", "tia, sefa", "--max-links", "3", "--concurrency", "2"])
        sites = select_sites(SITES, args)

        assert [s.site_id for s in sites] == ["sefa", "tia"]
        assert all(s.max_links == 3 and s.concurrency == 2 for s in sites)

    def test_invalid_concurrency(self):
        """Test concurrency override below one is rejected."""
        with pytest.raises(ValueError):
            select_sites(SITES, parse_args(["--concurrency", "0"]))
