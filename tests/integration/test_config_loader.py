"""Integration tests for configuration loading."""

import pytest

from funding_crawler.config.loader import ConfigLoader, load_sites, substitute_env_vars
from funding_crawler.core.models import SiteConfig


class TestBundledSites:
    """Tests for the bundled sites.yml."""

    def test_load_sites_yml(self):
        """Test loading the bundled site definitions."""
        sites = ConfigLoader().load_sites("sites.yml")

        assert len(sites) == 14
        assert all(isinstance(s, SiteConfig) for s in sites)
        assert len({s.site_id for s in sites}) == len(sites)

    def test_defaults_applied(self):
        """Test shared defaults reach every site."""
        for site in load_sites():
            assert site.delay_ms == 50
            assert site.concurrency == 6
            assert site.start_url.startswith("https://")

    def test_site_overrides(self):
        """Test per-site values override defaults."""
        sites = {s.site_id: s for s in load_sites()}

        assert sites["sefa"].extract_subprograms is True
        assert sites["sefa"].max_links == 15
        assert "applicant" in sites["tia"].eligibility_pattern
        assert "applicant" not in sites["pic"].eligibility_pattern

    def test_env_override(self, monkeypatch):
        """Test defaults can be overridden from the environment."""
        monkeypatch.setenv("CRAWL_CONCURRENCY", "3")

        assert all(site.concurrency == 3 for site in load_sites())


class TestCustomConfig:
    """Tests for user-supplied config files."""

    def test_invalid_entries_skipped(self, tmp_path):
        """Test invalid site entries are logged and skipped."""
        config = tmp_path / "sites.yml"
        config.write_text(
            """
sites:
  - site_id: good
    name: Good
    start_url: https://good.org/
  - site_id: bad-selector
    name: Bad
    start_url: https://bad.org/
    name_selector: "h1["
  - site_id: bad-regex
    name: Bad
    start_url: https://bad.org/
    keyword_pattern: "(fund"
  - site_id: no-url
    name: Missing
  - site_id: zero
    name: Zero
    start_url: https://zero.org/
    concurrency: 0
""",
            encoding="utf-8",
        )

        sites = load_sites(str(config))

        assert [s.site_id for s in sites] == ["good"]

    def test_missing_file(self, tmp_path):
        """Test a missing config file raises."""
        with pytest.raises(FileNotFoundError):
            load_sites(str(tmp_path / "missing.yml"))


class TestSubstituteEnvVars:
    """Tests for substitute_env_vars function."""

    def test_default_value(self, monkeypatch):
        """Test default is used when the variable is unset."""
        monkeypatch.delenv("FUNDING_TEST_VAR", raising=False)
        assert substitute_env_vars("x: ${FUNDING_TEST_VAR:-42}") == "x: 42"

    def test_set_value(self, monkeypatch):
        """Test set variable is substituted."""
        monkeypatch.setenv("FUNDING_TEST_VAR", "7")
        assert substitute_env_vars("x: ${FUNDING_TEST_VAR}") == "x: 7"

    def test_missing_required(self, monkeypatch):
        """Test missing variable without default becomes empty."""
        monkeypatch.delenv("FUNDING_TEST_VAR", raising=False)
        assert substitute_env_vars("x: ${FUNDING_TEST_VAR}") == "x: "
