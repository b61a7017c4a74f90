"""
YAML configuration loader with validation.

Loads site definitions from YAML files with:
- Environment variable substitution
- Schema validation (required keys, concurrency, regex and CSS syntax)
- Default values
"""

import os
import re
from pathlib import Path
from typing import Optional

import soupsieve as sv
import structlog
import yaml

from funding_crawler.core.errors import ConfigError
from funding_crawler.core.models import SiteConfig

logger = structlog.get_logger(__name__)


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - required, empty string (with a warning) if missing
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)
        value = os.getenv(var_expr)
        if value is None:
            logger.warning("env_var_not_set", var=var_expr)
            return ""
        return value

    return re.sub(r"\$\{([^}]+)\}", replace, text)


def validate_site(site: SiteConfig) -> SiteConfig:
    """
    Check that a site's patterns and selectors compile.

    Raises:
        ConfigError: On an invalid regex or CSS selector
    """
    for attribute in ("keyword_pattern", "eligibility_pattern"):
        try:
            re.compile(getattr(site, attribute))
        except re.error as e:
            raise ConfigError(f"{site.site_id}: invalid {attribute}: {e}") from e

    for attribute in ("name_selector", "summary_selector", "subprogram_selector"):
        selector = getattr(site, attribute)
        if not selector:
            continue
        try:
            sv.compile(selector)
        except sv.SelectorSyntaxError as e:
            raise ConfigError(f"{site.site_id}: invalid {attribute}: {e}") from e

    if site.extract_subprograms and not site.subprogram_selector:
        logger.warning("subprograms_without_selector", site_id=site.site_id)

    return site


class ConfigLoader:
    """
    Configuration loader for funding sites.

    Loads YAML config files and validates each site definition.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise FileNotFoundError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        content = substitute_env_vars(content)
        config = yaml.safe_load(content)

        return config or {}

    def load_sites(self, filename: str = "sites.yml") -> list[SiteConfig]:
        """
        Load site definitions from YAML.

        Invalid entries are logged and skipped.

        Args:
            filename: Sites config file name

        Returns:
            List of SiteConfig objects
        """
        config = self.load_file(filename)
        defaults = config.get("defaults") or {}

        sites = []
        for site_data in config.get("sites") or []:
            try:
                site = validate_site(SiteConfig.from_dict({**defaults, **site_data}))
            except (ConfigError, TypeError, ValueError) as e:
                logger.error(
                    "site_load_failed",
                    site=site_data.get("site_id", "unknown") if isinstance(site_data, dict) else "unknown",
                    error=str(e),
                )
                continue
            sites.append(site)
            logger.debug("site_loaded", site_id=site.site_id)

        logger.info("sites_loaded", count=len(sites))
        return sites


def load_sites(config_path: Optional[str] = None) -> list[SiteConfig]:
    """
    Convenience function to load site configs.

    Args:
        config_path: Optional path to sites.yml

    Returns:
        List of SiteConfig objects
    """
    if config_path:
        path = Path(config_path)
        return ConfigLoader(str(path.parent)).load_sites(path.name)
    return ConfigLoader().load_sites()
