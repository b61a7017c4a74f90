"""
Configuration module for funding sites.

Provides:
- YAML config loading with validation
- Site definitions (sites.yml)
- Environment variable substitution
"""

from .loader import ConfigLoader, load_sites

__all__ = ["ConfigLoader", "load_sites"]
