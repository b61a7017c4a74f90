"""
Funding Crawler - browser-driven crawler for funding-agency websites.

Architecture:
- core/: Stable foundation (models, text cleanup, validation, browser, batching)
- navigators/: Link discovery on entry pages
- parsers/: Detail-page extraction into program records
- plugins/: Optional extensions (LLM enhancement)
- config/: YAML-driven site definitions
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
