"""
Link discovery for funding sites.

Navigators handle the discovery phase - finding candidate program
detail pages from a site's entry page.
"""

from .links import discover_links, filter_links, same_origin

__all__ = [
    "discover_links",
    "filter_links",
    "same_origin",
]
