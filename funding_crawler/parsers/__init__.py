"""
Program extraction from rendered pages.

Parsers handle the extraction phase - converting a rendered
program page into a ProgramRecord.
"""

from .page import PageExtractor, parse_program_html

__all__ = [
    "PageExtractor",
    "parse_program_html",
]
