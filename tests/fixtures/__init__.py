"""Test fixtures for storage format conversion tests.

This module provides:
- Sample Confluence storage format bodies (with/without macros, tables, code)
- Saved REST payloads for pages and comment threads
"""

from .sample_pages import (
    EXPECTED_MARKDOWN_SIMPLE,
    SAMPLE_COMMENTS_PAYLOAD,
    SAMPLE_PAGE_PAYLOAD,
    SAMPLE_PAGE_SIMPLE,
    SAMPLE_PAGE_WITH_CODE_BLOCKS,
    SAMPLE_PAGE_WITH_MACROS,
    SAMPLE_PAGE_WITH_TABLES,
    SAMPLE_PAGE_WITH_UNSUPPORTED,
)

__all__ = [
    'EXPECTED_MARKDOWN_SIMPLE',
    'SAMPLE_COMMENTS_PAYLOAD',
    'SAMPLE_PAGE_PAYLOAD',
    'SAMPLE_PAGE_SIMPLE',
    'SAMPLE_PAGE_WITH_CODE_BLOCKS',
    'SAMPLE_PAGE_WITH_MACROS',
    'SAMPLE_PAGE_WITH_TABLES',
    'SAMPLE_PAGE_WITH_UNSUPPORTED',
]
