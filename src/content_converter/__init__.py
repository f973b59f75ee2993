"""Content conversion from Confluence storage format to Markdown.

Pipeline: tokenizer -> tree builder -> macro resolver -> renderer for each
fragment, and the DocumentAssembler to combine a page with its comments.
"""

from .document_assembler import DocumentAssembler, convert_page
from .markdown_converter import FragmentResult, MarkdownConverter, render_fragment

__all__ = [
    'DocumentAssembler',
    'FragmentResult',
    'MarkdownConverter',
    'convert_page',
    'render_fragment',
]
