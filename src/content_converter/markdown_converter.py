"""Storage format to Markdown conversion for a single fragment.

Runs the full pipeline for one markup string (a page body or a comment
body): tokenizer, tree builder, macro resolver and renderer. Every call
builds its own tokens and tree, so one converter can be shared freely.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from src.models.converter_config import ConverterConfig

from .macro_resolver import MacroResolver
from .nodes import Document
from .renderer import MarkdownRenderer
from .tokenizer import tokenize
from .tree_builder import TreeBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FragmentResult:
    """Markdown for one fragment plus notes about lossy conversions."""
    markdown: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)


class MarkdownConverter:
    """Converts Confluence storage format fragments to Markdown.

    Example:
        >>> converter = MarkdownConverter()
        >>> converter.render_fragment("<h3>Title</h3><p>Body</p>")
        '### Title\\n\\nBody'
    """

    def __init__(self, config: Optional[ConverterConfig] = None):
        """Initialize the converter.

        Args:
            config: Conversion settings; defaults to ConverterConfig()
        """
        self.config = config or ConverterConfig()
        self._renderer = MarkdownRenderer(self.config)

    def parse(self, markup: str) -> Tuple[Document, Tuple[str, ...]]:
        """Parse markup into a resolved Document.

        Returns:
            Tuple of (resolved Document, warnings from building and resolving)
        """
        builder = TreeBuilder()
        document = builder.build(tokenize(markup or ""))
        resolver = MacroResolver()
        resolved = resolver.resolve(document)
        return resolved, tuple(builder.warnings + resolver.warnings)

    def convert_fragment(self, markup: str) -> FragmentResult:
        """Convert markup to Markdown, keeping the conversion warnings.

        Args:
            markup: Storage format markup; empty or None yields ""

        Returns:
            FragmentResult with the Markdown text and warnings
        """
        if not markup:
            return FragmentResult(markdown="")
        document, warnings = self.parse(markup)
        markdown = self._renderer.render(document)
        if warnings:
            logger.debug(f"Fragment converted with {len(warnings)} warning(s)")
        return FragmentResult(markdown=markdown, warnings=warnings)

    def render_fragment(self, markup: str) -> str:
        """Convert markup to Markdown text."""
        return self.convert_fragment(markup).markdown


def render_fragment(markup: str, config: Optional[ConverterConfig] = None) -> str:
    """Convert a storage format fragment to Markdown with the given config."""
    return MarkdownConverter(config).render_fragment(markup)
