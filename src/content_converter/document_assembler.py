"""Assembles a page and its comment thread into one Markdown document.

Layout of the assembled document:

    # {title}

    ## Page Information
    - **Page ID:** ...
    - **Space:** name (key)
    - **Version:** ...
    - **Last Updated:** ...      (only when the timestamp parses)
    - **Updated By:** ...        (only when present)
    - **Link:** ...              (only when known)

    ## Page Content
    {rendered page body}

    ## Comments (N)              (only when there are comments)
    ### Comment 1
    - **Author:** ...
    - **Time:** ...
    {rendered comment body}

Missing or unparseable fields are left out; nothing about the records'
content makes conversion fail.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence

from src.models.confluence_page import CommentRecord, PageRecord
from src.models.conversion_result import ConversionResult, PageMetadata
from src.models.converter_config import ConverterConfig
from src.models.errors import InvalidRecordError

from .markdown_converter import MarkdownConverter
from .renderer import tidy_markdown

logger = logging.getLogger(__name__)

_TZ_SUFFIX_RE = re.compile(r"[+-]\d{2}:?\d{2}$|Z$")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, returning None when it cannot be parsed.

    Handles the formats Confluence emits, including:
    - 2024-01-15T10:30:00Z
    - 2024-01-15T10:30:00.123+00:00
    - 2024-01-15T10:30:00.000+0000

    Args:
        value: Timestamp string (may be empty or None)

    Returns:
        Parsed datetime (timezone-aware when the input carries an offset),
        or None
    """
    if not value or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    # Fallback: strip the timezone and try the plain formats
    clean = _TZ_SUFFIX_RE.sub('', value.strip())
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return datetime.strptime(clean, fmt)
        except ValueError:
            continue

    logger.debug(f"Ignoring unparseable timestamp: {value!r}")
    return None


def resolve_web_url(web_link: str, base_url: str) -> str:
    """Turn a web UI link into an absolute URL.

    Absolute links are returned unchanged; relative links are joined onto
    ``base_url``. Without a base URL the relative link is returned as is.
    """
    link = (web_link or '').strip()
    if not link or re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*://', link):
        return link
    base = (base_url or '').strip().rstrip('/')
    if not base:
        return link
    return f"{base}/{link.lstrip('/')}"


class DocumentAssembler:
    """Builds a ConversionResult from a page and its comments.

    Attributes:
        config: Conversion settings shared with the fragment converter
        converter: Fragment converter used for the page and comment bodies

    Example:
        >>> assembler = DocumentAssembler(ConverterConfig(base_url="https://example.atlassian.net/wiki"))
        >>> result = assembler.convert(page, comments)
        >>> print(result.content)
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        converter: Optional[MarkdownConverter] = None,
    ):
        self.config = config or ConverterConfig()
        self.converter = converter or MarkdownConverter(self.config)

    def convert(
        self,
        page: PageRecord,
        comments: Optional[Sequence[CommentRecord]] = None,
    ) -> ConversionResult:
        """Convert a page and its comment thread.

        Args:
            page: Page record with the storage format body
            comments: Comments in document order; None (a failed comment
                fetch) is treated as no comments

        Returns:
            ConversionResult with metadata, Markdown content and warnings

        Raises:
            InvalidRecordError: If page or a comment is not a record
        """
        if not isinstance(page, PageRecord):
            raise InvalidRecordError('PageRecord', 'page', 'must be a PageRecord')
        comment_list = list(comments or [])
        for index, comment in enumerate(comment_list):
            if not isinstance(comment, CommentRecord):
                raise InvalidRecordError('CommentRecord', f'comments[{index}]', 'must be a CommentRecord')

        metadata = self._metadata(page)
        warnings: List[str] = []

        sections = [f"# {page.title}", self._metadata_section(metadata)]

        body = self.converter.convert_fragment(page.body)
        warnings.extend(body.warnings)
        sections.append("## Page Content")
        if body.markdown:
            sections.append(body.markdown)

        if self.config.include_comments and comment_list:
            sections.append(f"## Comments ({len(comment_list)})")
            for number, comment in enumerate(comment_list, start=1):
                fragment = self.converter.convert_fragment(comment.body)
                warnings.extend(f"Comment {number}: {w}" for w in fragment.warnings)
                sections.append(self._comment_section(number, comment, fragment.markdown))

        tidied = (tidy_markdown(section) for section in sections)
        content = "\n\n".join(section for section in tidied if section)
        logger.info(
            f"Converted page {page.id} with {len(comment_list)} comment(s) "
            f"and {len(warnings)} warning(s)"
        )
        return ConversionResult(metadata=metadata, content=content, warnings=tuple(warnings))

    def _metadata(self, page: PageRecord) -> PageMetadata:
        return PageMetadata(
            id=page.id,
            title=page.title,
            space_key=page.space_key or '',
            space_name=page.space_name or '',
            version=page.version or 0,
            last_updated=parse_timestamp(page.last_modified),
            updated_by=(page.editor or '').strip() or None,
            web_url=resolve_web_url(page.web_link, self.config.base_url),
        )

    def _metadata_section(self, metadata: PageMetadata) -> str:
        lines = ["## Page Information", "", f"- **Page ID:** {metadata.id}"]

        space = self._space_label(metadata.space_name, metadata.space_key)
        if space:
            lines.append(f"- **Space:** {space}")
        if metadata.version:
            lines.append(f"- **Version:** {metadata.version}")
        if metadata.last_updated is not None:
            lines.append(f"- **Last Updated:** {self._format_time(metadata.last_updated)}")
        if metadata.updated_by:
            lines.append(f"- **Updated By:** {metadata.updated_by}")
        if metadata.web_url:
            lines.append(f"- **Link:** {metadata.web_url}")
        return "\n".join(lines)

    def _comment_section(self, number: int, comment: CommentRecord, markdown: str) -> str:
        parts = [f"### Comment {number}"]
        details = []
        author = (comment.author or '').strip()
        if author:
            details.append(f"- **Author:** {author}")
        created = parse_timestamp(comment.timestamp)
        if created is not None:
            details.append(f"- **Time:** {self._format_time(created)}")
        if details:
            parts.append("\n".join(details))
        if markdown:
            parts.append(markdown)
        return "\n\n".join(parts)

    @staticmethod
    def _space_label(name: str, key: str) -> str:
        if name and key:
            return f"{name} ({key})"
        return name or key

    def _format_time(self, value: datetime) -> str:
        return value.strftime(self.config.timestamp_format)


def convert_page(
    page: PageRecord,
    comments: Optional[Sequence[CommentRecord]] = None,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult:
    """Convert a page and its comments with the given config."""
    return DocumentAssembler(config).convert(page, comments)
