"""Conversion result data model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PageMetadata:
    """Page metadata surfaced next to the converted Markdown.

    Attributes:
        id: Page identifier
        title: Page title
        space_key: Space key
        space_name: Space display name
        version: Version number
        last_updated: Parsed last-modified time, None if missing or unparseable
        updated_by: Last editor, None if missing
        web_url: Absolute web URL of the page (empty if unknown)
    """
    id: str
    title: str
    space_key: str = ""
    space_name: str = ""
    version: int = 0
    last_updated: Optional[datetime] = None
    updated_by: Optional[str] = None
    web_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'space_key': self.space_key,
            'space_name': self.space_name,
            'version': self.version,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
            'updated_by': self.updated_by,
            'web_url': self.web_url,
        }


@dataclass(frozen=True)
class ConversionResult:
    """Result of converting a page and its comments to Markdown.

    Contains the converted markdown content along with page metadata
    and warnings about content that could only be converted lossily.

    Attributes:
        metadata: Page metadata
        content: Complete Markdown document
        warnings: Notes about unsupported macros, tables or malformed markup
    """
    metadata: PageMetadata
    content: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON/YAML-serializable representation."""
        return {
            'metadata': self.metadata.to_dict(),
            'content': self.content,
            'warnings': list(self.warnings),
        }
