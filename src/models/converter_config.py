"""Converter configuration data model."""

from dataclasses import dataclass

TABLE_STYLES = ('placeholder', 'pipe')


@dataclass(frozen=True)
class ConverterConfig:
    """Per-call conversion settings.

    Passed explicitly to the converter and assembler instead of living in
    module-level state.

    Attributes:
        base_url: Confluence base URL used to absolutize relative web links
            (e.g., "https://example.atlassian.net/wiki")
        table_style: "placeholder" (default) or "pipe" for markdownify tables
        timestamp_format: strftime format for metadata timestamps
        include_comments: Whether the assembler emits the comments section
    """
    base_url: str = ""
    table_style: str = "placeholder"
    timestamp_format: str = "%Y-%m-%d %H:%M:%S"
    include_comments: bool = True
