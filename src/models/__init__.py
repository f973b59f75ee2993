"""Data models for Confluence records, configuration and conversion results."""

from src.models.confluence_page import CommentRecord, PageRecord, comments_from_api
from src.models.conversion_result import ConversionResult, PageMetadata
from src.models.converter_config import ConverterConfig
from src.models.errors import ConverterError, InvalidRecordError

__all__ = [
    'PageRecord',
    'CommentRecord',
    'comments_from_api',
    'ConversionResult',
    'PageMetadata',
    'ConverterConfig',
    'ConverterError',
    'InvalidRecordError',
]
