"""Confluence page and comment records."""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from src.models.errors import InvalidRecordError


def _get(payload: Mapping[str, Any], *path: str) -> Any:
    value: Any = payload
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class PageRecord:
    """Confluence page as fetched by the transport layer.

    Attributes:
        id: Page identifier
        title: Page title
        body: Page body in storage format
        space_key: Key of the owning space (e.g., "TEAM")
        space_name: Display name of the owning space
        version: Current version number
        last_modified: ISO 8601 timestamp of the current version
        editor: Display name of the last editor
        web_link: Web UI link, absolute or relative to the base URL
    """
    id: str
    title: str
    body: str
    space_key: str = ""
    space_name: str = ""
    version: int = 0
    last_modified: str = ""
    editor: str = ""
    web_link: str = ""

    def __post_init__(self):
        for name in ('id', 'title', 'body'):
            if getattr(self, name) is None:
                raise InvalidRecordError('PageRecord', name)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> 'PageRecord':
        """Build a record from a REST content payload.

        Expects the shape returned with ``expand=body.storage,version,space``.
        Missing optional fields become empty values.

        Raises:
            InvalidRecordError: If payload is not a mapping or lacks id/title
        """
        if not isinstance(payload, Mapping):
            raise InvalidRecordError('PageRecord', 'payload', 'must be a JSON object')
        version = _get(payload, 'version', 'number')
        try:
            version_number = int(version) if version is not None else 0
        except (TypeError, ValueError):
            version_number = 0
        return cls(
            id=_str(payload.get('id')) if payload.get('id') is not None else None,
            title=payload.get('title'),
            body=_str(_get(payload, 'body', 'storage', 'value')),
            space_key=_str(_get(payload, 'space', 'key')),
            space_name=_str(_get(payload, 'space', 'name')),
            version=version_number,
            last_modified=_str(_get(payload, 'version', 'when')),
            editor=_str(_get(payload, 'version', 'by', 'displayName')),
            web_link=_str(_get(payload, '_links', 'webui')),
        )


@dataclass(frozen=True)
class CommentRecord:
    """Single comment in a page's comment thread.

    Attributes:
        body: Comment body in storage format
        author: Display name of the comment author
        timestamp: ISO 8601 creation timestamp
        id: Comment identifier (optional)
    """
    body: str
    author: str = ""
    timestamp: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        if self.body is None:
            raise InvalidRecordError('CommentRecord', 'body')

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> 'CommentRecord':
        if not isinstance(payload, Mapping):
            raise InvalidRecordError('CommentRecord', 'payload', 'must be a JSON object')
        comment_id = payload.get('id')
        return cls(
            body=_str(_get(payload, 'body', 'storage', 'value')),
            author=_str(_get(payload, 'version', 'by', 'displayName')),
            timestamp=_str(_get(payload, 'version', 'when')),
            id=_str(comment_id) if comment_id is not None else None,
        )


def comments_from_api(payload: Union[Mapping[str, Any], List[Any]]) -> List[CommentRecord]:
    """Build comment records from a child/comment response.

    Accepts either the ``{"results": [...]}`` envelope or a bare list and
    keeps the order of the input.
    """
    if isinstance(payload, Mapping):
        items = payload.get('results') or []
    else:
        items = payload
    if not isinstance(items, list):
        raise InvalidRecordError('CommentRecord', 'results', 'must be a list')
    return [CommentRecord.from_api(item) for item in items]
