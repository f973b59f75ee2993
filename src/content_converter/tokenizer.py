"""Lenient tokenizer for Confluence storage format.

Splits a markup string into a flat stream of tokens in a single forward
pass. The tokenizer never raises on malformed input: anything that looks
like a tag but cannot be parsed is emitted as an UNKNOWN token carrying its
raw text, and CDATA payloads are passed through verbatim.
"""

import html
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator


class TokenKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    SELF_CLOSING = "self-closing"
    TEXT = "text"
    CDATA = "cdata"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    """A single lexical unit of the markup.

    Attributes:
        kind: Token category
        name: Lower-cased tag name (empty for text, CDATA and unknown tokens)
        attrs: Attribute map with lower-cased names and decoded values
        text: Decoded text for TEXT tokens, verbatim payload for CDATA
        raw: Exact source slice the token was read from
    """
    kind: TokenKind
    name: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    raw: str = ""


_TAG_RE = re.compile(
    r"<(?P<close>/)?"
    r"(?P<name>[A-Za-z][\w:.-]*)"
    r"(?P<attrs>(?:\s+[^\s=/>\"'<]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'>]+))?)*)"
    r"\s*(?P<selfclose>/)?>"
)

_ATTR_RE = re.compile(
    r"(?P<name>[^\s=/>\"'<]+)"
    r"(?:\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\s\"'>]+)))?"
)

_CDATA_OPEN = "<![CDATA["
_CDATA_CLOSE = "]]>"


def _parse_attrs(source: str) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for match in _ATTR_RE.finditer(source):
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare") or ""
        attrs[match.group("name").lower()] = html.unescape(value)
    return attrs


def _text(raw: str) -> Token:
    return Token(kind=TokenKind.TEXT, text=html.unescape(raw), raw=raw)


def tokenize(markup: str) -> Iterator[Token]:
    """Yield the tokens of ``markup`` in document order.

    Args:
        markup: Storage format markup (need not be well-formed)

    Yields:
        Token objects; the generator is finite and cannot be restarted
    """
    pos = 0
    length = len(markup)

    while pos < length:
        lt = markup.find("<", pos)
        if lt == -1:
            yield _text(markup[pos:])
            return
        if lt > pos:
            yield _text(markup[pos:lt])
        pos = lt

        if markup.startswith(_CDATA_OPEN, pos):
            end = markup.find(_CDATA_CLOSE, pos + len(_CDATA_OPEN))
            if end == -1:
                # Unterminated CDATA keeps everything up to the end of input
                payload = markup[pos + len(_CDATA_OPEN):]
                end_pos = length
            else:
                payload = markup[pos + len(_CDATA_OPEN):end]
                end_pos = end + len(_CDATA_CLOSE)
            yield Token(kind=TokenKind.CDATA, text=payload, raw=markup[pos:end_pos])
            pos = end_pos
            continue

        if markup.startswith("<!--", pos):
            end = markup.find("-->", pos + 4)
            end_pos = length if end == -1 else end + 3
            yield Token(kind=TokenKind.UNKNOWN, raw=markup[pos:end_pos])
            pos = end_pos
            continue

        if markup.startswith("<!", pos) or markup.startswith("<?", pos):
            end = markup.find(">", pos)
            end_pos = length if end == -1 else end + 1
            yield Token(kind=TokenKind.UNKNOWN, raw=markup[pos:end_pos])
            pos = end_pos
            continue

        match = _TAG_RE.match(markup, pos)
        if match:
            name = match.group("name").lower()
            raw = match.group(0)
            if match.group("close"):
                yield Token(kind=TokenKind.CLOSE, name=name, raw=raw)
            else:
                kind = TokenKind.SELF_CLOSING if match.group("selfclose") else TokenKind.OPEN
                yield Token(
                    kind=kind,
                    name=name,
                    attrs=_parse_attrs(match.group("attrs")),
                    raw=raw,
                )
            pos = match.end()
            continue

        nxt = markup[pos + 1:pos + 2]
        if nxt.isalpha() or nxt == "/":
            # Looks like a tag but does not parse: keep it up to the next '>'
            # unless another tag starts first.
            gt = markup.find(">", pos + 1)
            next_lt = markup.find("<", pos + 1)
            if gt != -1 and (next_lt == -1 or gt < next_lt):
                end_pos = gt + 1
            elif next_lt != -1:
                end_pos = next_lt
            else:
                end_pos = length
            yield Token(kind=TokenKind.UNKNOWN, raw=markup[pos:end_pos])
            pos = end_pos
            continue

        # A lone '<' (e.g. "a < b") is just text
        yield _text("<")
        pos += 1
