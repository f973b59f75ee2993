"""Stack-based tree builder.

Turns the token stream into an immutable node tree. Open tags push a frame
onto an explicit stack; a close tag pops back to the nearest frame with the
same name, so nested elements of the same name (lists inside lists) attach to
the right ancestor even when inner tags were left unclosed.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .nodes import (
    CodeSpan,
    Document,
    Element,
    Emphasis,
    EmphasisKind,
    Heading,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    Node,
    Paragraph,
    PlainText,
    Table,
    Unknown,
)
from .tokenizer import Token, TokenKind

logger = logging.getLogger(__name__)

# Tags that never have content, whether or not they are written self-closing
VOID_TAGS = frozenset({"br", "hr", "img", "col"})

# An opening tag of the key closes an open frame of the same tag on top of the stack
_IMPLICIT_CLOSE = frozenset({"li", "p"})

_DECLARATION_PREFIXES = ("<!", "<?")

# Open elements past this depth are flattened into the deepest kept element
MAX_NESTING_DEPTH = 100


@dataclass
class _Frame:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List[Node] = field(default_factory=list)


def _heading(level: int) -> Callable[[_Frame], Node]:
    return lambda frame: Heading(children=tuple(frame.children), level=level)


_FACTORIES: Dict[str, Callable[[_Frame], Node]] = {
    "p": lambda f: Paragraph(children=tuple(f.children)),
    "ul": lambda f: ListBlock(children=tuple(f.children), ordered=False),
    "ol": lambda f: ListBlock(children=tuple(f.children), ordered=True),
    "li": lambda f: ListItem(children=tuple(f.children)),
    "strong": lambda f: Emphasis(children=tuple(f.children), kind=EmphasisKind.BOLD),
    "b": lambda f: Emphasis(children=tuple(f.children), kind=EmphasisKind.BOLD),
    "em": lambda f: Emphasis(children=tuple(f.children), kind=EmphasisKind.ITALIC),
    "i": lambda f: Emphasis(children=tuple(f.children), kind=EmphasisKind.ITALIC),
    "code": lambda f: CodeSpan(children=tuple(f.children)),
    "tt": lambda f: CodeSpan(children=tuple(f.children)),
    "a": lambda f: Link(children=tuple(f.children), href=f.attrs.get("href", "")),
    "br": lambda f: LineBreak(),
}
for _level in range(1, 7):
    _FACTORIES[f"h{_level}"] = _heading(_level)


class TreeBuilder:
    """Builds a Document from a token stream.

    A builder is single-use per call of :meth:`build`; the warnings list is
    reset on every call and describes the repairs made to the last input.

    Example:
        >>> builder = TreeBuilder()
        >>> document = builder.build(tokenize("<p>Hello</p>"))
    """

    def __init__(self):
        self.warnings: List[str] = []

    def build(self, tokens: Iterable[Token]) -> Document:
        """Consume ``tokens`` and return the finished Document.

        Args:
            tokens: Token stream, typically from :func:`tokenize`

        Returns:
            Document node owning the whole tree
        """
        self.warnings = []
        stack: List[_Frame] = [_Frame(tag="#document")]
        table_raw: List[str] = []
        table_depth = 0
        # Open tags dropped for exceeding MAX_NESTING_DEPTH, by name
        flattened: Dict[str, int] = {}

        for token in tokens:
            if table_depth:
                table_raw.append(token.raw)
                if token.name == "table":
                    if token.kind == TokenKind.OPEN:
                        table_depth += 1
                    elif token.kind == TokenKind.CLOSE:
                        table_depth -= 1
                if not table_depth:
                    stack[-1].children.append(Table(raw="".join(table_raw)))
                    table_raw = []
                continue

            if token.kind in (TokenKind.TEXT, TokenKind.CDATA):
                if token.text:
                    stack[-1].children.append(PlainText(text=token.text))

            elif token.kind == TokenKind.UNKNOWN:
                if token.raw.startswith(_DECLARATION_PREFIXES):
                    logger.debug(f"Dropping markup declaration: {token.raw[:40]!r}")
                else:
                    self._warn(f"Malformed markup kept as unconverted content: {token.raw!r}")
                    stack[-1].children.append(Unknown(raw=token.raw))

            elif token.name == "table" and token.kind == TokenKind.OPEN:
                table_raw = [token.raw]
                table_depth = 1

            elif token.kind == TokenKind.SELF_CLOSING or (
                token.kind == TokenKind.OPEN and token.name in VOID_TAGS
            ):
                if token.name == "table":
                    stack[-1].children.append(Table(raw=token.raw))
                else:
                    stack[-1].children.append(self._finish(_Frame(token.name, token.attrs)))

            elif token.kind == TokenKind.OPEN:
                if token.name in _IMPLICIT_CLOSE and stack[-1].tag == token.name:
                    self._close_top(stack)
                if len(stack) > MAX_NESTING_DEPTH:
                    if not flattened:
                        self._warn(
                            f"Elements nested deeper than {MAX_NESTING_DEPTH} levels "
                            f"flattened into <{stack[-1].tag}>"
                        )
                    flattened[token.name] = flattened.get(token.name, 0) + 1
                else:
                    stack.append(_Frame(token.name, token.attrs))

            elif token.kind == TokenKind.CLOSE:
                if flattened.get(token.name):
                    flattened[token.name] -= 1
                else:
                    self._close(stack, token.name)

        if table_depth:
            self._warn("Unclosed <table> closed at end of input")
            stack[-1].children.append(Table(raw="".join(table_raw)))

        while len(stack) > 1:
            self._warn(f"Unclosed <{stack[-1].tag}> closed at end of input")
            self._close_top(stack)

        return Document(children=tuple(stack[0].children))

    def _close(self, stack: List[_Frame], tag: str) -> None:
        index = self._find_open(stack, tag)
        if index is None:
            if tag not in VOID_TAGS:
                self._warn(f"Ignoring closing </{tag}> without matching opening tag")
            return
        while len(stack) - 1 > index:
            self._warn(f"Unclosed <{stack[-1].tag}> closed by </{tag}>")
            self._close_top(stack)
        self._close_top(stack)

    @staticmethod
    def _find_open(stack: List[_Frame], tag: str) -> Optional[int]:
        for index in range(len(stack) - 1, 0, -1):
            if stack[index].tag == tag:
                return index
        return None

    def _close_top(self, stack: List[_Frame]) -> None:
        frame = stack.pop()
        stack[-1].children.append(self._finish(frame))

    @staticmethod
    def _finish(frame: _Frame) -> Node:
        factory = _FACTORIES.get(frame.tag)
        if factory is not None:
            return factory(frame)
        return Element(children=tuple(frame.children), tag=frame.tag, attrs=dict(frame.attrs))

    def _warn(self, message: str) -> None:
        logger.debug(message)
        self.warnings.append(message)
