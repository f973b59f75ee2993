"""Markdown renderer for resolved document trees.

The renderer is a pure function of the tree and its configuration: it keeps
no state between calls, so rendering the same tree twice yields identical
text. Inline nodes that sit directly in a block container (text straight
inside a list item or the document) are grouped into implicit paragraphs.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from src.models.converter_config import ConverterConfig

from .nodes import (
    CodeSpan,
    Element,
    Emphasis,
    EmphasisKind,
    Heading,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    Macro,
    MacroKind,
    Node,
    ParentNode,
    PlainText,
    Table,
    Unknown,
    plain_text,
)
from .table_converter import table_to_markdown

HARD_BREAK_SPACES = "  "
HARD_BREAK = HARD_BREAK_SPACES + "\n"
# Stands in for an empty line between hard breaks; a whitespace-only line would end the paragraph
EMPTY_BREAK_LINE = "<br>"

TABLE_PLACEHOLDER = "[Table content omitted - manual formatting required]"
UNKNOWN_MACRO_PLACEHOLDER = "[Unsupported macro: {name}]"
UNKNOWN_PLACEHOLDER = "[Unconverted content: {raw}]"

ADMONITION_LABELS = {
    MacroKind.INFO: ("ℹ️", "Info"),
    MacroKind.WARNING: ("⚠️", "Warning"),
}

# Elements without a dedicated node that always start a new block
BLOCK_TAGS = frozenset({
    "ac:layout",
    "ac:layout-cell",
    "ac:layout-section",
    "ac:rich-text-body",
    "address",
    "article",
    "aside",
    "blockquote",
    "body",
    "center",
    "details",
    "div",
    "figure",
    "footer",
    "header",
    "hr",
    "html",
    "main",
    "nav",
    "section",
})

_WHITESPACE_RE = re.compile(r"\s+")
_NEWLINE_RE = re.compile(r"\r\n?|\n")
_FENCE_RE = re.compile(r"^(`{3,})")
_FENCE_LIKE_RE = re.compile(r"^(`{3,}|~{3,})")
_BACKTICKS_RE = re.compile(r"`+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text)


def escape_fence(line: str) -> str:
    """Escape a text line that would otherwise open a fenced code block."""
    if _FENCE_LIKE_RE.match(line):
        return "\\" + line
    return line


def _join_inline(parts: Iterable[str]) -> str:
    """Concatenate rendered inline parts, merging whitespace at the seams."""
    out: List[str] = []
    for part in parts:
        if out and out[-1].endswith(" ") and part.startswith(" "):
            part = part.lstrip(" ")
        if part:
            out.append(part)
    return "".join(out)


def tidy_markdown(text: str) -> str:
    """Normalize blank lines and trailing whitespace of rendered Markdown.

    Runs of blank lines collapse to a single blank line and trailing
    whitespace is trimmed, except for hard-break markers. Fenced code blocks
    are copied untouched.
    """
    out: List[str] = []
    fence: Optional[str] = None
    blank_run = 0

    for line in text.split("\n"):
        stripped = line.strip()
        if fence is not None:
            out.append(line)
            if stripped.startswith(fence) and not stripped.strip("`"):
                fence = None
            continue

        match = _FENCE_RE.match(stripped)
        if match:
            fence = match.group(1)
            blank_run = 0
            out.append(line.rstrip())
            continue

        if not stripped:
            blank_run += 1
            if blank_run == 1:
                out.append("")
            continue

        blank_run = 0
        if line.endswith(HARD_BREAK_SPACES):
            out.append(line.rstrip() + HARD_BREAK_SPACES)
        else:
            out.append(line.rstrip())

    return "\n".join(out).strip()


def _wrap_preserving_space(inner: str, prefix: str, suffix: str) -> str:
    """Wrap the non-blank core of ``inner``, keeping outer whitespace outside."""
    core = inner.strip()
    if not core:
        return " " if inner else ""
    lead = inner[:len(inner) - len(inner.lstrip())]
    trail = inner[len(inner.rstrip()):]
    return f"{lead}{prefix}{core}{suffix}{trail}"


class MarkdownRenderer:
    """Renders a Document (or any node) to Markdown.

    Attributes:
        config: Conversion settings (only ``table_style`` matters here)

    Example:
        >>> renderer = MarkdownRenderer()
        >>> renderer.render(Document(children=(Heading(children=(PlainText("Hi"),), level=2),)))
        '## Hi'
    """

    def __init__(self, config: Optional[ConverterConfig] = None):
        self.config = config or ConverterConfig()

    def render(self, node: Node) -> str:
        """Render ``node`` and tidy the result.

        Each top-level block is tidied on its own, so only fences the
        renderer wrote itself are tracked and an unbalanced one cannot
        reach into the following blocks.
        """
        blocks = (tidy_markdown(text) for text in self._blocks([node]))
        return "\n\n".join(block for block in blocks if block)

    # Block level

    def _blocks(self, nodes: Sequence[Node]) -> List[str]:
        return [text for _, text in self._block_pairs(nodes)]

    def _block_pairs(self, nodes: Sequence[Node]) -> List[Tuple[Optional[Node], str]]:
        """Render ``nodes`` as blocks, paired with the node each came from.

        Consecutive inline nodes form one implicit paragraph (paired with None).
        """
        pairs: List[Tuple[Optional[Node], str]] = []
        run: List[Node] = []

        for node in nodes:
            if self._is_inline(node):
                run.append(node)
                continue
            if run:
                self._flush(run, pairs)
                run = []
            for text in self._block(node):
                pairs.append((node, text))

        if run:
            self._flush(run, pairs)
        return pairs

    def _flush(self, run: List[Node], pairs: List[Tuple[Optional[Node], str]]) -> None:
        text = self._inline_run(run)
        if text:
            pairs.append((None, text))

    def _block(self, node: Node) -> List[str]:
        if isinstance(node, Heading):
            text = self._inline_run(node.children, hard_breaks=False)
            level = min(max(node.level, 1), 6)
            return [f"{'#' * level} {text}"] if text else []
        if isinstance(node, ListBlock):
            text = self._list(node)
            return [text] if text else []
        if isinstance(node, ListItem):
            return [self._list(ListBlock(children=(node,)))]
        if isinstance(node, Macro):
            if node.kind == MacroKind.CODE:
                return [self._code_block(node)]
            return [self._admonition(node)]
        if isinstance(node, Table):
            return [self._table(node)]
        if isinstance(node, Element):
            if node.tag == "hr":
                return ["---"]
            if node.tag == "blockquote":
                inner = "\n\n".join(self._blocks(node.children))
                return [self._quote(inner)] if inner else []
        if isinstance(node, ParentNode):
            # Document, Paragraph and block-level wrappers
            return self._blocks(node.children)
        return []

    def _list(self, node: ListBlock) -> str:
        lines: List[str] = []
        number = 0
        pad = "  "

        for child in node.children:
            if isinstance(child, PlainText) and not child.text.strip():
                continue
            if isinstance(child, ListBlock):
                # A list placed directly inside a list belongs to the previous item
                nested = self._list(child)
                lines.extend(pad + line if line else "" for line in nested.split("\n"))
                continue

            items = child.children if isinstance(child, ListItem) else (child,)
            number += 1
            marker = f"{number}. " if node.ordered else "- "
            pad = " " * len(marker)

            parts: List[str] = []
            for source, text in self._block_pairs(items):
                if parts:
                    parts.append("\n" if isinstance(source, ListBlock) else "\n\n")
                parts.append(text)

            if not parts:
                lines.append(marker.rstrip())
                continue
            item_lines = "".join(parts).split("\n")
            lines.append(marker + item_lines[0])
            lines.extend(pad + line if line else "" for line in item_lines[1:])

        return "\n".join(lines)

    def _code_block(self, node: Macro) -> str:
        language = node.parameters.get("language", "").strip()
        body = node.body.strip("\n")
        longest = max((len(run) for run in _BACKTICKS_RE.findall(body)), default=0)
        fence = "`" * max(3, longest + 1)
        return f"{fence}{language}\n{body}\n{fence}"

    def _admonition(self, node: Macro) -> str:
        glyph, label = ADMONITION_LABELS.get(node.kind, ("", node.name.title()))
        title = node.parameters.get("title", "").strip()
        header = f"**{label}: {title}**" if title else f"**{label}:**"
        if glyph:
            header = f"{glyph} {header}"
        text = self._inline_run(node.children)
        return self._quote(f"{header} {text}" if text else header)

    def _table(self, node: Table) -> str:
        if self.config.table_style == "pipe":
            markdown = table_to_markdown(node.raw)
            if markdown:
                return markdown
        return TABLE_PLACEHOLDER

    @staticmethod
    def _quote(text: str) -> str:
        return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))

    # Inline level

    def _is_inline(self, node: Node) -> bool:
        if isinstance(node, (PlainText, LineBreak, Emphasis, CodeSpan, Link, Unknown)):
            return True
        if isinstance(node, Macro):
            return node.kind == MacroKind.UNKNOWN
        if isinstance(node, Element):
            if node.tag in BLOCK_TAGS:
                return False
            return all(self._is_inline(child) for child in node.children)
        return False

    def _inline_run(self, nodes: Sequence[Node], hard_breaks: bool = True) -> str:
        """Render inline nodes as one paragraph of text.

        Every newline in the joined text comes from a hard break, so lines
        are normalized separately and re-joined with hard breaks. Without
        ``hard_breaks`` (headings) the lines are joined with spaces.
        """
        text = _join_inline(self._inline(node) for node in nodes)
        lines = [escape_fence(line.strip()) for line in text.split("\n")]
        while lines and not lines[0]:
            lines.pop(0)
        while lines and not lines[-1]:
            lines.pop()
        if not hard_breaks:
            return " ".join(line for line in lines if line)
        return HARD_BREAK.join(line or EMPTY_BREAK_LINE for line in lines)

    def _inline_children(self, node: ParentNode) -> str:
        return _join_inline(self._inline(child) for child in node.children)

    def _inline(self, node: Node) -> str:
        if isinstance(node, PlainText):
            return collapse_whitespace(node.text)
        if isinstance(node, LineBreak):
            return HARD_BREAK
        if isinstance(node, Emphasis):
            marker = "**" if node.kind == EmphasisKind.BOLD else "*"
            return _wrap_preserving_space(self._inline_children(node), marker, marker)
        if isinstance(node, CodeSpan):
            return self._code_span(_NEWLINE_RE.sub(" ", plain_text(node)))
        if isinstance(node, Link):
            return self._link(node)
        if isinstance(node, Unknown):
            raw = collapse_whitespace(node.raw).strip()
            return UNKNOWN_PLACEHOLDER.format(raw=raw) if raw else "[Unconverted content]"
        if isinstance(node, Macro):
            if node.kind == MacroKind.UNKNOWN:
                return UNKNOWN_MACRO_PLACEHOLDER.format(name=node.name)
            if node.kind == MacroKind.CODE:
                return " " + self._code_span(_NEWLINE_RE.sub(" ", node.body).strip()) + " "
            return _join_inline((" ", self._inline_children(node), " "))
        if isinstance(node, Table):
            return " " + TABLE_PLACEHOLDER + " "
        if isinstance(node, Element) and self._is_inline(node):
            return self._inline_children(node)
        if isinstance(node, ParentNode):
            return _join_inline((" ", self._inline_children(node), " "))
        return ""

    @staticmethod
    def _code_span(text: str) -> str:
        if "`" in text:
            return _wrap_preserving_space(text, "`` ", " ``")
        return _wrap_preserving_space(text, "`", "`")

    def _link(self, node: Link) -> str:
        inner = self._inline_children(node)
        text = inner.strip()
        href = node.href.strip()
        if not text and not href:
            return inner
        if not href:
            return inner
        if not text:
            return f"[{href}]({href})"
        return _wrap_preserving_space(inner, "[", f"]({href})")
