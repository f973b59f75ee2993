"""Document node model.

The tree builder produces these nodes and the macro resolver rewrites them.
All nodes are frozen dataclasses holding their children in tuples, so a
finished tree cannot change underneath the renderer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class EmphasisKind(str, Enum):
    """Inline emphasis style."""
    BOLD = "bold"
    ITALIC = "italic"


class MacroKind(str, Enum):
    """Structured macro categories understood by the renderer."""
    CODE = "code"
    INFO = "info"
    WARNING = "warning"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Node:
    """Base class for all document nodes."""


@dataclass(frozen=True)
class ParentNode(Node):
    """Node that owns an ordered tuple of child nodes."""
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Document(ParentNode):
    """Root of a converted fragment."""


@dataclass(frozen=True)
class Heading(ParentNode):
    level: int = 1


@dataclass(frozen=True)
class Paragraph(ParentNode):
    pass


@dataclass(frozen=True)
class ListBlock(ParentNode):
    """Bulleted (``ul``) or numbered (``ol``) list."""
    ordered: bool = False


@dataclass(frozen=True)
class ListItem(ParentNode):
    pass


@dataclass(frozen=True)
class Emphasis(ParentNode):
    kind: EmphasisKind = EmphasisKind.BOLD


@dataclass(frozen=True)
class CodeSpan(ParentNode):
    """Inline code; rendered from the plain text of its children."""


@dataclass(frozen=True)
class Link(ParentNode):
    """Hyperlink whose text is the rendering of its children."""
    href: str = ""


@dataclass(frozen=True)
class LineBreak(Node):
    pass


@dataclass(frozen=True)
class PlainText(Node):
    text: str = ""


@dataclass(frozen=True)
class Element(ParentNode):
    """Well-formed tag without a dedicated node type.

    Elements are transparent: the renderer renders their children. Macro
    wrappers stay Elements until the macro resolver replaces them.
    """
    tag: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)

    def child_elements(self, tag: str) -> Tuple["Element", ...]:
        """Return direct children that are Elements with the given tag."""
        return tuple(
            child for child in self.children
            if isinstance(child, Element) and child.tag == tag
        )


@dataclass(frozen=True)
class Macro(ParentNode):
    """Resolved structured macro.

    Attributes:
        kind: Category deciding how the macro renders
        name: Macro name as written in the source (``ac:name``)
        parameters: Macro parameters keyed by parameter name
        body: Verbatim body text (code macros)
        children: Flattened inline body nodes (admonitions)
    """
    kind: MacroKind = MacroKind.UNKNOWN
    name: str = ""
    parameters: Dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass(frozen=True)
class Table(Node):
    """Table kept as raw markup; never expanded into child nodes."""
    raw: str = ""


@dataclass(frozen=True)
class Unknown(Node):
    """Content that could not be converted, rendered as a placeholder."""
    raw: str = ""


def plain_text(node: Node) -> str:
    """Concatenate the text of every PlainText below ``node``, unmodified."""
    if isinstance(node, PlainText):
        return node.text
    if isinstance(node, ParentNode):
        return "".join(plain_text(child) for child in node.children)
    return ""
