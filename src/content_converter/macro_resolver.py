"""Structured macro resolution.

Confluence wraps its custom blocks in ``ac:structured-macro`` elements that
carry an ``ac:name``, optional ``ac:parameter`` children and either a
verbatim ``ac:plain-text-body`` or an ``ac:rich-text-body``. The resolver
replaces those wrappers with typed Macro nodes:

- ``code``: language parameter plus the verbatim body text
- ``info`` / ``warning``: the rich-text body flattened to inline nodes
- anything else: an UNKNOWN macro that renders as a visible placeholder

A few other Confluence elements are normalized on the way (``pre``,
``ac:link``, ``ac:image``).
"""

import logging
from dataclasses import replace
from typing import Dict, List, Tuple

from .nodes import (
    CodeSpan,
    Document,
    Element,
    Emphasis,
    Heading,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    Macro,
    MacroKind,
    Node,
    Paragraph,
    ParentNode,
    PlainText,
    Table,
    Unknown,
    plain_text,
)

logger = logging.getLogger(__name__)

MACRO_TAGS = frozenset({"ac:structured-macro", "ac:macro"})

ADMONITION_KINDS = {
    "info": MacroKind.INFO,
    "warning": MacroKind.WARNING,
}

_INLINE_TYPES = (PlainText, Emphasis, Link, LineBreak, CodeSpan, Unknown)


class MacroResolver:
    """Rewrites macro wrappers in a tree into typed Macro nodes.

    The input tree is not modified; :meth:`resolve` returns a new Document.
    ``warnings`` lists the macros and elements that could only be converted
    lossily during the last call.
    """

    def __init__(self):
        self.warnings: List[str] = []

    def resolve(self, document: Document) -> Document:
        self.warnings = []
        return Document(children=self._resolve_children(document))

    def _resolve_children(self, node: ParentNode) -> Tuple[Node, ...]:
        return tuple(self._resolve(child) for child in node.children)

    def _resolve(self, node: Node) -> Node:
        if isinstance(node, Element):
            if node.tag in MACRO_TAGS:
                return self._resolve_macro(node)
            if node.tag == "pre":
                return Macro(kind=MacroKind.CODE, name="pre", body=plain_text(node))
            if node.tag == "ac:link":
                return self._resolve_link(node)
            if node.tag == "ac:image":
                return self._resolve_image(node)
        if isinstance(node, Table):
            self._warn("Table kept as raw markup; layout is not preserved")
        if isinstance(node, ParentNode):
            return replace(node, children=self._resolve_children(node))
        return node

    def _resolve_macro(self, element: Element) -> Node:
        name = element.attrs.get("ac:name", "").strip().lower()
        parameters = self._parameters(element)

        if name == "code":
            body = "".join(plain_text(part) for part in element.child_elements("ac:plain-text-body"))
            return Macro(
                kind=MacroKind.CODE,
                name=name,
                parameters=parameters,
                body=body,
            )

        if name in ADMONITION_KINDS:
            inline: List[Node] = []
            for part in element.child_elements("ac:rich-text-body"):
                resolved = replace(part, children=self._resolve_children(part))
                self._flatten(resolved, inline)
            return Macro(
                kind=ADMONITION_KINDS[name],
                name=name,
                parameters=parameters,
                children=tuple(inline),
            )

        label = name or "unnamed"
        self._warn(f"Unsupported macro '{label}' replaced with a placeholder")
        return Macro(kind=MacroKind.UNKNOWN, name=label, parameters=parameters)

    @staticmethod
    def _parameters(element: Element) -> Dict[str, str]:
        parameters: Dict[str, str] = {}
        for param in element.child_elements("ac:parameter"):
            key = param.attrs.get("ac:name", "")
            parameters[key] = plain_text(param).strip()
        return parameters

    def _flatten(self, node: Node, out: List[Node]) -> None:
        """Append the inline content of ``node`` to ``out``.

        Block boundaries (paragraphs, headings, list items, block macros)
        turn into single spaces so their text does not run together.
        """
        if isinstance(node, _INLINE_TYPES):
            out.append(node)
        elif isinstance(node, Macro):
            if node.kind == MacroKind.CODE:
                out.append(PlainText(text=" "))
                out.append(CodeSpan(children=(PlainText(text=node.body),)))
                out.append(PlainText(text=" "))
            elif node.kind == MacroKind.UNKNOWN:
                out.append(node)
            else:
                out.append(PlainText(text=" "))
                out.extend(node.children)
                out.append(PlainText(text=" "))
        elif isinstance(node, (Paragraph, Heading, ListBlock, ListItem)):
            out.append(PlainText(text=" "))
            for child in node.children:
                self._flatten(child, out)
            out.append(PlainText(text=" "))
        elif isinstance(node, ParentNode):
            for child in node.children:
                self._flatten(child, out)
        else:
            # Tables and other leaves keep their placeholder rendering
            out.append(node)

    def _resolve_link(self, element: Element) -> Node:
        children = self._resolve_children(element)
        resolved = replace(element, children=children)
        if plain_text(resolved).strip():
            return resolved
        for target in element.child_elements("ri:page"):
            title = target.attrs.get("ri:content-title", "")
            if title:
                return PlainText(text=title)
        for target in element.child_elements("ri:attachment"):
            filename = target.attrs.get("ri:filename", "")
            if filename:
                return PlainText(text=filename)
        return resolved

    def _resolve_image(self, element: Element) -> Node:
        source = ""
        for target in element.child_elements("ri:attachment"):
            source = target.attrs.get("ri:filename", "")
        for target in element.child_elements("ri:url"):
            source = target.attrs.get("ri:value", "")
        label = f"image {source}" if source else "image"
        self._warn(f"Image '{source or 'unknown'}' replaced with a placeholder")
        return Unknown(raw=label)

    def _warn(self, message: str) -> None:
        logger.debug(message)
        self.warnings.append(message)
