"""Unit tests for content_converter.tree_builder module."""

from src.content_converter.nodes import (
    Document,
    Element,
    Emphasis,
    EmphasisKind,
    Heading,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    Paragraph,
    PlainText,
    Table,
    Unknown,
)
from src.content_converter.tokenizer import tokenize
from src.content_converter.tree_builder import MAX_NESTING_DEPTH, TreeBuilder


def _build(markup):
    builder = TreeBuilder()
    return builder.build(tokenize(markup)), builder.warnings


class TestTreeBuilderStructure:
    """Test cases for well-formed input."""

    def test_heading_and_paragraph(self):
        """Headings keep their level and paragraphs their text."""
        document, warnings = _build("<h3>Title</h3><p>Body</p>")

        assert document == Document(children=(
            Heading(children=(PlainText("Title"),), level=3),
            Paragraph(children=(PlainText("Body"),)),
        ))
        assert warnings == []

    def test_nested_lists_attach_to_item(self):
        """A list inside a list item is a child of that item."""
        document, _ = _build("<ul><li>a<ul><li>b</li></ul></li></ul>")

        outer = document.children[0]
        assert isinstance(outer, ListBlock)
        assert not outer.ordered
        item = outer.children[0]
        assert isinstance(item, ListItem)
        assert item.children[0] == PlainText("a")
        assert isinstance(item.children[1], ListBlock)

    def test_inline_nodes(self):
        """Emphasis, links and breaks map to their node types."""
        document, _ = _build('<p><b>x</b><em>y</em><a href="/z">z</a><br>w</p>')

        paragraph = document.children[0]
        assert paragraph.children[0] == Emphasis(children=(PlainText("x"),), kind=EmphasisKind.BOLD)
        assert paragraph.children[1] == Emphasis(children=(PlainText("y"),), kind=EmphasisKind.ITALIC)
        assert paragraph.children[2] == Link(children=(PlainText("z"),), href="/z")
        assert paragraph.children[3] == LineBreak()

    def test_unrecognized_tags_become_elements(self):
        """Well-formed tags without a node type stay transparent Elements."""
        document, warnings = _build('<div class="box"><span>hi</span></div>')

        div = document.children[0]
        assert isinstance(div, Element)
        assert div.tag == "div"
        assert div.attrs == {"class": "box"}
        assert div.children[0].tag == "span"
        assert warnings == []

    def test_table_is_captured_raw(self):
        """Tables, including nested ones, are kept as their raw markup."""
        table = "<table><tr><td><table><tr><td>x</td></tr></table></td></tr></table>"
        document, _ = _build(table + "<p>after</p>")

        assert document.children[0] == Table(raw=table)
        assert isinstance(document.children[1], Paragraph)

    def test_declarations_are_dropped(self):
        """Comments and doctype declarations leave no trace."""
        document, warnings = _build("<!DOCTYPE html><!-- note --><p>x</p>")

        assert document.children == (Paragraph(children=(PlainText("x"),)),)
        assert warnings == []


class TestTreeBuilderRepairs:
    """Test cases for malformed input."""

    def test_close_tag_force_closes_inner_frames(self):
        """Closing an outer tag closes unclosed inner tags with a warning."""
        document, warnings = _build("<p><strong>text</p>")

        paragraph = document.children[0]
        assert paragraph.children[0] == Emphasis(children=(PlainText("text"),))
        assert "Unclosed <strong> closed by </p>" in warnings

    def test_sibling_list_items_close_implicitly(self):
        """A new <li> closes the open one."""
        document, _ = _build("<ul><li>a<li>b</ul>")

        items = document.children[0].children
        assert len(items) == 2
        assert items[1].children == (PlainText("b"),)

    def test_unclosed_at_end_of_input(self):
        """Frames still open at the end are closed with warnings."""
        document, warnings = _build("<ul><li>a")

        assert isinstance(document.children[0], ListBlock)
        assert "Unclosed <li> closed at end of input" in warnings
        assert "Unclosed <ul> closed at end of input" in warnings

    def test_stray_close_tag_is_ignored(self):
        """A close tag without an open tag is dropped."""
        document, warnings = _build("<p>a</b></p>")

        assert document.children == (Paragraph(children=(PlainText("a"),)),)
        assert "Ignoring closing </b> without matching opening tag" in warnings

    def test_void_tags_do_not_nest(self):
        """<br> and <hr> never take children, closed or not."""
        document, warnings = _build("<p>a<br>b</br></p>")

        paragraph = document.children[0]
        assert paragraph.children == (PlainText("a"), LineBreak(), PlainText("b"))
        assert warnings == []

    def test_malformed_tag_becomes_unknown(self):
        """Unparseable tag text is kept as an Unknown node."""
        document, warnings = _build('<p>a <b c="x</p>')

        paragraph = document.children[0]
        assert paragraph.children[-1] == Unknown(raw='<b c="x')
        assert len(warnings) == 1

    def test_warnings_reset_between_builds(self):
        """Each build reports only its own repairs."""
        builder = TreeBuilder()
        builder.build(tokenize("<p>unclosed"))
        builder.build(tokenize("<p>closed</p>"))

        assert builder.warnings == []

    def test_deep_nesting_is_flattened(self):
        """Elements past the depth limit are merged into the deepest kept element."""
        document, warnings = _build("<div>" * 150 + "deep" + "</div>" * 150)

        depth = 0
        node = document
        while isinstance(node.children[0], Element):
            node = node.children[0]
            depth += 1
        assert depth == MAX_NESTING_DEPTH
        assert node.children == (PlainText("deep"),)
        assert warnings == [
            f"Elements nested deeper than {MAX_NESTING_DEPTH} levels flattened into <div>"
        ]

    def test_close_tags_of_flattened_elements_are_consumed(self):
        """Closing a flattened element does not close a kept ancestor."""
        markup = "<p>" + "<span>" * 120 + "a" + "</span>" * 120 + "b</p>"

        document, warnings = _build(markup)

        paragraph = document.children[0]
        assert isinstance(paragraph, Paragraph)
        assert paragraph.children[-1] == PlainText("b")
        assert len(warnings) == 1
