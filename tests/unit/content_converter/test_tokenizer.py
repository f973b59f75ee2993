"""Unit tests for content_converter.tokenizer module."""

from src.content_converter.tokenizer import TokenKind, tokenize


def _kinds(markup):
    return [token.kind for token in tokenize(markup)]


class TestTokenizeTags:
    """Test cases for tag tokens."""

    def test_open_text_close(self):
        """A simple element yields open, text and close tokens."""
        tokens = list(tokenize("<p>Hello</p>"))

        assert [t.kind for t in tokens] == [TokenKind.OPEN, TokenKind.TEXT, TokenKind.CLOSE]
        assert tokens[0].name == "p"
        assert tokens[1].text == "Hello"
        assert tokens[2].name == "p"

    def test_self_closing_tag(self):
        """Tags ending in /> are self-closing."""
        tokens = list(tokenize("<br/><br />"))

        assert [t.kind for t in tokens] == [TokenKind.SELF_CLOSING, TokenKind.SELF_CLOSING]
        assert tokens[0].name == "br"

    def test_names_are_lower_cased(self):
        """Tag and attribute names are case-insensitive."""
        token = next(tokenize('<A HREF="https://example.com">'))

        assert token.name == "a"
        assert token.attrs == {"href": "https://example.com"}

    def test_namespaced_attributes(self):
        """Macro tags keep their namespace prefix."""
        token = next(tokenize('<ac:structured-macro ac:name="code" ac:schema-version=\'1\'>'))

        assert token.name == "ac:structured-macro"
        assert token.attrs == {"ac:name": "code", "ac:schema-version": "1"}

    def test_attribute_values_are_decoded(self):
        """Entities in attribute values are decoded."""
        token = next(tokenize('<a href="/x?a=1&amp;b=2" title=plain>'))

        assert token.attrs["href"] == "/x?a=1&b=2"
        assert token.attrs["title"] == "plain"

    def test_raw_is_exact_source(self):
        """Each token carries the exact slice it was read from."""
        markup = '<p class="x">a &amp; b</p>'

        assert "".join(t.raw for t in tokenize(markup)) == markup


class TestTokenizeText:
    """Test cases for text, CDATA and unknown tokens."""

    def test_entities_are_decoded_in_text(self):
        """Named and numeric entities are decoded."""
        tokens = list(tokenize("a &amp; b &lt;c&gt; &#169;"))

        assert tokens[0].text == "a & b <c> ©"

    def test_cdata_is_verbatim(self):
        """CDATA payloads are neither tag-parsed nor entity-decoded."""
        tokens = list(tokenize("<![CDATA[<b>x</b> &amp;]]>"))

        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.CDATA
        assert tokens[0].text == "<b>x</b> &amp;"

    def test_unterminated_cdata_runs_to_end(self):
        """An unterminated CDATA section keeps the rest of the input."""
        tokens = list(tokenize("<p><![CDATA[if a < b"))

        assert tokens[-1].kind == TokenKind.CDATA
        assert tokens[-1].text == "if a < b"

    def test_lone_less_than_is_text(self):
        """A '<' that cannot start a tag is ordinary text."""
        tokens = list(tokenize("a < b"))

        assert all(t.kind == TokenKind.TEXT for t in tokens)
        assert "".join(t.text for t in tokens) == "a < b"

    def test_comment_is_unknown(self):
        """Comments become UNKNOWN tokens with their raw text."""
        tokens = list(tokenize("<!-- note --><p>x</p>"))

        assert tokens[0].kind == TokenKind.UNKNOWN
        assert tokens[0].raw == "<!-- note -->"

    def test_malformed_tag_is_unknown(self):
        """A tag-like run that does not parse stops at the next tag."""
        tokens = list(tokenize('<b c="x</p>'))

        assert tokens[0].kind == TokenKind.UNKNOWN
        assert tokens[0].raw == '<b c="x'
        assert tokens[1].kind == TokenKind.CLOSE
        assert tokens[1].name == "p"

    def test_empty_input(self):
        """Empty markup yields no tokens."""
        assert _kinds("") == []
