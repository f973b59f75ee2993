"""Unit tests for content_converter.document_assembler module."""

from datetime import datetime, timezone

import pytest

from src.content_converter.document_assembler import (
    DocumentAssembler,
    convert_page,
    parse_timestamp,
    resolve_web_url,
)
from src.models.confluence_page import CommentRecord, PageRecord
from src.models.conversion_result import ConversionResult
from src.models.converter_config import ConverterConfig
from src.models.errors import InvalidRecordError


def _page(**overrides):
    values = dict(
        id="123",
        title="Doc",
        body="<p>Hello</p>",
        space_key="ENG",
        space_name="Engineering",
        version=3,
        last_modified="2024-01-15T10:30:00.000Z",
        editor="Ana",
        web_link="/spaces/ENG/pages/123",
    )
    values.update(overrides)
    return PageRecord(**values)


class TestParseTimestamp:
    """Test cases for parse_timestamp()."""

    def test_zulu_timestamp(self):
        """A trailing Z is read as UTC."""
        assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_offset_without_colon(self):
        """+0000 style offsets are accepted."""
        result = parse_timestamp("2024-01-15T10:30:00.000+0000")

        assert (result.year, result.month, result.day, result.hour, result.minute) == (2024, 1, 15, 10, 30)

    @pytest.mark.parametrize("value", [None, "", "   ", "yesterday", "2024-13-45"])
    def test_unparseable_returns_none(self, value):
        """Missing or malformed timestamps give None instead of raising."""
        assert parse_timestamp(value) is None


class TestResolveWebUrl:
    """Test cases for resolve_web_url()."""

    def test_relative_link_joined(self):
        """Relative links are joined onto the base URL."""
        result = resolve_web_url("/spaces/ENG/pages/1", "https://x.atlassian.net/wiki/")

        assert result == "https://x.atlassian.net/wiki/spaces/ENG/pages/1"

    def test_absolute_link_unchanged(self):
        """Absolute links ignore the base URL."""
        assert resolve_web_url("https://other/page", "https://x") == "https://other/page"

    def test_no_base_url(self):
        """Without a base URL the link is returned as is."""
        assert resolve_web_url("/spaces/ENG", "") == "/spaces/ENG"


class TestDocumentAssembler:
    """Test cases for DocumentAssembler.convert()."""

    def setup_method(self):
        self.assembler = DocumentAssembler(ConverterConfig(base_url="https://example.atlassian.net/wiki"))

    def test_full_layout(self):
        """Title, metadata and content sections appear in order."""
        result = self.assembler.convert(_page())

        assert isinstance(result, ConversionResult)
        assert result.content == (
            "# Doc\n"
            "\n"
            "## Page Information\n"
            "\n"
            "- **Page ID:** 123\n"
            "- **Space:** Engineering (ENG)\n"
            "- **Version:** 3\n"
            "- **Last Updated:** 2024-01-15 10:30:00\n"
            "- **Updated By:** Ana\n"
            "- **Link:** https://example.atlassian.net/wiki/spaces/ENG/pages/123\n"
            "\n"
            "## Page Content\n"
            "\n"
            "Hello"
        )
        assert result.warnings == ()

    def test_metadata(self):
        """Metadata is parsed from the page record."""
        metadata = self.assembler.convert(_page()).metadata

        assert metadata.id == "123"
        assert metadata.version == 3
        assert metadata.last_updated == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert metadata.updated_by == "Ana"
        assert metadata.web_url == "https://example.atlassian.net/wiki/spaces/ENG/pages/123"

    def test_missing_optional_fields_are_omitted(self):
        """Empty or unparseable metadata fields leave no line behind."""
        page = _page(space_name="", version=0, last_modified="not a date", editor="", web_link="")

        content = DocumentAssembler().convert(page).content

        assert "- **Space:** ENG" in content
        assert "Version" not in content
        assert "Last Updated" not in content
        assert "Updated By" not in content
        assert "Link" not in content

    def test_empty_body(self):
        """A page without body still has its content heading."""
        content = self.assembler.convert(_page(body="")).content

        assert content.endswith("## Page Content")

    def test_comments_in_order(self):
        """Comments are numbered and kept in input order."""
        comments = [
            CommentRecord(body="<p>First</p>", author="Bo", timestamp="2024-02-01T08:00:00Z"),
            CommentRecord(body="<p>Second</p>", author="Cy", timestamp="2024-02-02T08:00:00Z"),
        ]

        content = self.assembler.convert(_page(), comments).content

        assert "## Comments (2)" in content
        assert content.index("### Comment 1") < content.index("First")
        assert content.index("First") < content.index("### Comment 2")
        assert content.index("### Comment 2") < content.index("Second")
        assert "### Comment 1\n\n- **Author:** Bo\n- **Time:** 2024-02-01 08:00:00\n\nFirst" in content

    def test_comment_numbering_ignores_timestamps(self):
        """Comments keep input order even when their timestamps run backwards."""
        comments = [
            CommentRecord(body="<p>Third by time</p>", author="Bo", timestamp="2024-03-03T08:00:00Z"),
            CommentRecord(body="<p>Second by time</p>", author="Cy", timestamp="2024-03-02T08:00:00Z"),
            CommentRecord(body="<p>First by time</p>", author="Di", timestamp="2024-03-01T08:00:00Z"),
        ]

        content = self.assembler.convert(_page(), comments).content

        assert "## Comments (3)" in content
        assert "### Comment 1\n\n- **Author:** Bo" in content
        assert "### Comment 2\n\n- **Author:** Cy" in content
        assert "### Comment 3\n\n- **Author:** Di" in content
        assert content.index("Third by time") < content.index("Second by time") < content.index("First by time")

    def test_fence_like_comment_does_not_swallow_later_sections(self):
        """A comment that is just backticks leaves the next comment intact."""
        comments = [
            CommentRecord(body="<p>```</p>", author="Bo"),
            CommentRecord(body="<p>a<br/><br/><br/>b</p>", author="Cy"),
        ]

        content = self.assembler.convert(_page(), comments).content

        assert "### Comment 1\n\n- **Author:** Bo\n\n\\```\n\n### Comment 2" in content
        assert content.endswith("### Comment 2\n\n- **Author:** Cy\n\na  \n<br>  \n<br>  \nb")

    def test_comment_without_timestamp(self):
        """A comment without a usable timestamp has no Time line."""
        comments = [CommentRecord(body="<p>Hi</p>", author="Bo", timestamp="")]

        content = self.assembler.convert(_page(), comments).content

        assert "- **Author:** Bo" in content
        assert "**Time:**" not in content

    def test_comment_without_details(self):
        """A bare comment is just its heading and body."""
        content = self.assembler.convert(_page(), [CommentRecord(body="<p>Hi</p>")]).content

        assert content.endswith("### Comment 1\n\nHi")

    def test_no_comments_section(self):
        """An empty list or None (failed fetch) omits the comments section."""
        assert "## Comments" not in self.assembler.convert(_page(), []).content
        assert "## Comments" not in self.assembler.convert(_page(), None).content

    def test_comments_disabled_in_config(self):
        """include_comments=False leaves the section out."""
        assembler = DocumentAssembler(ConverterConfig(include_comments=False))

        content = assembler.convert(_page(), [CommentRecord(body="<p>Hi</p>")]).content

        assert "## Comments" not in content

    def test_comment_warnings_are_prefixed(self):
        """Warnings from comments name the comment they came from."""
        page = _page(body="<table><tr><td>a</td></tr></table>")
        comments = [CommentRecord(body='<ac:structured-macro ac:name="jira"/>')]

        result = self.assembler.convert(page, comments)

        assert result.warnings == (
            "Table kept as raw markup; layout is not preserved",
            "Comment 1: Unsupported macro 'jira' replaced with a placeholder",
        )

    def test_timestamp_format_from_config(self):
        """Timestamps use the configured strftime format."""
        assembler = DocumentAssembler(ConverterConfig(timestamp_format="%d/%m/%Y"))

        assert "- **Last Updated:** 15/01/2024" in assembler.convert(_page()).content

    def test_rejects_non_records(self):
        """Plain dicts are not accepted as records."""
        with pytest.raises(InvalidRecordError):
            self.assembler.convert({"id": "1"})
        with pytest.raises(InvalidRecordError):
            self.assembler.convert(_page(), [{"body": "x"}])

    def test_convert_page_helper(self):
        """convert_page() is a one-call shortcut."""
        result = convert_page(_page(), [CommentRecord(body="<p>Hi</p>")])

        assert "## Comments (1)" in result.content
