"""Optional pipe-table transcription using markdownify.

Tables are kept as raw markup by the tree builder. With the ``pipe`` table
style the renderer hands that markup to :func:`table_to_markdown`, which uses
a markdownify converter tuned for Confluence cells (multiple ``<p>`` per cell,
``<br>`` line breaks, ``colspan``). Anything markdownify cannot turn into a
pipe table falls back to the placeholder.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as BaseMarkdownConverter

logger = logging.getLogger(__name__)

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)


class _TableMarkdownConverter(BaseMarkdownConverter):
    """markdownify converter with Confluence-friendly table cells."""

    def __init__(self, **options):
        options.setdefault('heading_style', 'atx')
        options.setdefault('bullets', '-')
        options.setdefault('strong_em_symbol', '*')
        super().__init__(**options)

    def _is_in_table_cell(self, parent_tags):
        return 'td' in parent_tags or 'th' in parent_tags

    def convert_p(self, el, text, parent_tags):
        """Keep paragraph breaks inside cells so they become <br> later."""
        text = text.strip()
        if not text:
            return ''
        if self._is_in_table_cell(parent_tags):
            return text + '\n'
        if '_inline' in parent_tags:
            return ' ' + text + ' '
        return '\n\n%s\n\n' % text

    def convert_td(self, el, text, parent_tags):
        return self._cell(el, text)

    def convert_th(self, el, text, parent_tags):
        return self._cell(el, text)

    def convert_br(self, el, text, parent_tags):
        if self._is_in_table_cell(parent_tags):
            return '<br>'
        if '_inline' in parent_tags:
            return ' '
        return '  \n'

    @staticmethod
    def _cell(el, text):
        colspan = 1
        if 'colspan' in el.attrs and el['colspan'].isdigit():
            colspan = max(1, min(1000, int(el['colspan'])))
        cell_text = text.strip().replace('\n', '<br>').replace('|', '\\|')
        while '<br><br>' in cell_text:
            cell_text = cell_text.replace('<br><br>', '<br>')
        while cell_text.endswith('<br>'):
            cell_text = cell_text.removesuffix('<br>')
        return ' ' + cell_text + ' |' * colspan


def _flatten_macros(soup: BeautifulSoup) -> None:
    """Replace Confluence elements inside cells with plain HTML.

    Code macros become ``<code>`` spans; other macros keep only their rich
    text body; parameters and resource identifiers are dropped.
    """
    for macro in soup.find_all(['ac:structured-macro', 'ac:macro']):
        if macro.decomposed:
            continue
        if macro.get('ac:name', '').lower() == 'code':
            body = macro.find('ac:plain-text-body', recursive=False)
            code = soup.new_tag('code')
            code.string = body.get_text() if body else ''
            macro.replace_with(code)
            continue
        body = macro.find('ac:rich-text-body', recursive=False)
        if body is None:
            macro.decompose()
        else:
            body.unwrap()
            for param in macro.find_all('ac:parameter', recursive=False):
                param.decompose()
            macro.unwrap()
    for tag in soup.find_all(re.compile(r'^(ac|ri):')):
        tag.unwrap()


def table_to_markdown(raw: str) -> Optional[str]:
    """Convert raw table markup to a Markdown pipe table.

    Args:
        raw: Table markup as captured from the storage format

    Returns:
        The pipe table, or None when the markup did not produce one
    """
    # CDATA bodies (code macros in cells) become escaped text for the HTML parser
    source = _CDATA_RE.sub(lambda m: _escape(m.group(1)), raw)
    try:
        soup = BeautifulSoup(source, 'html.parser')
        _flatten_macros(soup)
        markdown = _TableMarkdownConverter().convert_soup(soup).strip()
    except Exception as e:
        logger.warning(f"Pipe table conversion failed, using placeholder: {e}")
        return None
    if not markdown or '|' not in markdown:
        return None
    return markdown


def _escape(text: str) -> str:
    return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')
