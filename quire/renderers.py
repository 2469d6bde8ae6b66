"""Body renderers for Quire.

A renderer turns the text after a unit's metadata header into HTML. The
registry maps source files to renderers by suffix, so the content store can
skip files nothing knows how to render.

Classes:
    MarkdownRenderer: Markdown with Pygments-highlighted fenced code.
    HTMLRenderer: HTML bodies, inserted unchanged.
    RendererRegistry: Picks the renderer for a source file.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

if TYPE_CHECKING:
    from pygments.lexer import Lexer

    from .protocols import ContentRenderer

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

_code_formatter = HtmlFormatter(cssclass="highlight")


def _lexer_for(info: str | None) -> Lexer | None:
    language = (info or "").split()
    if not language:
        return None
    try:
        return get_lexer_by_name(language[0], stripall=True)
    except ClassNotFound:
        return None


class _HighlightRenderer(mistune.HTMLRenderer):
    """Mistune HTML renderer that colours fenced code blocks.

    Raw HTML inside Markdown is kept. Blocks with no language, or one
    Pygments does not know, render as a plain ``<pre><code>`` block.
    """

    def block_code(self, code: str, info: str | None = None) -> str:
        lexer = _lexer_for(info)
        if lexer is None:
            return super().block_code(code, info)
        return highlight(code, lexer, _code_formatter)


class _SuffixRenderer:
    suffixes: tuple[str, ...] = ()

    def can_render(self, path: Path) -> bool:
        return path.suffix.lower() in self.suffixes


class MarkdownRenderer(_SuffixRenderer):
    suffixes = (".md", ".markdown")
    source_type = "markdown"

    def render(self, content: str) -> str:
        # One parser per call: mistune keeps per-document state on the instance.
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(escape=False), plugins=MARKDOWN_PLUGINS
        )
        return markdown(content)


class HTMLRenderer(_SuffixRenderer):
    suffixes = (".html", ".htm")
    source_type = "html"

    def render(self, content: str) -> str:
        return content


class RendererRegistry:
    """Ordered collection of body renderers; the first that accepts a path wins.

    Attributes:
        renderers: Registered renderers, Markdown and HTML first.
    """

    def __init__(self):
        self.renderers: list[ContentRenderer] = [MarkdownRenderer(), HTMLRenderer()]

    def register(self, renderer: ContentRenderer) -> None:
        self.renderers.append(renderer)

    def get_renderer(self, path: Path) -> ContentRenderer | None:
        return next((r for r in self.renderers if r.can_render(path)), None)

    def accepts(self, path: Path) -> bool:
        return self.get_renderer(path) is not None


default_renderer_registry = RendererRegistry()
