"""Markdown rendering for ``markdown`` and ``markdownInline`` content nodes."""

from __future__ import annotations

import re

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
SINGLE_PARAGRAPH_PATTERN = re.compile(r"^<p>(.*)</p>$", re.DOTALL)

_EXTENSIONS = ["fenced_code", "codehilite", "tables", "sane_lists"]


class MarkdownRenderer:
    """Convert editor-authored markdown into HTML with highlighted code."""

    def __init__(self, pygments_style: str = "monokai") -> None:
        """Initialize the renderer.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used by ``codehilite``. Defaults to
            ``"monokai"``.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def block(self, text: str) -> str:
        """Render ``text`` as block-level HTML; blank input renders as ``""``."""
        normalized = FENCED_INDENT_PATTERN.sub(r"\1", text or "")
        if not normalized.strip():
            return ""
        md = Markdown(
            extensions=list(_EXTENSIONS),
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        return md.convert(normalized)

    def inline(self, text: str) -> str:
        """Render ``text`` without the wrapping paragraph for a single line."""
        html = self.block(text).strip()
        match = SINGLE_PARAGRAPH_PATTERN.match(html)
        if match and "<p>" not in match.group(1):
            return match.group(1)
        return html


__all__ = ["MarkdownRenderer"]
