"""Intermediate data models for diagram discovery and node rewriting"""

import html
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from markdown_it.token import Token


class RewriteKind(str, Enum):
    file     = "file"       # stored artifact, relative URL
    url      = "url"        # direct server URL, nothing fetched
    inline   = "inline"     # embedded SVG markup
    fallback = "fallback"   # server URL after a failed pipeline


@dataclass
class DiagramBlock:
    """A matched plantuml fence; the token itself is the stable reference."""
    token: Token
    code:  str
    meta:  str = ""


@dataclass
class Replacement:
    """Outcome of one block pipeline, ready to splice into tokens or source."""
    kind:   RewriteKind
    url:    Optional[str] = None
    markup: Optional[str] = None
    title:  str = ""

    def to_tokens(self) -> list[Token]:
        """Return the token run replacing the fence: one html_block or a paragraph with an image."""
        if self.kind == RewriteKind.inline:
            return [Token("html_block", "", 0, content=self.markup + "\n", block=True)]

        attrs = {"src": self.url, "alt": ""}
        if self.title:
            attrs["title"] = self.title
        children = [Token("text", "", 0, content=self.title)] if self.title else []
        image = Token("image", "img", 0, attrs=attrs, children=children, content=self.title)
        inline = Token("inline", "", 0, children=[image], content=self.to_markdown(), block=True)
        return [
            Token("paragraph_open", "p", 1, block=True),
            inline,
            Token("paragraph_close", "p", -1, block=True),
        ]

    def to_markdown(self) -> str:
        """Return markdown source equivalent to to_tokens()."""
        if self.kind == RewriteKind.inline:
            return self.markup
        quoted = self.title.replace('"', '\\"')
        title = f' "{quoted}"' if self.title else ""
        alt = self.title.replace("[", "\\[").replace("]", "\\]")
        return f"![{alt}]({self.url}{title})"


def svg_container(svg: str, title: str = "") -> str:
    """Wrap SVG markup in the plantuml-diagram div, carrying title when present."""
    title_attr = f' title="{html.escape(title, quote=True)}"' if title else ""
    return f'<div class="plantuml-diagram"{title_attr}>{svg}</div>'
