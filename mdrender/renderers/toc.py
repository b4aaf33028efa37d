"""HTML table-of-contents renderer."""

from collections.abc import MutableMapping, Sequence
from typing import Any, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.token import Token

from mdrender.core.config import DEFAULT_LOCALIZATION, Localization, RendererKind
from mdrender.core.flags import ExtensionFlag
from mdrender.renderers import RendererOptions, renderer

TEXT_TOKENS = ("text", "code_inline", "math_inline", "math_inline_double")


@renderer(RendererKind.HTML_TOC)
class HtmlTocRenderer:
    """renders nested <ul> lists linking to the headings' toc_N anchors."""

    __output__ = "html-toc"

    def __init__(
        self, toc_level: int = 0, localization: Localization = DEFAULT_LOCALIZATION
    ) -> None:
        self.toc_level = toc_level
        self.localization = localization
        self.released = False

    @classmethod
    def from_options(cls, options: RendererOptions) -> "HtmlTocRenderer":
        """builds a TOC renderer; render flags do not apply."""
        return cls(options.toc_level, options.localization)

    def attach(self, md: MarkdownIt, extensions: ExtensionFlag) -> None:
        """no plugin rules to restore."""

    def release(self) -> None:
        """marks the renderer unusable."""
        self.released = True

    def render(
        self, tokens: Sequence[Token], options: Any, env: MutableMapping[str, Any]
    ) -> str:
        """
        renders the headings of a token stream as a nested list.

        Only headings whose level is at most toc_level are listed; a toc_level
        of zero yields an empty string.
        """
        if self.released:
            raise RuntimeError("renderer used after release")

        parts: list[str] = []
        current = 0
        index = 0
        for idx, token in enumerate(tokens):
            if token.type != "heading_open":
                continue
            level = int(token.tag[1:])
            if level > self.toc_level:
                continue

            if level > current:
                while level > current:
                    parts.append("<ul>\n<li>\n")
                    current += 1
            elif level < current:
                parts.append("</li>\n")
                while level < current:
                    parts.append("</ul>\n</li>\n")
                    current -= 1
                parts.append("<li>\n")
            else:
                parts.append("</li>\n<li>\n")

            text = _heading_text(tokens[idx + 1] if idx + 1 < len(tokens) else None)
            parts.append(f'<a href="#toc_{index}">{text}</a>\n')
            index += 1

        while current > 0:
            parts.append("</li>\n</ul>\n")
            current -= 1
        return "".join(parts)


def _heading_text(inline: Optional[Token]) -> str:
    """returns the escaped plain text of a heading's inline token."""
    if inline is None or inline.type != "inline":
        return ""
    children = inline.children or []
    return escapeHtml("".join(c.content for c in children if c.type in TEXT_TOKENS))
