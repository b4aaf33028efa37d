"""HTML renderer honoring the HTML-specific render flags."""

import logging
import subprocess
from collections.abc import MutableMapping, Sequence
from typing import Any, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.renderer import RendererHTML
from markdown_it.token import Token
from markdown_it.utils import OptionsDict

from mdrender.core.config import DEFAULT_LOCALIZATION, Localization, RendererKind
from mdrender.core.flags import ExtensionFlag, RenderFlag
from mdrender.renderers import RendererOptions, renderer

logger = logging.getLogger(__name__)

GNUPLOT_TIMEOUT = 30
MATH_RULES = ("math_inline", "math_inline_double", "math_block")


@renderer(RendererKind.HTML)
class HtmlRenderer(RendererHTML):
    """renders tokens to (X)HTML."""

    __output__ = "html"

    def __init__(
        self,
        render_flags: RenderFlag = RenderFlag(0),
        toc_level: int = 0,
        localization: Localization = DEFAULT_LOCALIZATION,
        stylesheet: Optional[str] = None,
    ) -> None:
        super().__init__()
        # public methods are collected as token rules by RendererHTML
        for name in ("attach", "release", "from_options"):
            self.rules.pop(name, None)
        self.render_flags = RenderFlag(render_flags)
        self.toc_level = toc_level
        self.localization = localization
        self.stylesheet = stylesheet
        self.released = False
        self.math_explicit = False
        self._toc_index = 0

    @classmethod
    def from_options(cls, options: RendererOptions) -> "HtmlRenderer":
        """builds an HTML renderer from the full option set."""
        return cls(
            options.render_flags,
            options.toc_level,
            options.localization,
            options.stylesheet,
        )

    def attach(self, md: MarkdownIt, extensions: ExtensionFlag) -> None:
        """restores the KaTeX math rules over those installed by plugins."""
        self.math_explicit = bool(extensions & ExtensionFlag.MATH_EXPLICIT)
        for name in MATH_RULES:
            self.rules[name] = getattr(self, name)

    def release(self) -> None:
        """drops the rule table."""
        self.rules = {}
        self.released = True

    def render(
        self, tokens: Sequence[Token], options: Any, env: MutableMapping[str, Any]
    ) -> str:
        """renders a token stream, prefixed by the stylesheet link when set."""
        if self.released:
            raise RuntimeError("renderer used after release")

        options = OptionsDict(
            {
                **options,
                "xhtmlOut": bool(self.render_flags & RenderFlag.USE_XHTML),
                "breaks": bool(self.render_flags & RenderFlag.HARD_WRAP),
            }
        )
        self._toc_index = 0
        body = super().render(tokens, options, env)

        if self.render_flags & RenderFlag.CSS and self.stylesheet:
            close = " />" if options.xhtmlOut else ">"
            link = f'<link rel="stylesheet" href="{escapeHtml(self.stylesheet)}"{close}\n'
            return link + body
        return body

    def heading_open(
        self, tokens: Sequence[Token], idx: int, options: Any, env: MutableMapping[str, Any]
    ) -> str:
        token = tokens[idx]
        if int(token.tag[1:]) <= self.toc_level:
            token.attrSet("id", f"toc_{self._toc_index}")
            self._toc_index += 1
        return self.renderToken(tokens, idx, options, env)

    def html_block(self, tokens: Sequence[Token], idx: int, *args: Any) -> str:
        return self._raw_html(tokens[idx].content)

    def html_inline(self, tokens: Sequence[Token], idx: int, *args: Any) -> str:
        return self._raw_html(tokens[idx].content)

    def _raw_html(self, content: str) -> str:
        if self.render_flags & RenderFlag.ESCAPE:
            return escapeHtml(content)
        if self.render_flags & RenderFlag.SKIP_HTML:
            return ""
        return content

    def fence(
        self, tokens: Sequence[Token], idx: int, options: Any, env: MutableMapping[str, Any]
    ) -> str:
        token = tokens[idx]
        info = token.info.strip().split(maxsplit=1)
        language = info[0] if info else ""

        if language == "mermaid" and self.render_flags & RenderFlag.MERMAID:
            return f'<div class="mermaid">\n{escapeHtml(token.content)}</div>\n'
        if language == "gnuplot" and self.render_flags & RenderFlag.GNUPLOT:
            return self._gnuplot(token.content)

        return self._captioned(token, super().fence(tokens, idx, options, env), "div")

    def _gnuplot(self, script: str) -> str:
        """pipes a gnuplot script through gnuplot's SVG terminal."""
        try:
            result = subprocess.run(
                ["gnuplot"],
                input=f"set terminal svg\n{script}",
                check=True,
                capture_output=True,
                text=True,
                timeout=GNUPLOT_TIMEOUT,
            )
        except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.warning("gnuplot rendering failed, keeping source: %s", e)
            return f'<pre class="gnuplot"><code>{escapeHtml(script)}</code></pre>\n'

        svg = result.stdout
        start = svg.find("<svg")
        return f'<div class="gnuplot">{svg[start:] if start >= 0 else svg}</div>\n'

    def image(
        self, tokens: Sequence[Token], idx: int, options: Any, env: MutableMapping[str, Any]
    ) -> str:
        token = tokens[idx]
        return self._captioned(token, super().image(tokens, idx, options, env), "span")

    def table_open(
        self, tokens: Sequence[Token], idx: int, options: Any, env: MutableMapping[str, Any]
    ) -> str:
        token = tokens[idx]
        opening = self.renderToken(tokens, idx, options, env)
        if "caption" not in token.meta:
            return opening
        return f"{opening}<caption>{self._caption_text(token)}</caption>\n"

    def math_inline(self, tokens: Sequence[Token], idx: int, *args: Any) -> str:
        return f"\\({escapeHtml(tokens[idx].content)}\\)"

    def math_inline_double(self, tokens: Sequence[Token], idx: int, *args: Any) -> str:
        if self.math_explicit:
            return f"\\[{escapeHtml(tokens[idx].content)}\\]"
        return f"\\({escapeHtml(tokens[idx].content)}\\)"

    def math_block(self, tokens: Sequence[Token], idx: int, *args: Any) -> str:
        return f"<p>\\[{escapeHtml(tokens[idx].content.strip())}\\]</p>\n"

    def _caption_text(self, token: Token) -> str:
        label = getattr(self.localization, token.meta["kind"])
        return f"{escapeHtml(label)} {token.meta['number']}: {escapeHtml(token.meta['caption'])}"

    def _captioned(self, token: Token, rendered: str, wrapper: str) -> str:
        """wraps numbered figures and listings with their caption."""
        if "caption" not in token.meta:
            return rendered
        kind = token.meta["kind"]
        anchor = f"{kind}-{token.meta['number']}"
        return (
            f'<{wrapper} class="{kind}" id="{anchor}">{rendered}'
            f'<span class="caption">{self._caption_text(token)}</span></{wrapper}>'
            + ("\n" if wrapper == "div" else "")
        )
