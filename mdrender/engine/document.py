"""markdown-it based parse-and-render engine."""

import logging
from typing import Any, Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin
from mdit_py_plugins.mark import mark_plugin

from mdrender.core.config import DEF_MAX_NESTING, InjectionContent
from mdrender.core.flags import ExtensionFlag
from mdrender.engine import rules
from mdrender.errors import AllocationError, RenderError

logger = logging.getLogger(__name__)


def build_parser(renderer: Any, extensions: ExtensionFlag, max_nesting: int) -> MarkdownIt:
    """
    configures a MarkdownIt parser for the given extension flags.

    The renderer is installed before plugins are applied so that plugin
    render rules only attach to renderers with a matching output format.

    Args:
        renderer: renderer handle the parser will render with
        extensions: extension bitmask selecting grammar features
        max_nesting: maximum block nesting depth

    Returns:
        configured parser
    """
    md = MarkdownIt(
        "commonmark",
        {"maxNesting": max_nesting, "linkify": bool(extensions & ExtensionFlag.AUTOLINK)},
    )
    md.renderer = renderer

    if extensions & ExtensionFlag.TABLES:
        md.enable("table")
    if extensions & ExtensionFlag.STRIKETHROUGH:
        md.enable("strikethrough")
    if extensions & ExtensionFlag.AUTOLINK:
        md.enable("linkify")
    if not extensions & ExtensionFlag.FENCED_CODE:
        md.disable("fence")
    if extensions & ExtensionFlag.DISABLE_INDENTED_CODE:
        md.disable("code")

    if extensions & ExtensionFlag.FOOTNOTES:
        md.use(footnote_plugin)
    if extensions & ExtensionFlag.HIGHLIGHT:
        md.use(mark_plugin)
    if extensions & ExtensionFlag.MATH:
        # renderers decide whether inline $$x$$ is display math, see attach
        md.use(dollarmath_plugin, allow_labels=False, allow_digits=False, double_inline=True)
    if extensions & ExtensionFlag.SCIDOWN:
        md.use(front_matter_plugin)
        md.core.ruler.push("drop_front_matter", rules.drop_front_matter)
        md.core.ruler.push("captions", rules.captions)

    if extensions & ExtensionFlag.NO_INTRA_EMPHASIS:
        md.inline.ruler.before("emphasis", "intra_emphasis", rules.intra_emphasis)
    if extensions & ExtensionFlag.SUPERSCRIPT:
        md.inline.ruler.before("emphasis", "superscript", rules.superscript)
    if not extensions & ExtensionFlag.SPACE_HEADERS:
        md.block.ruler.before(
            "heading",
            "lax_heading",
            rules.lax_heading,
            {"alt": ["paragraph", "reference", "blockquote"]},
        )
    if extensions & ExtensionFlag.UNDERLINE:
        md.core.ruler.push("underline", rules.underline)
    if extensions & ExtensionFlag.QUOTE:
        md.core.ruler.push("quote", rules.quote)

    attach = getattr(renderer, "attach", None)
    if attach is not None:
        attach(md, extensions)
    return md


class Document:
    """
    one parse/render session bound to a renderer handle.

    render() is all-or-nothing: it returns the complete output or raises
    RenderError. close() releases the parser and may be called repeatedly.
    """

    def __init__(
        self,
        renderer: Any,
        extensions: ExtensionFlag,
        injection: Optional[InjectionContent] = None,
        max_nesting: int = DEF_MAX_NESTING,
    ) -> None:
        self.extensions = ExtensionFlag(extensions)
        self.injection = injection or InjectionContent()
        self.max_nesting = max_nesting
        self._md: Optional[MarkdownIt] = build_parser(renderer, self.extensions, max_nesting)
        self._env: Optional[dict[str, Any]] = {}

    def __enter__(self) -> "Document":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        """true once close() has run."""
        return self._md is None

    @property
    def env(self) -> dict[str, Any]:
        """parser environment (references, footnotes) of the last render."""
        if self._env is None:
            raise ValueError("document is closed")
        return self._env

    def render(self, data: bytes) -> bytes:
        """
        parses and renders Markdown source.

        Args:
            data: UTF-8 encoded Markdown; invalid sequences are replaced

        Returns:
            rendered output with injection header and footer spliced around it

        Raises:
            AllocationError: if the engine runs out of memory
            RenderError: if parsing or rendering fails
        """
        if self._md is None or self._env is None:
            raise ValueError("document is closed")

        text = data.decode("utf-8", errors="replace")
        try:
            body = self._md.render(text, self._env)
        except RenderError:
            raise
        except MemoryError as e:
            raise AllocationError("out of memory while rendering") from e
        except Exception as e:
            raise RenderError(f"rendering failed: {e}") from e

        if not isinstance(body, str):
            raise RenderError(f"renderer returned {type(body).__name__}, expected str")

        parts = [self.injection.header or "", body, self.injection.footer or ""]
        logger.debug("rendered %d input byte(s) into %d character(s)", len(data), len(body))
        return "".join(parts).encode("utf-8")

    def close(self) -> None:
        """drops the parser and its environment."""
        self._md = None
        self._env = None


def parse_and_render(
    renderer: Any,
    extensions: ExtensionFlag,
    injection: InjectionContent,
    max_nesting: int,
    data: bytes,
) -> bytes:
    """renders data in a throwaway Document; see Document.render."""
    with Document(renderer, extensions, injection, max_nesting) as document:
        return document.render(data)
