"""LaTeX renderer."""

import re
from collections.abc import MutableMapping, Sequence
from typing import Any, Callable, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdrender.core.config import DEFAULT_LOCALIZATION, Localization, RendererKind
from mdrender.core.flags import ExtensionFlag, RenderFlag
from mdrender.renderers import RendererOptions, renderer

LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
LATEX_SPECIALS_PATTERN = re.compile("|".join(re.escape(c) for c in LATEX_SPECIALS))
URL_SPECIALS_PATTERN = re.compile(r"([%#\\{}])")

SECTIONS = {
    1: "section",
    2: "subsection",
    3: "subsubsection",
    4: "paragraph",
    5: "subparagraph",
    6: "subparagraph",
}

# inline open/close pairs rendered as a command wrapping their content
WRAPS = {
    "em": (r"\emph{", "}"),
    "strong": (r"\textbf{", "}"),
    "s": (r"\sout{", "}"),
    "underline": (r"\underline{", "}"),
    "mark": (r"\hl{", "}"),
    "sup": (r"\textsuperscript{", "}"),
    "quote": ("``", "''"),
    "link": ("", "}"),
}

# languages the listings package defines, lowercased
LISTINGS_LANGUAGES = frozenset(
    (
        "abap", "acsl", "ada", "algol", "ant", "assembler", "awk", "bash", "basic",
        "c", "c++", "caml", "cil", "clean", "cobol", "csh", "delphi", "eiffel",
        "elan", "erlang", "euphoria", "fortran", "gcl", "gnuplot", "haskell",
        "html", "idl", "inform", "java", "jvmis", "ksh", "lingo", "lisp", "logo",
        "make", "mathematica", "matlab", "mercury", "metapost", "miranda", "mizar",
        "ml", "modula-2", "mupad", "nastran", "oberon-2", "ocl", "octave", "oz",
        "pascal", "perl", "php", "pl/i", "plasm", "postscript", "pov", "prolog",
        "promela", "pstricks", "python", "r", "reduce", "rexx", "rsl", "ruby", "s",
        "sas", "scilab", "sh", "shelxl", "simula", "sparql", "sql", "tcl", "tex",
        "vbscript", "verilog", "vhdl", "vrml", "xml", "xslt",
    )
)

Rule = Callable[[Sequence[Token], int, MutableMapping[str, Any]], str]


def escape_latex(text: str) -> str:
    """escapes LaTeX special characters in plain text."""
    return LATEX_SPECIALS_PATTERN.sub(lambda m: LATEX_SPECIALS[m.group(0)], text)


def escape_url(url: str) -> str:
    """escapes the characters \\href cannot take verbatim."""
    return URL_SPECIALS_PATTERN.sub(r"\\\1", url)


@renderer(RendererKind.LATEX)
class LatexRenderer:  # pylint: disable=too-many-public-methods
    """renders tokens to a LaTeX document body."""

    __output__ = "latex"

    def __init__(
        self,
        render_flags: RenderFlag = RenderFlag(0),
        toc_level: int = 0,
        localization: Localization = DEFAULT_LOCALIZATION,
    ) -> None:
        # render flags are HTML-only; kept for inspection
        self.render_flags = RenderFlag(render_flags)
        self.toc_level = toc_level
        self.localization = localization
        self.released = False
        self.math_explicit = False
        self.rules: dict[str, Rule] = {
            "paragraph_open": self.paragraph_open,
            "paragraph_close": self.paragraph_close,
            "heading_open": self.heading_open,
            "heading_close": lambda tokens, idx, env: "}\n\n",
            "bullet_list_open": lambda tokens, idx, env: "\\begin{itemize}\n",
            "bullet_list_close": lambda tokens, idx, env: "\\end{itemize}\n\n",
            "ordered_list_open": lambda tokens, idx, env: "\\begin{enumerate}\n",
            "ordered_list_close": lambda tokens, idx, env: "\\end{enumerate}\n\n",
            "list_item_open": lambda tokens, idx, env: "\\item ",
            "list_item_close": lambda tokens, idx, env: "",
            "blockquote_open": lambda tokens, idx, env: "\\begin{quote}\n",
            "blockquote_close": lambda tokens, idx, env: "\\end{quote}\n\n",
            "hr": lambda tokens, idx, env: "\\noindent\\rule{\\textwidth}{0.4pt}\n\n",
            "code_block": self.code_block,
            "fence": self.fence,
            "math_block": lambda tokens, idx, env: f"\\[\n{tokens[idx].content.strip()}\n\\]\n\n",
            "html_block": lambda tokens, idx, env: "",
            "table_open": self.table_open,
            "table_close": self.table_close,
            "tr_open": self.tr_open,
            "tr_close": lambda tokens, idx, env: " \\\\\n\\hline\n",
            "th_open": self.cell_open,
            "td_open": self.cell_open,
            "th_close": lambda tokens, idx, env: "}" if tokens[idx].tag == "th" else "",
            "td_close": lambda tokens, idx, env: "",
            "text": lambda tokens, idx, env: escape_latex(tokens[idx].content),
            "softbreak": lambda tokens, idx, env: "\n",
            "hardbreak": lambda tokens, idx, env: "\\\\\n",
            "code_inline": lambda tokens, idx, env: f"\\texttt{{{escape_latex(tokens[idx].content)}}}",
            "html_inline": lambda tokens, idx, env: "",
            "math_inline": lambda tokens, idx, env: f"\\({tokens[idx].content}\\)",
            "math_inline_double": self.math_inline_double,
            "link_open": self.link_open,
            "image": self.image,
            "footnote_ref": self.footnote_ref,
        }
        for name, (opening, closing) in WRAPS.items():
            self.rules.setdefault(f"{name}_open", _constant(opening))
            self.rules.setdefault(f"{name}_close", _constant(closing))
        self._cell_index = 0
        self._footnotes: dict[int, str] = {}

    @classmethod
    def from_options(cls, options: RendererOptions) -> "LatexRenderer":
        """builds a LaTeX renderer; the stylesheet does not apply."""
        return cls(options.render_flags, options.toc_level, options.localization)

    def attach(self, md: MarkdownIt, extensions: ExtensionFlag) -> None:
        """picks up the math mode; there are no plugin rules to restore."""
        self.math_explicit = bool(extensions & ExtensionFlag.MATH_EXPLICIT)

    def release(self) -> None:
        """drops the rule table and collected footnotes."""
        self.rules = {}
        self._footnotes = {}
        self.released = True

    def render(
        self, tokens: Sequence[Token], options: Any, env: MutableMapping[str, Any]
    ) -> str:
        """
        renders a token stream as LaTeX.

        Footnote definitions are collected first and emitted as \\footnote
        at their reference. A positive toc_level prepends \\tableofcontents.
        """
        if self.released:
            raise RuntimeError("renderer used after release")

        body_tokens = self._collect_footnotes(tokens, env)
        parts: list[str] = []
        if self.toc_level > 0:
            parts.append(f"\\setcounter{{tocdepth}}{{{self.toc_level}}}\n\\tableofcontents\n\n")
        if any("caption" in t.meta for t in _walk(body_tokens)):
            parts.append(self._caption_names())
        parts.append(self._render_tokens(body_tokens, env))
        return "".join(parts)

    def _render_tokens(self, tokens: Sequence[Token], env: MutableMapping[str, Any]) -> str:
        result = ""
        for idx, token in enumerate(tokens):
            if token.type == "inline":
                result += self._render_tokens(token.children or [], env)
                continue
            rule = self.rules.get(token.type)
            if rule is not None:
                result += rule(tokens, idx, env)
            elif token.content:
                result += escape_latex(token.content)
        return result

    def _collect_footnotes(
        self, tokens: Sequence[Token], env: MutableMapping[str, Any]
    ) -> list[Token]:
        """renders footnote definitions and strips the footnote block."""
        body: list[Token] = []
        current: Optional[int] = None
        content: list[Token] = []
        in_block = False
        for token in tokens:
            if token.type == "footnote_block_open":
                in_block = True
            elif token.type == "footnote_block_close":
                in_block = False
            elif token.type == "footnote_open":
                current, content = token.meta.get("id", 0), []
            elif token.type == "footnote_close" and current is not None:
                text = self._render_tokens(content, env).strip()
                self._footnotes[current] = text
                current = None
            elif current is not None:
                if token.type != "footnote_anchor":
                    content.append(token)
            elif not in_block:
                body.append(token)
        return body

    def _caption_names(self) -> str:
        names = (
            ("figurename", self.localization.figure),
            ("tablename", self.localization.table),
            ("lstlistingname", self.localization.listing),
        )
        return "".join(f"\\renewcommand{{\\{cmd}}}{{{escape_latex(label)}}}\n" for cmd, label in names) + "\n"

    def paragraph_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        return ""

    def paragraph_close(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        return "\n" if tokens[idx].hidden else "\n\n"

    def heading_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        return f"\\{SECTIONS[int(tokens[idx].tag[1:])]}{{"

    def code_block(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        return f"\\begin{{verbatim}}\n{tokens[idx].content}\\end{{verbatim}}\n\n"

    def fence(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        token = tokens[idx]
        info = token.info.strip().split(maxsplit=1)
        options: list[str] = []
        if info and info[0].lower() in LISTINGS_LANGUAGES:
            options.append(f"language={info[0]}")
        if "caption" in token.meta:
            options.append(f"caption={{{escape_latex(token.meta['caption'])}}}")
        if not options:
            return self.code_block(tokens, idx, env)
        return (
            f"\\begin{{lstlisting}}[{','.join(options)}]\n"
            f"{token.content}\\end{{lstlisting}}\n\n"
        )

    def math_inline_double(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        if self.math_explicit:
            return f"\\[{tokens[idx].content}\\]"
        return f"\\({tokens[idx].content}\\)"

    def table_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        columns = []
        for token in tokens[idx + 1 :]:
            if token.type == "tr_close":
                break
            if token.type in ("th_open", "td_open"):
                style = str(token.attrGet("style") or "")
                columns.append({"left": "l", "center": "c", "right": "r"}.get(style.rpartition(":")[2], "l"))
        layout = "|" + "|".join(columns or ["l"]) + "|"
        opening = f"\\begin{{tabular}}{{{layout}}}\n\\hline\n"
        if "caption" in tokens[idx].meta:
            return "\\begin{table}[h]\n\\centering\n" + opening
        return opening

    def table_close(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        opening = next(
            (t for t in reversed(tokens[:idx]) if t.type == "table_open"), None
        )
        if opening is not None and "caption" in opening.meta:
            caption = escape_latex(opening.meta["caption"])
            return f"\\end{{tabular}}\n\\caption{{{caption}}}\n\\end{{table}}\n\n"
        return "\\end{tabular}\n\n"

    def tr_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        self._cell_index = 0
        return ""

    def cell_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        separator = " & " if self._cell_index else ""
        self._cell_index += 1
        return separator + ("\\textbf{" if tokens[idx].tag == "th" else "")

    def link_open(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        href = str(tokens[idx].attrGet("href") or "")
        return f"\\href{{{escape_url(href)}}}{{"

    def image(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        token = tokens[idx]
        graphic = f"\\includegraphics{{{escape_url(str(token.attrGet('src') or ''))}}}"
        if "caption" not in token.meta:
            return graphic
        caption = escape_latex(token.meta["caption"])
        return f"\\begin{{figure}}[h]\n\\centering\n{graphic}\n\\caption{{{caption}}}\n\\end{{figure}}\n"

    def footnote_ref(self, tokens: Sequence[Token], idx: int, env: MutableMapping[str, Any]) -> str:
        return f"\\footnote{{{self._footnotes.get(tokens[idx].meta.get('id', 0), '')}}}"


def _constant(text: str) -> Rule:
    return lambda tokens, idx, env: text


def _walk(tokens: Sequence[Token]) -> list[Token]:
    flat: list[Token] = []
    for token in tokens:
        flat.append(token)
        if token.children:
            flat.extend(_walk(token.children))
    return flat
