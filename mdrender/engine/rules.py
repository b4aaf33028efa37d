"""markdown-it rules for the extensions CommonMark does not cover."""

import re
from typing import Optional

from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token

QUOTE_PATTERN = re.compile(r'"([^"\n]+)"')
TABLE_CAPTION_PATTERN = re.compile(r"^Table:\s*(.+)$", re.DOTALL)


def underline(state: StateCore) -> None:
    """retags single-underscore emphasis as underline spans."""
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        for child in block.children:
            if child.type in ("em_open", "em_close") and child.markup == "_":
                child.type = "underline_open" if child.nesting == 1 else "underline_close"
                child.tag = "u"


def quote(state: StateCore) -> None:
    """splits "quoted" text spans into quote_open/text/quote_close tokens."""
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        children: list[Token] = []
        for child in block.children:
            if child.type == "text" and '"' in child.content:
                children.extend(_split_quotes(child))
            else:
                children.append(child)
        block.children = children


def _split_quotes(token: Token) -> list[Token]:
    parts: list[Token] = []
    last = 0
    for match in QUOTE_PATTERN.finditer(token.content):
        if match.start() > last:
            parts.append(_text(token.content[last : match.start()], token.level))
        parts.append(Token("quote_open", "q", 1, markup='"', level=token.level))
        parts.append(_text(match.group(1), token.level + 1))
        parts.append(Token("quote_close", "q", -1, markup='"', level=token.level))
        last = match.end()
    if last < len(token.content):
        parts.append(_text(token.content[last:], token.level))
    return parts


def _text(content: str, level: int) -> Token:
    return Token("text", "", 0, content=content, level=level)


def superscript(state: StateInline, silent: bool) -> bool:
    """parses super^script and super^(long script)."""
    start = state.pos
    maximum = state.posMax
    if state.src[start] != "^" or start + 1 >= maximum:
        return False

    if state.src[start + 1] == "(":
        content_start = start + 2
        content_end = state.src.find(")", content_start, maximum)
        if content_end == -1:
            return False
        next_pos = content_end + 1
    else:
        content_start = start + 1
        content_end = content_start
        while (
            content_end < maximum
            and not state.src[content_end].isspace()
            and state.src[content_end] != "^"
        ):
            content_end += 1
        next_pos = content_end

    if content_end == content_start:
        return False

    if not silent:
        token = state.push("sup_open", "sup", 1)
        token.markup = "^"
        old_pos, old_max = state.pos, state.posMax
        state.pos, state.posMax = content_start, content_end
        state.md.inline.tokenize(state)
        state.pos, state.posMax = old_pos, old_max
        token = state.push("sup_close", "sup", -1)
        token.markup = "^"

    state.pos = next_pos
    return True


def intra_emphasis(state: StateInline, silent: bool) -> bool:
    """emits emphasis markers between two alphanumerics as literal text."""
    src = state.src
    start = state.pos
    marker = src[start]
    if marker not in "*_" or start == 0 or not src[start - 1].isalnum():
        return False

    end = start
    while end < state.posMax and src[end] == marker:
        end += 1
    if end >= state.posMax or not src[end].isalnum():
        return False

    if not silent:
        state.pending += src[start:end]
    state.pos = end
    return True


def lax_heading(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """accepts ATX headings with no space after the hashes (#Title)."""
    # pylint: disable=invalid-name,unused-argument
    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    if pos >= maximum or state.src[pos] != "#":
        return False

    level = 0
    while pos < maximum and state.src[pos] == "#" and level <= 6:
        level += 1
        pos += 1

    # spaced and empty headings are left to the stock heading rule
    if level > 6 or pos >= maximum or state.src[pos] in " \t":
        return False

    if silent:
        return True

    content = state.src[pos:maximum].rstrip().rstrip("#").rstrip()
    state.line = startLine + 1

    token = state.push("heading_open", f"h{level}", 1)
    token.markup = "#" * level
    token.map = [startLine, state.line]

    token = state.push("inline", "", 0)
    token.content = content
    token.map = [startLine, state.line]
    token.children = []

    token = state.push("heading_close", f"h{level}", -1)
    token.markup = "#" * level
    return True


def captions(state: StateCore) -> None:
    """
    numbers captioned figures, listings and tables.

    Sets token.meta["caption"] and token.meta["number"] on images with a
    title, fences whose info string has text after the language, and tables
    followed by a "Table: caption" paragraph (that paragraph is dropped).
    """
    counters = {"figure": 0, "listing": 0, "table": 0}
    dropped: set[int] = set()
    table_open: Optional[Token] = None
    tokens = state.tokens

    for idx, token in enumerate(tokens):
        if token.type == "fence":
            info = token.info.strip().split(maxsplit=1)
            if len(info) == 2:
                _number(token, "listing", info[1], counters)
        elif token.type == "inline" and token.children:
            for child in token.children:
                title = child.attrGet("title") if child.type == "image" else None
                if title:
                    _number(child, "figure", str(title), counters)
        elif token.type == "table_open":
            table_open = token
        elif token.type == "table_close" and table_open is not None:
            caption = _table_caption(tokens, idx)
            if caption is not None:
                _number(table_open, "table", caption, counters)
                dropped.update((idx + 1, idx + 2, idx + 3))
            table_open = None

    if dropped:
        state.tokens = [t for i, t in enumerate(tokens) if i not in dropped]


def _number(token: Token, kind: str, caption: str, counters: dict[str, int]) -> None:
    counters[kind] += 1
    token.meta["kind"] = kind
    token.meta["number"] = counters[kind]
    token.meta["caption"] = caption.strip()


def _table_caption(tokens: list[Token], close_idx: int) -> Optional[str]:
    following = tokens[close_idx + 1 : close_idx + 4]
    if [t.type for t in following] != ["paragraph_open", "inline", "paragraph_close"]:
        return None
    match = TABLE_CAPTION_PATTERN.match(following[1].content.strip())
    return match.group(1) if match else None


def drop_front_matter(state: StateCore) -> None:
    """removes front matter tokens so nothing hidden precedes the first block."""
    state.tokens = [t for t in state.tokens if t.type != "front_matter"]
