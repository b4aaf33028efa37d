"""extension and render flag registry."""

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, TypeVar, Union

CATEGORY_PREFIX = "all-"
NEGATIVE_PREFIX = "no-"


class ExtensionFlag(enum.IntFlag):
    """Markdown grammar features, numbered like the Hoedown/SciDown extensions."""

    TABLES = 1 << 0
    FENCED_CODE = 1 << 1
    FOOTNOTES = 1 << 2

    AUTOLINK = 1 << 3
    STRIKETHROUGH = 1 << 4
    UNDERLINE = 1 << 5
    HIGHLIGHT = 1 << 6
    QUOTE = 1 << 7
    SUPERSCRIPT = 1 << 8
    MATH = 1 << 9

    NO_INTRA_EMPHASIS = 1 << 11
    SPACE_HEADERS = 1 << 12
    MATH_EXPLICIT = 1 << 13
    DISABLE_INDENTED_CODE = 1 << 14
    SCIDOWN = 1 << 15


class RenderFlag(enum.IntFlag):
    """renderer output switches."""

    SKIP_HTML = 1 << 0
    ESCAPE = 1 << 1
    HARD_WRAP = 1 << 2
    USE_XHTML = 1 << 3
    MERMAID = 1 << 4
    GNUPLOT = 1 << 5
    CSS = 1 << 6


EXT_BLOCK = ExtensionFlag.TABLES | ExtensionFlag.FENCED_CODE | ExtensionFlag.FOOTNOTES
EXT_SPAN = (
    ExtensionFlag.AUTOLINK
    | ExtensionFlag.STRIKETHROUGH
    | ExtensionFlag.UNDERLINE
    | ExtensionFlag.HIGHLIGHT
    | ExtensionFlag.QUOTE
    | ExtensionFlag.SUPERSCRIPT
    | ExtensionFlag.MATH
)
EXT_FLAGS = (
    ExtensionFlag.NO_INTRA_EMPHASIS
    | ExtensionFlag.SPACE_HEADERS
    | ExtensionFlag.MATH_EXPLICIT
    | ExtensionFlag.SCIDOWN
)
EXT_NEGATIVE = ExtensionFlag.DISABLE_INDENTED_CODE


class Namespace(enum.Enum):
    """which bitmask a flag descriptor belongs to."""

    EXTENSION = "extension"
    RENDER = "render"


@dataclass(frozen=True)
class FlagDescriptor:
    """one recognized option and the bit it controls."""

    flag: Union[ExtensionFlag, RenderFlag]
    option_name: str
    description: str

    @property
    def namespace(self) -> Namespace:
        """returns the bitmask this flag is stored in."""
        if isinstance(self.flag, ExtensionFlag):
            return Namespace.EXTENSION
        return Namespace.RENDER


@dataclass(frozen=True)
class CategoryDescriptor:
    """a named group of extension flags toggled together with all-/no-all-."""

    flags: ExtensionFlag
    option_name: str
    label: str


CATEGORIES: tuple[CategoryDescriptor, ...] = (
    CategoryDescriptor(EXT_BLOCK, "block", "Block extensions"),
    CategoryDescriptor(EXT_SPAN, "span", "Span extensions"),
    CategoryDescriptor(EXT_FLAGS, "flags", "Other flags"),
    CategoryDescriptor(EXT_NEGATIVE, "negative", "Negative flags"),
)

EXTENSIONS: tuple[FlagDescriptor, ...] = (
    FlagDescriptor(ExtensionFlag.TABLES, "tables", "Parse PHP-Markdown style tables."),
    FlagDescriptor(ExtensionFlag.FENCED_CODE, "fenced-code", "Parse fenced code blocks."),
    FlagDescriptor(ExtensionFlag.FOOTNOTES, "footnotes", "Parse footnotes."),
    FlagDescriptor(
        ExtensionFlag.AUTOLINK, "autolink", "Automatically turn safe URLs into links."
    ),
    FlagDescriptor(
        ExtensionFlag.STRIKETHROUGH, "strikethrough", "Parse ~~stikethrough~~ spans."
    ),
    FlagDescriptor(
        ExtensionFlag.UNDERLINE, "underline", "Parse _underline_ instead of emphasis."
    ),
    FlagDescriptor(ExtensionFlag.HIGHLIGHT, "highlight", "Parse ==highlight== spans."),
    FlagDescriptor(ExtensionFlag.QUOTE, "quote", 'Render "quotes" as <q>quotes</q>.'),
    FlagDescriptor(ExtensionFlag.SUPERSCRIPT, "superscript", "Parse super^script."),
    FlagDescriptor(
        ExtensionFlag.MATH, "math", "Parse TeX $$math$$ syntax, Kramdown style."
    ),
    FlagDescriptor(
        ExtensionFlag.NO_INTRA_EMPHASIS,
        "disable-intra-emphasis",
        "Disable emphasis_between_words.",
    ),
    FlagDescriptor(
        ExtensionFlag.SPACE_HEADERS,
        "space-headers",
        "Require a space after '#' in headers.",
    ),
    FlagDescriptor(
        ExtensionFlag.MATH_EXPLICIT,
        "math-explicit",
        "Instead of guessing by context, parse $inline math$ and "
        "$$always block math$$ (requires --math).",
    ),
    FlagDescriptor(ExtensionFlag.SCIDOWN, "scidown", "SciDown Extension"),
    FlagDescriptor(
        ExtensionFlag.DISABLE_INDENTED_CODE,
        "disable-indented-code",
        "Don't parse indented code blocks.",
    ),
)

RENDER_FLAGS: tuple[FlagDescriptor, ...] = (
    FlagDescriptor(RenderFlag.SKIP_HTML, "skip-html", "Strip all HTML tags."),
    FlagDescriptor(RenderFlag.ESCAPE, "escape", "Escape all HTML."),
    FlagDescriptor(RenderFlag.HARD_WRAP, "hard-wrap", "Render each linebreak as <br>."),
    FlagDescriptor(RenderFlag.USE_XHTML, "xhtml", "Render XHTML."),
    FlagDescriptor(RenderFlag.MERMAID, "mermaid", "Render mermaid diagrams."),
    FlagDescriptor(RenderFlag.GNUPLOT, "gnuplot", "Render gnuplot plot."),
    FlagDescriptor(RenderFlag.CSS, "style", "Set specified style-sheet."),
)


D = TypeVar("D", FlagDescriptor, CategoryDescriptor)


class FlagRegistry:
    """read-only lookup tables over the flag and category descriptors."""

    def __init__(
        self,
        extensions: tuple[FlagDescriptor, ...] = EXTENSIONS,
        render_flags: tuple[FlagDescriptor, ...] = RENDER_FLAGS,
        categories: tuple[CategoryDescriptor, ...] = CATEGORIES,
    ) -> None:
        self.extensions = extensions
        self.render_flags = render_flags
        self.categories = categories
        self._extensions = _index(extensions, "extension")
        self._render_flags = _index(render_flags, "render")
        self._categories = _index(categories, "category")

    def find_flag(self, option_name: str) -> Optional[FlagDescriptor]:
        """
        looks up a flag by exact option name, extensions first.

        Args:
            option_name: option name without leading dashes

        Returns:
            matching descriptor, or None when the name is not registered
        """
        found = self._extensions.get(option_name)
        if found is None:
            found = self._render_flags.get(option_name)
        return found

    def find_category(self, option_name: str) -> Optional[CategoryDescriptor]:
        """looks up a category by its bare option name (without all-)."""
        return self._categories.get(option_name)

    def category_of(self, descriptor: FlagDescriptor) -> Optional[CategoryDescriptor]:
        """returns the category owning an extension flag, if any."""
        for category in self.categories:
            if isinstance(descriptor.flag, ExtensionFlag) and descriptor.flag & category.flags:
                return category
        return None

    def members(self, category: CategoryDescriptor) -> list[FlagDescriptor]:
        """returns extension descriptors whose bit lies in the category."""
        return [ext for ext in self.extensions if ext.flag & category.flags]


def _index(items: tuple[D, ...], namespace: str) -> Mapping[str, D]:
    """builds an immutable name index, rejecting duplicate option names."""
    table: dict[str, D] = {}
    for item in items:
        if item.option_name in table:
            raise ValueError(
                f"duplicate {namespace} option name: {item.option_name!r}"
            )
        table[item.option_name] = item
    return MappingProxyType(table)


# shared, never mutated
DEFAULT_REGISTRY = FlagRegistry()
