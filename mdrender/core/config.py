"""configuration models for a single conversion."""

import enum
from dataclasses import dataclass, field
from typing import Optional

from mdrender.core.flags import EXT_BLOCK, EXT_FLAGS, EXT_SPAN, ExtensionFlag, RenderFlag
from mdrender.errors import ConfigError

DEF_IUNIT = 1024
DEF_OUNIT = 64
DEF_MAX_NESTING = 16

DEFAULT_EXTENSIONS = EXT_BLOCK | EXT_SPAN | EXT_FLAGS
DEFAULT_RENDER_FLAGS = RenderFlag.MERMAID | RenderFlag.GNUPLOT | RenderFlag.CSS


class RendererKind(enum.Enum):
    """output formats; exactly one is active per conversion."""

    HTML = "html"
    HTML_TOC = "html-toc"
    LATEX = "latex"


@dataclass(frozen=True)
class Localization:
    """human-readable caption labels handed to renderers."""

    figure: str = "Figure"
    listing: str = "Listing"
    table: str = "Table"


DEFAULT_LOCALIZATION = Localization()


@dataclass(frozen=True)
class InjectionContent:
    """optional text spliced before and after the rendered body."""

    header: Optional[str] = None
    footer: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """true when neither header nor footer carries content."""
        return not self.header and not self.footer


@dataclass(frozen=True)
class ConversionConfig:
    """validated, immutable configuration consumed by the pipeline."""

    extensions: ExtensionFlag
    render_flags: RenderFlag
    renderer: RendererKind
    toc_level: int
    max_nesting: int
    input_unit: int
    output_unit: int
    show_time: bool
    stylesheet: Optional[str] = None


@dataclass
class ResolvedConfig:  # pylint: disable=too-many-instance-attributes
    """
    mutable accumulator filled in while options are consumed.

    One instance per invocation; call freeze() once every option has been
    applied to get the ConversionConfig the pipeline runs on.
    """

    extensions: ExtensionFlag = field(default=DEFAULT_EXTENSIONS)
    render_flags: RenderFlag = field(default=DEFAULT_RENDER_FLAGS)
    renderer: RendererKind = RendererKind.HTML
    toc_level: int = 0
    max_nesting: int = DEF_MAX_NESTING
    input_unit: int = DEF_IUNIT
    output_unit: int = DEF_OUNIT
    show_time: bool = False
    stylesheet: Optional[str] = None

    def freeze(self) -> ConversionConfig:
        """
        validates the accumulated values and returns an immutable copy.

        Returns:
            frozen configuration

        Raises:
            ConfigError: if a numeric setting is out of range
        """
        if self.toc_level < 0:
            raise ConfigError(f"toc level must be non-negative, got {self.toc_level}")
        for name in ("max_nesting", "input_unit", "output_unit"):
            value = getattr(self, name)
            if value <= 0:
                label = name.replace("_", "-")
                raise ConfigError(f"{label} must be a positive integer, got {value}")

        return ConversionConfig(
            extensions=ExtensionFlag(self.extensions),
            render_flags=RenderFlag(self.render_flags),
            renderer=self.renderer,
            toc_level=self.toc_level,
            max_nesting=self.max_nesting,
            input_unit=self.input_unit,
            output_unit=self.output_unit,
            show_time=self.show_time,
            stylesheet=self.stylesheet,
        )
