"""tests for configuration models."""

import dataclasses

import pytest

from mdrender.core.config import (
    DEF_IUNIT,
    DEF_MAX_NESTING,
    DEF_OUNIT,
    DEFAULT_EXTENSIONS,
    DEFAULT_LOCALIZATION,
    DEFAULT_RENDER_FLAGS,
    InjectionContent,
    RendererKind,
    ResolvedConfig,
)
from mdrender.core.flags import ExtensionFlag, RenderFlag
from mdrender.errors import ConfigError


def test_resolved_config_defaults() -> None:
    """ResolvedConfig starts from the documented defaults."""
    config = ResolvedConfig()

    assert config.extensions == DEFAULT_EXTENSIONS
    assert config.render_flags == DEFAULT_RENDER_FLAGS
    assert config.renderer is RendererKind.HTML
    assert config.toc_level == 0
    assert config.max_nesting == DEF_MAX_NESTING == 16
    assert config.input_unit == DEF_IUNIT == 1024
    assert config.output_unit == DEF_OUNIT == 64
    assert config.show_time is False


def test_default_extensions_exclude_negative_flags() -> None:
    """indented code stays enabled by default."""
    assert not DEFAULT_EXTENSIONS & ExtensionFlag.DISABLE_INDENTED_CODE


def test_freeze_copies_values() -> None:
    """freeze returns an immutable snapshot."""
    config = ResolvedConfig(renderer=RendererKind.LATEX, toc_level=3, stylesheet="a.css")

    frozen = config.freeze()
    config.toc_level = 1

    assert frozen.renderer is RendererKind.LATEX
    assert frozen.toc_level == 3
    assert frozen.stylesheet == "a.css"
    with pytest.raises(dataclasses.FrozenInstanceError):
        frozen.toc_level = 2  # type: ignore[misc]


def test_freeze_rejects_negative_toc_level() -> None:
    """negative toc levels are invalid."""
    with pytest.raises(ConfigError, match="toc level"):
        ResolvedConfig(toc_level=-1).freeze()


@pytest.mark.parametrize("field", ["max_nesting", "input_unit", "output_unit"])
def test_freeze_rejects_non_positive_sizes(field: str) -> None:
    """nesting depth and buffer units must be positive."""
    config = ResolvedConfig()
    setattr(config, field, 0)

    with pytest.raises(ConfigError, match=field.replace("_", "-")):
        config.freeze()


def test_freeze_keeps_flag_types() -> None:
    """frozen masks are flag enums."""
    frozen = ResolvedConfig().freeze()

    assert isinstance(frozen.extensions, ExtensionFlag)
    assert isinstance(frozen.render_flags, RenderFlag)


def test_localization_defaults() -> None:
    """default caption labels are English."""
    assert DEFAULT_LOCALIZATION.figure == "Figure"
    assert DEFAULT_LOCALIZATION.listing == "Listing"
    assert DEFAULT_LOCALIZATION.table == "Table"


def test_injection_content_is_empty() -> None:
    """is_empty is true only without header and footer."""
    assert InjectionContent().is_empty
    assert not InjectionContent(header="<x>").is_empty
    assert not InjectionContent(footer="<y>").is_empty
