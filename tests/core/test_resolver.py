"""tests for the flag resolver."""

import pytest

from mdrender.core.config import DEFAULT_EXTENSIONS, DEFAULT_RENDER_FLAGS, ResolvedConfig
from mdrender.core.flags import EXT_BLOCK, EXT_SPAN, ExtensionFlag, Namespace, RenderFlag
from mdrender.core.resolver import FlagResolver, parse_token, resolve_flags
from mdrender.errors import UnknownOptionError

NONE = ExtensionFlag(0)
NO_RENDER = RenderFlag(0)


def test_last_token_wins_when_disabling() -> None:
    """tables then no-tables leaves tables off."""
    masks = resolve_flags(["tables", "no-tables"], NONE, NO_RENDER)

    assert not masks.extensions & ExtensionFlag.TABLES


def test_last_token_wins_when_enabling() -> None:
    """no-tables then tables leaves tables on."""
    masks = resolve_flags(["no-tables", "tables"], NONE, NO_RENDER)

    assert masks.extensions & ExtensionFlag.TABLES


def test_category_then_individual_override() -> None:
    """all-block followed by no-tables keeps the rest of the block category."""
    masks = resolve_flags(["all-block", "no-tables"], NONE, NO_RENDER)

    assert masks.extensions == EXT_BLOCK & ~ExtensionFlag.TABLES


def test_individual_then_category_override() -> None:
    """a later category toggle overrides an earlier individual flag."""
    masks = resolve_flags(["tables", "no-all-block"], DEFAULT_EXTENSIONS, NO_RENDER)

    assert not masks.extensions & EXT_BLOCK


def test_category_toggle_leaves_other_categories() -> None:
    """no-all-span only clears span bits."""
    masks = resolve_flags(["no-all-span"], DEFAULT_EXTENSIONS, NO_RENDER)

    assert masks.extensions == DEFAULT_EXTENSIONS & ~EXT_SPAN


def test_negative_category_is_plain_set() -> None:
    """all-negative sets disable-indented-code like any other category."""
    masks = resolve_flags(["all-negative"], NONE, NO_RENDER)

    assert masks.extensions == ExtensionFlag.DISABLE_INDENTED_CODE


def test_render_flags_resolve_into_render_mask() -> None:
    """render flag tokens touch only the render bitmask."""
    masks = resolve_flags(["escape", "no-mermaid"], NONE, DEFAULT_RENDER_FLAGS)

    assert masks.extensions == NONE
    assert masks.render_flags & RenderFlag.ESCAPE
    assert not masks.render_flags & RenderFlag.MERMAID


def test_resolution_is_idempotent() -> None:
    """applying a sequence twice equals applying it once."""
    tokens = ["all-block", "no-tables", "escape", "no-all-span", "quote"]
    once = resolve_flags(tokens, DEFAULT_EXTENSIONS, DEFAULT_RENDER_FLAGS)
    twice = resolve_flags(tokens, once.extensions, once.render_flags)

    assert once == twice


def test_bare_category_name_is_unknown() -> None:
    """category names need the all- prefix."""
    with pytest.raises(UnknownOptionError) as exc_info:
        resolve_flags(["block"], NONE, NO_RENDER)

    assert exc_info.value.token == "block"


def test_unknown_token_reports_token() -> None:
    """unknown tokens raise with the offending name."""
    with pytest.raises(UnknownOptionError, match="not-a-real-flag"):
        resolve_flags(["tables", "not-a-real-flag"], NONE, NO_RENDER)


def test_parse_token_negation() -> None:
    """no-NAME yields a clearing effect."""
    effect = parse_token("no-escape")

    assert effect.namespace is Namespace.RENDER
    assert effect.mask == int(RenderFlag.ESCAPE)
    assert effect.enable is False


def test_apply_to_updates_config() -> None:
    """FlagResolver stores the resolved masks in the config."""
    config = ResolvedConfig()

    FlagResolver().apply_to(config, ["no-all-block", "hard-wrap"])

    assert not config.extensions & EXT_BLOCK
    assert config.render_flags & RenderFlag.HARD_WRAP


def test_apply_to_leaves_config_untouched_on_error() -> None:
    """an unknown token leaves no half-applied masks behind."""
    config = ResolvedConfig()

    with pytest.raises(UnknownOptionError):
        FlagResolver().apply_to(config, ["no-all-block", "not-a-real-flag"])

    assert config.extensions == DEFAULT_EXTENSIONS
    assert config.render_flags == DEFAULT_RENDER_FLAGS
