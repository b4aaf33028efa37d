"""resolves ordered option tokens into extension and render bitmasks."""

import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from mdrender.core.config import ResolvedConfig
from mdrender.core.flags import (
    CATEGORY_PREFIX,
    DEFAULT_REGISTRY,
    NEGATIVE_PREFIX,
    ExtensionFlag,
    FlagRegistry,
    Namespace,
    RenderFlag,
)
from mdrender.errors import UnknownOptionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlagMasks:
    """the pair of bitmasks produced by resolution."""

    extensions: ExtensionFlag
    render_flags: RenderFlag


@dataclass(frozen=True)
class FlagEffect:
    """a single set-or-clear transform over one of the two bitmasks."""

    token: str
    namespace: Namespace
    mask: int
    enable: bool

    def apply(self, masks: FlagMasks) -> FlagMasks:
        """returns masks with this effect's bits set or cleared."""
        if self.namespace is Namespace.EXTENSION:
            return FlagMasks(
                extensions=ExtensionFlag(_toggle(masks.extensions, self.mask, self.enable)),
                render_flags=masks.render_flags,
            )
        return FlagMasks(
            extensions=masks.extensions,
            render_flags=RenderFlag(_toggle(masks.render_flags, self.mask, self.enable)),
        )


def _toggle(value: int, mask: int, enable: bool) -> int:
    return value | mask if enable else value & ~mask


def parse_token(token: str, registry: FlagRegistry = DEFAULT_REGISTRY) -> FlagEffect:
    """
    turns one option token into the effect it stands for.

    Category toggles (all-NAME / no-all-NAME) are tried first, then negated
    flags (no-NAME), then plain flags.

    Args:
        token: option name with leading dashes already stripped
        registry: flag registry to resolve names against

    Returns:
        the effect the token applies

    Raises:
        UnknownOptionError: if the token names nothing in the registry
    """
    for enable, prefix in ((True, CATEGORY_PREFIX), (False, NEGATIVE_PREFIX + CATEGORY_PREFIX)):
        if token.startswith(prefix):
            category = registry.find_category(token[len(prefix) :])
            if category is not None:
                return FlagEffect(token, Namespace.EXTENSION, int(category.flags), enable)

    if token.startswith(NEGATIVE_PREFIX):
        descriptor = registry.find_flag(token[len(NEGATIVE_PREFIX) :])
        if descriptor is not None:
            return FlagEffect(token, descriptor.namespace, int(descriptor.flag), False)

    descriptor = registry.find_flag(token)
    if descriptor is not None:
        return FlagEffect(token, descriptor.namespace, int(descriptor.flag), True)

    raise UnknownOptionError(token)


def resolve_flags(
    tokens: Iterable[str],
    extensions: ExtensionFlag,
    render_flags: RenderFlag,
    registry: FlagRegistry = DEFAULT_REGISTRY,
) -> FlagMasks:
    """
    folds option tokens over the defaults, last token winning per bit.

    Every token is parsed before any effect is applied, so an unknown token
    fails the whole call without a half-applied result.

    Args:
        tokens: option tokens in command-line order
        extensions: starting extension bitmask
        render_flags: starting render bitmask
        registry: flag registry to resolve names against

    Returns:
        final bitmasks

    Raises:
        UnknownOptionError: on the first token the registry does not know
    """
    effects = [parse_token(token, registry) for token in tokens]
    initial = FlagMasks(extensions=ExtensionFlag(extensions), render_flags=RenderFlag(render_flags))
    return functools.reduce(lambda masks, effect: effect.apply(masks), effects, initial)


class FlagResolver:  # pylint: disable=too-few-public-methods
    """applies option tokens to a ResolvedConfig."""

    def __init__(self, registry: FlagRegistry = DEFAULT_REGISTRY) -> None:
        self.registry = registry

    def apply_to(self, config: ResolvedConfig, tokens: Iterable[str]) -> ResolvedConfig:
        """
        resolves tokens against the config's current masks and stores the result.

        Args:
            config: accumulator whose masks serve as defaults
            tokens: option tokens in command-line order

        Returns:
            the same config, updated in place

        Raises:
            UnknownOptionError: if any token is unrecognized; config is untouched
        """
        tokens = list(tokens)
        masks = resolve_flags(tokens, config.extensions, config.render_flags, self.registry)
        config.extensions = masks.extensions
        config.render_flags = masks.render_flags
        logger.debug(
            "resolved %d flag option(s): extensions=%#06x render=%#04x",
            len(tokens),
            int(masks.extensions),
            int(masks.render_flags),
        )
        return config
