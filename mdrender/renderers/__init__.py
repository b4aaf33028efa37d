"""renderer registry and handle types."""

import logging
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Optional, Protocol, TypeVar

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdrender.core.config import Localization, RendererKind
from mdrender.core.flags import ExtensionFlag, RenderFlag

logger = logging.getLogger(__name__)


class MarkdownRenderer(Protocol):
    """what the engine and the pipeline need from a renderer."""

    __output__: ClassVar[str]

    def render(
        self, tokens: Sequence[Token], options: Any, env: MutableMapping[str, Any]
    ) -> str:
        """renders a token stream to text."""

    def attach(self, md: MarkdownIt, extensions: ExtensionFlag) -> None:
        """called once the parser has applied the plugins for extensions."""

    def release(self) -> None:
        """frees whatever the renderer acquired."""


@dataclass(frozen=True)
class RendererOptions:
    """the full parameter set; each kind picks the subset it needs."""

    render_flags: RenderFlag
    toc_level: int
    localization: Localization
    stylesheet: Optional[str] = None


class RendererFactory(Protocol):  # pylint: disable=too-few-public-methods
    """renderer class constructible from RendererOptions."""

    kind: RendererKind

    @classmethod
    def from_options(cls, options: RendererOptions) -> MarkdownRenderer:
        """builds a renderer from the parameters it understands."""


@dataclass
class RendererHandle:
    """a renderer paired with its teardown; teardown runs at most once."""

    kind: RendererKind
    renderer: MarkdownRenderer
    release: Callable[[], None]
    torn_down: bool = field(default=False, init=False)

    def teardown(self) -> None:
        """
        releases the renderer.

        Raises:
            RuntimeError: if the handle was already torn down
        """
        if self.torn_down:
            raise RuntimeError(f"{self.kind.value} renderer already torn down")
        self.torn_down = True
        self.release()
        logger.debug("released %s renderer", self.kind.value)


class RendererRegistry:
    """maps each renderer kind to the class that builds it."""

    def __init__(self) -> None:
        self._factories: dict[RendererKind, RendererFactory] = {}

    def register(self, kind: RendererKind, factory: RendererFactory) -> None:
        """registers a renderer class for a kind; one class per kind."""
        if kind in self._factories:
            raise ValueError(f"renderer already registered for {kind.value}")
        self._factories[kind] = factory

    def kinds(self) -> list[RendererKind]:
        """returns the registered kinds."""
        return list(self._factories)

    def create(self, kind: RendererKind, options: RendererOptions) -> RendererHandle:
        """
        builds the renderer for kind and pairs it with its teardown.

        Args:
            kind: renderer kind fixed at configuration time
            options: full parameter set

        Returns:
            handle owning the new renderer

        Raises:
            ValueError: if no renderer is registered for kind
        """
        factory = self._factories.get(kind)
        if factory is None:
            raise ValueError(f"no renderer registered for {kind!r}")
        instance = factory.from_options(options)
        logger.debug("created %s renderer", kind.value)
        return RendererHandle(kind=kind, renderer=instance, release=instance.release)


# global registry
registry = RendererRegistry()

T = TypeVar("T")


def renderer(
    kind: RendererKind, target_registry: RendererRegistry = registry
) -> Callable[[type[T]], type[T]]:
    """
    decorator to register a renderer class.

    Args:
        kind: renderer kind the class implements
        target_registry: registry to register with (defaults to global)

    Returns:
        decorator function
    """

    def decorator(cls: type[T]) -> type[T]:
        cls.kind = kind  # type: ignore[attr-defined]
        target_registry.register(kind, cls)  # type: ignore[arg-type]
        return cls

    return decorator
