"""renderer dispatch: one renderer kind per conversion."""

from typing import Optional

# imported for registration side effects
import mdrender.renderers.html  # noqa: F401  # pylint: disable=unused-import
import mdrender.renderers.latex  # noqa: F401  # pylint: disable=unused-import
import mdrender.renderers.toc  # noqa: F401  # pylint: disable=unused-import
from mdrender.core.config import DEFAULT_LOCALIZATION, Localization, RendererKind
from mdrender.core.flags import RenderFlag
from mdrender.errors import AllocationError
from mdrender.renderers import RendererHandle, RendererOptions, RendererRegistry, registry


def create_renderer(
    kind: RendererKind,
    render_flags: RenderFlag,
    toc_level: int,
    localization: Localization = DEFAULT_LOCALIZATION,
    stylesheet: Optional[str] = None,
    target_registry: RendererRegistry = registry,
) -> RendererHandle:
    """
    builds the renderer for a kind together with its teardown.

    Args:
        kind: renderer kind fixed at configuration time
        render_flags: render bitmask; only the HTML renderer interprets it
        toc_level: deepest heading level given a TOC anchor or entry
        localization: caption labels
        stylesheet: stylesheet path linked by the HTML renderer
        target_registry: registry to dispatch through (defaults to global)

    Returns:
        handle whose teardown() must be called exactly once

    Raises:
        ValueError: if kind has no registered renderer
        AllocationError: if the renderer cannot be constructed for lack of memory
    """
    options = RendererOptions(
        render_flags=RenderFlag(render_flags),
        toc_level=toc_level,
        localization=localization,
        stylesheet=stylesheet,
    )
    try:
        return target_registry.create(kind, options)
    except MemoryError as e:
        raise AllocationError(f"cannot allocate {kind.value} renderer") from e
