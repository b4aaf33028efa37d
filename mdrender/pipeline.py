"""single-pass conversion pipeline."""

import enum
import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Callable, Optional

from mdrender.buffers import Buffer
from mdrender.core.config import (
    DEFAULT_LOCALIZATION,
    ConversionConfig,
    InjectionContent,
    Localization,
)
from mdrender.core.flags import ExtensionFlag
from mdrender.dispatch import create_renderer
from mdrender.engine.document import Document
from mdrender.errors import AllocationError, TimingUnavailable
from mdrender.injection import compose_injection
from mdrender.renderers import RendererHandle

logger = logging.getLogger(__name__)

DocumentFactory = Callable[[Any, ExtensionFlag, InjectionContent, int], Document]
RendererFactory = Callable[..., RendererHandle]


class PipelineState(enum.Enum):
    """how far a conversion got; any state past CONFIGURED owes cleanup."""

    CONFIGURED = "configured"
    RENDERER_BUILT = "renderer-built"
    INJECTION_BUILT = "injection-built"
    RENDERED = "rendered"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class ConversionResult:
    """rendered bytes plus the optional timing side channel."""

    output: bytes
    size: int
    elapsed: Optional[float] = None
    timing_error: Optional[TimingUnavailable] = None


class Conversion:
    """
    one conversion of Markdown bytes under a frozen configuration.

    Every acquired resource is registered for release as soon as it exists,
    so failures at any step leave nothing behind. On the way out the input
    buffer goes first, then the document, the output buffer and the renderer.
    """

    def __init__(
        self,
        config: ConversionConfig,
        localization: Localization = DEFAULT_LOCALIZATION,
        document_factory: DocumentFactory = Document,
        renderer_factory: RendererFactory = create_renderer,
        clock: Callable[[], float] = time.process_time,
    ) -> None:
        self.config = config
        self.localization = localization
        self.document_factory = document_factory
        self.renderer_factory = renderer_factory
        self.clock = clock
        self.state = PipelineState.CONFIGURED

    def run(self, data: bytes) -> ConversionResult:
        """
        converts data to the configured output format.

        Args:
            data: Markdown source bytes

        Returns:
            conversion result; a timing failure is reported in timing_error

        Raises:
            AllocationError: if a buffer, renderer or document cannot be allocated
            RenderError: if the engine fails
        """
        config = self.config
        elapsed: Optional[float] = None
        timing_error: Optional[TimingUnavailable] = None

        with ExitStack() as stack:
            input_buffer = stack.enter_context(Buffer(config.input_unit))
            input_buffer.set(data)

            handle = self.renderer_factory(
                config.renderer,
                config.render_flags,
                config.toc_level,
                self.localization,
                config.stylesheet,
            )
            stack.callback(handle.teardown)
            self.state = PipelineState.RENDERER_BUILT

            injection = compose_injection(config.renderer, config)
            self.state = PipelineState.INJECTION_BUILT

            output_buffer = stack.enter_context(Buffer(config.output_unit))
            try:
                document = self.document_factory(
                    handle.renderer, config.extensions, injection, config.max_nesting
                )
            except MemoryError as e:
                raise AllocationError("cannot allocate document") from e
            stack.callback(document.close)

            logger.debug("rendering %d byte(s) as %s", input_buffer.size, config.renderer.value)
            started, timing_error = self._timestamp(config.show_time)
            try:
                rendered = document.render(input_buffer.data)
            finally:
                self.state = PipelineState.RENDERED
                input_buffer.release()
            finished, end_error = self._timestamp(config.show_time and timing_error is None)
            timing_error = timing_error or end_error
            if started is not None and finished is not None:
                elapsed = finished - started

            output_buffer.put(rendered)
            output = output_buffer.data

        self.state = PipelineState.FINALIZED
        if timing_error is not None:
            logger.debug("timing unavailable: %s", timing_error.reason)
        return ConversionResult(
            output=output, size=len(output), elapsed=elapsed, timing_error=timing_error
        )

    def _timestamp(self, wanted: bool) -> tuple[Optional[float], Optional[TimingUnavailable]]:
        """reads the clock; failures are reported, never raised."""
        if not wanted:
            return None, None
        try:
            return self.clock(), None
        except (OSError, OverflowError) as e:
            return None, TimingUnavailable(str(e) or type(e).__name__, e)


def convert(
    data: bytes,
    config: ConversionConfig,
    localization: Localization = DEFAULT_LOCALIZATION,
    **kwargs: Any,
) -> ConversionResult:
    """
    converts Markdown bytes with a frozen configuration.

    Args:
        data: Markdown source bytes
        config: frozen configuration
        localization: caption labels for the renderer
        **kwargs: factory and clock overrides, see Conversion

    Returns:
        conversion result
    """
    return Conversion(config, localization, **kwargs).run(data)
