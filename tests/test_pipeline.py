"""tests for the conversion pipeline."""

from unittest.mock import MagicMock, patch

import pytest

from mdrender.buffers import Buffer
from mdrender.core.config import ConversionConfig, RendererKind, ResolvedConfig
from mdrender.errors import AllocationError, RenderError
from mdrender.injection import HTML_FOOTER, HTML_HEADER
from mdrender.pipeline import Conversion, PipelineState, convert
from mdrender.renderers import RendererHandle


def make_config(**overrides: object) -> ConversionConfig:
    """frozen default configuration with overrides."""
    return ResolvedConfig(**overrides).freeze()  # type: ignore[arg-type]


def fake_handle() -> RendererHandle:
    """renderer handle with a mock release."""
    return RendererHandle(kind=RendererKind.HTML, renderer=MagicMock(), release=MagicMock())


class BufferSpy:  # pylint: disable=too-few-public-methods
    """records every buffer the pipeline creates."""

    def __init__(self) -> None:
        self.created: list[Buffer] = []

    def __call__(self, unit: int) -> Buffer:
        buffer = Buffer(unit)
        self.created.append(buffer)
        return buffer


def test_end_to_end_hello() -> None:
    """default HTML conversion of hello."""
    result = convert(b"hello", make_config())

    assert result.output == (HTML_HEADER + "<p>hello</p>\n" + HTML_FOOTER).encode()
    assert result.size == len(result.output)
    assert result.elapsed is None
    assert result.timing_error is None


def test_latex_has_no_injection() -> None:
    """LaTeX output is the bare body."""
    result = convert(b"hello", make_config(renderer=RendererKind.LATEX))

    assert result.output == b"hello\n\n"


def test_toc_conversion() -> None:
    """HTML_TOC output lists headings."""
    result = convert(b"# A\n", make_config(renderer=RendererKind.HTML_TOC, toc_level=1))

    assert result.output == b'<ul>\n<li>\n<a href="#toc_0">A</a>\n</li>\n</ul>\n'


def test_all_resources_released_after_success() -> None:
    """buffers and renderer are released exactly once."""
    spy = BufferSpy()
    handle = fake_handle()
    document = MagicMock()
    document.render.return_value = b"out"

    with patch("mdrender.pipeline.Buffer", side_effect=spy):
        result = convert(
            b"in",
            make_config(),
            renderer_factory=MagicMock(return_value=handle),
            document_factory=MagicMock(return_value=document),
        )

    assert result.output == b"out"
    assert len(spy.created) == 2
    assert [b.release_count for b in spy.created] == [1, 1]
    document.close.assert_called_once()
    handle.release.assert_called_once()  # type: ignore[attr-defined]


def test_cleanup_when_engine_fails() -> None:
    """a failing engine call still releases everything exactly once."""
    spy = BufferSpy()
    handle = fake_handle()
    document = MagicMock()
    document.render.side_effect = RenderError("engine failed")
    conversion = Conversion(
        make_config(),
        renderer_factory=MagicMock(return_value=handle),
        document_factory=MagicMock(return_value=document),
    )

    with patch("mdrender.pipeline.Buffer", side_effect=spy):
        with pytest.raises(RenderError, match="engine failed"):
            conversion.run(b"in")

    assert [b.release_count for b in spy.created] == [1, 1]
    document.close.assert_called_once()
    handle.release.assert_called_once()  # type: ignore[attr-defined]
    assert handle.torn_down
    assert conversion.state is PipelineState.RENDERED


def test_cleanup_when_renderer_fails() -> None:
    """a failing renderer construction releases the input buffer."""
    spy = BufferSpy()
    document_factory = MagicMock()

    with patch("mdrender.pipeline.Buffer", side_effect=spy):
        with pytest.raises(AllocationError):
            convert(
                b"in",
                make_config(),
                renderer_factory=MagicMock(side_effect=AllocationError("no memory")),
                document_factory=document_factory,
            )

    assert [b.release_count for b in spy.created] == [1]
    document_factory.assert_not_called()


def test_document_memory_error_is_allocation_error() -> None:
    """running out of memory building the document tears the renderer down."""
    handle = fake_handle()

    with pytest.raises(AllocationError, match="document"):
        convert(
            b"in",
            make_config(),
            renderer_factory=MagicMock(return_value=handle),
            document_factory=MagicMock(side_effect=MemoryError),
        )

    handle.release.assert_called_once()  # type: ignore[attr-defined]


def test_release_order() -> None:
    """input buffer first, then document, output buffer and renderer."""
    events: list[str] = []
    handle = RendererHandle(
        kind=RendererKind.HTML, renderer=MagicMock(), release=lambda: events.append("renderer")
    )
    document = MagicMock()
    document.render.return_value = b"out"
    document.close.side_effect = lambda: events.append("document")

    class TracingBuffer(Buffer):
        """buffer that logs its release."""

        names = iter(["input", "output"])

        def __init__(self, unit: int) -> None:
            super().__init__(unit)
            self.name = next(self.names)

        def release(self) -> None:
            if not self.released:
                events.append(self.name)
            super().release()

    with patch("mdrender.pipeline.Buffer", TracingBuffer):
        convert(
            b"in",
            make_config(),
            renderer_factory=MagicMock(return_value=handle),
            document_factory=MagicMock(return_value=document),
        )

    assert events == ["input", "document", "output", "renderer"]


def test_timing_brackets_render() -> None:
    """elapsed time is the difference of the two clock readings."""
    clock = MagicMock(side_effect=[10.0, 10.25])

    result = convert(b"hello", make_config(show_time=True), clock=clock)

    assert result.elapsed == pytest.approx(0.25)
    assert clock.call_count == 2


def test_timing_not_measured_when_off() -> None:
    """the clock is not read without show_time."""
    clock = MagicMock()

    result = convert(b"hello", make_config(), clock=clock)

    clock.assert_not_called()
    assert result.elapsed is None


def test_timing_unavailable_keeps_output() -> None:
    """a failing clock is reported without losing the output."""
    clock = MagicMock(side_effect=OSError("clock unavailable"))

    result = convert(b"hello", make_config(renderer=RendererKind.LATEX, show_time=True), clock=clock)

    assert result.output == b"hello\n\n"
    assert result.elapsed is None
    assert result.timing_error is not None
    assert result.timing_error.reason == "clock unavailable"
    assert str(result.timing_error) == "Failed to get the time: clock unavailable"


def test_state_finalized_after_success() -> None:
    """a successful run ends finalized."""
    conversion = Conversion(make_config())

    conversion.run(b"x")

    assert conversion.state is PipelineState.FINALIZED
