"""user-facing diagnostics on stderr."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from mdrender.errors import TimingUnavailable


def format_elapsed(seconds: float) -> str:
    """formats a rendering time in milliseconds below one second, else in seconds."""
    if seconds < 1:
        return f"Time spent on rendering: {seconds * 1e3:7.2f} ms."
    return f"Time spent on rendering: {seconds:6.3f} s."


class DiagnosticsHandler:
    """prints errors, warnings and timing for a conversion run."""

    def __init__(self, quiet: bool = False, console: Optional[Console] = None) -> None:
        self.quiet = quiet
        self._console = console or Console(stderr=True)

    def __enter__(self) -> "DiagnosticsHandler":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self._console.file.flush()

    def log_error(self, message: str) -> None:
        """prints error message (always shown, even in quiet mode)."""
        self._console.print(f"[red]ERROR:[/red] {escape(message)}")

    def log_warning(self, message: str) -> None:
        """prints warning message unless quiet."""
        if self.quiet:
            return

        self._console.print(f"[yellow]WARNING:[/yellow] {escape(message)}")

    def report_timing(
        self, elapsed: Optional[float], timing_error: Optional[TimingUnavailable] = None
    ) -> None:
        """
        prints the rendering time, or why it could not be measured.

        Args:
            elapsed: CPU seconds spent rendering, None when not measured
            timing_error: clock failure reported by the pipeline
        """
        if timing_error is not None:
            self.log_warning(str(timing_error))
            return
        if elapsed is None:
            return

        self._console.print(escape(format_elapsed(elapsed)), highlight=False)
