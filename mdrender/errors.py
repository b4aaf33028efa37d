"""error taxonomy for option resolution and conversion."""

from dataclasses import dataclass
from typing import Optional

EXIT_OK = 0
EXIT_OPTION_ERROR = 1
EXIT_RENDER_ERROR = 3
EXIT_ALLOCATION_ERROR = 4
EXIT_IO_ERROR = 5


class MdRenderError(Exception):
    """base class for every error surfaced to mdrender callers."""

    exit_code = EXIT_OPTION_ERROR


class OptionError(MdRenderError):
    """raised when command-line options cannot be parsed."""

    exit_code = EXIT_OPTION_ERROR


class UnknownOptionError(OptionError):
    """raised when an option token matches no registered flag or category."""

    def __init__(self, token: str) -> None:
        super().__init__(f"unrecognized option '--{token}'")
        self.token = token


class ConfigError(OptionError):
    """raised when a resolved configuration holds out-of-range values."""


class AllocationError(MdRenderError):
    """raised when a buffer or renderer cannot acquire memory."""

    exit_code = EXIT_ALLOCATION_ERROR


class InputOutputError(MdRenderError):
    """raised when reading input or writing output fails."""

    exit_code = EXIT_IO_ERROR


class RenderError(MdRenderError):
    """raised when the Markdown engine fails while parsing or rendering."""

    exit_code = EXIT_RENDER_ERROR


@dataclass(frozen=True)
class TimingUnavailable:
    """non-fatal notice that the rendering time could not be measured."""

    reason: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        return f"Failed to get the time: {self.reason}"
