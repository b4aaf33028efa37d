"""Markdown to HTML, HTML table of contents and LaTeX converter."""

import argparse
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import NoReturn, Optional

from markdown_it import __version__ as markdown_it_version

from mdrender.core.config import (
    DEF_IUNIT,
    DEF_MAX_NESTING,
    DEF_OUNIT,
    ConversionConfig,
    RendererKind,
    ResolvedConfig,
)
from mdrender.core.flags import CATEGORY_PREFIX, DEFAULT_REGISTRY, FlagRegistry
from mdrender.core.resolver import FlagResolver
from mdrender.diagnostics import DiagnosticsHandler
from mdrender.errors import EXIT_OK, InputOutputError, MdRenderError, OptionError
from mdrender.pipeline import convert

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# the only registered flag that carries a value
STYLE_OPTION = "style"

NEGATION_NOTE = (
    "Flags and extensions can be negated by prepending 'no' to them, as in "
    "'--no-tables', '--no-all-span' or '--no-escape'. Options are processed in "
    "order, so in case of contradictory options the last specified stands."
)
INPUT_NOTE = (
    "When FILE is '-', read standard input. If no FILE was given, read standard "
    "input. Use '--' to signal end of option parsing. Exit status is 0 if no "
    "errors occurred, 1 with option parsing errors, 3 with rendering errors, "
    "4 with memory allocation errors or 5 with I/O errors."
)


class OptionParser(argparse.ArgumentParser):
    """argument parser that reports errors as OptionError instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise OptionError(message)


def flags_help(registry: FlagRegistry = DEFAULT_REGISTRY) -> str:
    """
    lists every category, its extensions and the HTML-specific flags.

    Args:
        registry: flag registry to describe

    Returns:
        help text for the argparse epilog
    """
    lines: list[str] = []
    for category in registry.categories:
        lines.append(f"{category.label} (--{CATEGORY_PREFIX}{category.option_name}):")
        for extension in registry.members(category):
            lines.append(f"  --{extension.option_name:<24}{extension.description}")
        lines.append("")

    lines.append("HTML-specific options:")
    for flag in registry.render_flags:
        name = f"{flag.option_name}=PATH" if flag.option_name == STYLE_OPTION else flag.option_name
        lines.append(f"  --{name:<24}{flag.description}")
    lines.append("")

    lines.append(NEGATION_NOTE)
    lines.append("")
    lines.append(INPUT_NOTE)
    return "\n".join(lines)


def build_arg_parser(registry: FlagRegistry = DEFAULT_REGISTRY) -> OptionParser:
    """builds the parser for the main options; flag options are left over for the resolver."""
    parser = OptionParser(
        prog="mdrender",
        usage="%(prog)s [OPTION]... [FILE]",
        description=(
            "Process the Markdown in FILE (or standard input) and render it to "
            "standard output. The default is to parse Markdown with the block, span "
            "and flag extensions enabled and output HTML."
        ),
        epilog=flags_help(registry),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    main_options = parser.add_argument_group("Main options")
    main_options.add_argument(
        "-n",
        "--max-nesting",
        type=int,
        default=DEF_MAX_NESTING,
        metavar="N",
        help=f"maximum level of block nesting parsed (default: {DEF_MAX_NESTING})",
    )
    main_options.add_argument(
        "-t",
        "--toc-level",
        type=int,
        default=0,
        metavar="N",
        help="maximum level for headers included in the TOC; zero disables TOC (the default)",
    )
    main_options.add_argument(
        "--html",
        dest="renderer",
        action="store_const",
        const=RendererKind.HTML,
        default=RendererKind.HTML,
        help="render (X)HTML (the default)",
    )
    main_options.add_argument(
        "--latex",
        dest="renderer",
        action="store_const",
        const=RendererKind.LATEX,
        help="render as LaTeX",
    )
    main_options.add_argument(
        "--html-toc",
        dest="renderer",
        action="store_const",
        const=RendererKind.HTML_TOC,
        help="render the table of contents in (X)HTML",
    )
    main_options.add_argument(
        "-T",
        "--time",
        action="store_true",
        help="show time spent in rendering",
    )
    main_options.add_argument(
        "-i",
        "--input-unit",
        type=int,
        default=DEF_IUNIT,
        metavar="N",
        help=f"reading block size (default: {DEF_IUNIT})",
    )
    main_options.add_argument(
        "-o",
        "--output-unit",
        type=int,
        default=DEF_OUNIT,
        metavar="N",
        help=f"writing block size (default: {DEF_OUNIT})",
    )
    main_options.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__} (markdown-it-py {markdown_it_version})",
    )
    main_options.add_argument(
        "--verbose",
        action="store_true",
        help="enable debug logging",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        metavar="FILE",
        help="Markdown file to render ('-' or omitted for standard input)",
    )
    return parser


def build_config(
    args: argparse.Namespace,
    extras: Iterable[str],
    registry: FlagRegistry = DEFAULT_REGISTRY,
) -> ConversionConfig:
    """
    combines the main options and the left-over flag options into a frozen config.

    Args:
        args: parsed main options
        extras: unparsed command-line tokens, in order
        registry: flag registry the flag options resolve against

    Returns:
        frozen configuration

    Raises:
        OptionError: on a stray argument or an unknown flag
        ConfigError: if a numeric option is out of range
    """
    config = ResolvedConfig(
        renderer=args.renderer,
        toc_level=args.toc_level,
        max_nesting=args.max_nesting,
        input_unit=args.input_unit,
        output_unit=args.output_unit,
        show_time=args.time,
    )

    tokens: list[str] = []
    for extra in extras:
        if not extra.startswith("-"):
            raise OptionError(f"unexpected argument '{extra}'")
        token, has_value, value = extra.lstrip("-").partition("=")
        if has_value:
            if token != STYLE_OPTION:
                raise OptionError(f"option '--{token}' doesn't allow an argument")
            config.stylesheet = value
        tokens.append(token)

    FlagResolver(registry).apply_to(config, tokens)
    return config.freeze()


def read_input(file: str, unit: int) -> bytes:
    """
    reads the whole input in blocks of `unit` bytes.

    Raises:
        InputOutputError: if the input cannot be read
    """
    chunks: list[bytes] = []
    try:
        if file == "-":
            stream = sys.stdin.buffer
            for chunk in iter(lambda: stream.read(unit), b""):
                chunks.append(chunk)
        else:
            with Path(file).open("rb") as handle:
                for chunk in iter(lambda: handle.read(unit), b""):
                    chunks.append(chunk)
    except OSError as e:
        raise InputOutputError(f"unable to read input: {file}: {e.strerror or e}") from e
    return b"".join(chunks)


def write_output(data: bytes) -> None:
    """
    writes rendered bytes to standard output.

    Raises:
        InputOutputError: if the output cannot be written
    """
    try:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    except OSError as e:
        raise InputOutputError(f"unable to write output: {e.strerror or e}") from e


def render_markdown(
    text: str, options: Iterable[str] = (), kind: RendererKind = RendererKind.HTML
) -> str:
    """
    renders Markdown text with the default configuration plus flag options.

    Args:
        text: Markdown source
        options: flag option names such as "no-tables" or "all-span", applied in order
        kind: output format

    Returns:
        rendered text

    Raises:
        UnknownOptionError: if an option names no flag or category
        RenderError: if the engine fails
    """
    config = ResolvedConfig(renderer=kind)
    FlagResolver().apply_to(config, (option.lstrip("-") for option in options))
    result = convert(text.encode("utf-8"), config.freeze())
    return result.output.decode("utf-8")


def main(argv: Optional[list[str]] = None) -> int:
    """
    main entry point for mdrender CLI.

    Args:
        argv: command line arguments (defaults to sys.argv[1:])

    Returns:
        exit code (0 success, 1 option error, 3 render error,
        4 allocation error, 5 I/O error)
    """
    parser = build_arg_parser()

    with DiagnosticsHandler() as diagnostics:
        try:
            args, extras = parser.parse_known_args(argv)
        except OptionError as e:
            diagnostics.log_error(str(e))
            return e.exit_code

        # configures logging
        level = logging.DEBUG if args.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="[%(levelname)s] %(message)s",
        )

        try:
            config = build_config(args, extras)
            logger.debug("configuration: %s", config)
            result = convert(read_input(args.file, config.input_unit), config)
            write_output(result.output)
        except MdRenderError as e:
            diagnostics.log_error(str(e))
            return e.exit_code

        if config.show_time:
            diagnostics.report_timing(result.elapsed, result.timing_error)

    return EXIT_OK
