"""tests for CLI argument parsing and the main entry point."""

import io
import sys
from pathlib import Path

import pytest

from mdrender import build_arg_parser, build_config, flags_help, main, render_markdown
from mdrender.core.config import ConversionConfig, RendererKind
from mdrender.core.flags import ExtensionFlag, RenderFlag
from mdrender.errors import OptionError, UnknownOptionError
from mdrender.injection import HTML_FOOTER, HTML_HEADER


@pytest.fixture(name="source")
def fixture_source(tmp_path: Path) -> Path:
    """Markdown file with a heading, emphasis and a table."""
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\nSome *text*.\n\n| a | b |\n|---|---|\n| 1 | 2 |\n")
    return path


def parse(argv: list[str]) -> ConversionConfig:
    """builds a config from command-line arguments."""
    args, extras = build_arg_parser().parse_known_args(argv)
    return build_config(args, extras)


def test_main_renders_html(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """default run renders HTML with injection to stdout."""
    assert main([str(source)]) == 0

    out = capsys.readouterr().out
    assert out.startswith(HTML_HEADER)
    assert "<h1>Title</h1>" in out
    assert "<table>" in out
    assert out.endswith(HTML_FOOTER)


def test_main_renders_latex(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """--latex switches the renderer."""
    assert main(["--latex", str(source)]) == 0

    out = capsys.readouterr().out
    assert "\\section{Title}" in out
    assert "\\emph{text}" in out


def test_main_renders_toc(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """--html-toc with a toc level lists headings."""
    assert main(["--html-toc", "-t", "1", str(source)]) == 0

    assert capsys.readouterr().out == '<ul>\n<li>\n<a href="#toc_0">Title</a>\n</li>\n</ul>\n'


def test_main_flag_order_last_wins(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """contradictory flags resolve to the last one."""
    assert main(["--tables", "--no-tables", str(source)]) == 0
    assert "<table>" not in capsys.readouterr().out

    assert main(["--no-all-block", "--tables", str(source)]) == 0
    assert "<table>" in capsys.readouterr().out


def test_main_reads_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    """without FILE the input comes from stdin."""
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"hi")))

    assert main(["--latex"]) == 0
    assert capsys.readouterr().out == "hi\n\n"


def test_main_dash_reads_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    """FILE '-' means stdin."""
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"hi")))

    assert main(["--latex", "-i", "1", "-"]) == 0
    assert capsys.readouterr().out == "hi\n\n"


def test_main_unknown_option(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """unknown options exit with 1 before rendering."""
    assert main(["--not-a-flag", str(source)]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "unrecognized option '--not-a-flag'" in captured.err


def test_main_bad_integer(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """non-numeric values are option errors."""
    assert main(["-n", "deep", str(source)]) == 1
    assert "ERROR:" in capsys.readouterr().err


def test_main_out_of_range_value(source: Path) -> None:
    """a zero nesting depth is rejected."""
    assert main(["--max-nesting", "0", str(source)]) == 1


def test_main_stray_argument(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """a second FILE is an option error."""
    assert main([str(source), "other.md"]) == 1
    assert "unexpected argument 'other.md'" in capsys.readouterr().err


def test_main_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """unreadable input exits with 5."""
    assert main([str(tmp_path / "missing.md")]) == 5
    assert "unable to read input" in capsys.readouterr().err


def test_main_time(source: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """-T reports the rendering time on stderr."""
    assert main(["-T", str(source)]) == 0
    assert "Time spent on rendering:" in capsys.readouterr().err


def test_main_verbose(source: Path) -> None:
    """--verbose is accepted."""
    assert main(["--verbose", str(source)]) == 0


def test_help_lists_registry(capsys: pytest.CaptureFixture[str]) -> None:
    """help lists categories, extensions and HTML flags."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "Block extensions (--all-block):" in out
    assert "--tables" in out
    assert "HTML-specific options:" in out
    assert "--style=PATH" in out


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    """-v prints the version."""
    with pytest.raises(SystemExit) as exc_info:
        main(["-v"])

    assert exc_info.value.code == 0
    assert "mdrender 0.1.0" in capsys.readouterr().out


def test_flags_help_groups_members() -> None:
    """each category header is followed by its members."""
    text = flags_help()

    negative = text.index("Negative flags (--all-negative):")
    assert text.index("--disable-indented-code") > negative
    assert "last specified stands" in text


def test_build_config_defaults() -> None:
    """no options gives the default configuration."""
    config = parse([])

    assert config.renderer is RendererKind.HTML
    assert config.extensions & ExtensionFlag.TABLES
    assert config.stylesheet is None


def test_build_config_main_options() -> None:
    """main options land in the config."""
    config = parse(["-n", "8", "-t", "3", "-T", "-i", "2048", "-o", "128", "--latex"])

    assert config.max_nesting == 8
    assert config.toc_level == 3
    assert config.show_time is True
    assert config.input_unit == 2048
    assert config.output_unit == 128
    assert config.renderer is RendererKind.LATEX


def test_build_config_last_renderer_wins() -> None:
    """the last renderer option is used."""
    assert parse(["--latex", "--html"]).renderer is RendererKind.HTML


def test_build_config_style_path() -> None:
    """--style=PATH records the stylesheet and sets the style flag."""
    config = parse(["--no-style", "--style=site.css"])

    assert config.stylesheet == "site.css"
    assert config.render_flags & RenderFlag.CSS


def test_build_config_value_on_plain_flag() -> None:
    """plain flags take no value."""
    with pytest.raises(OptionError, match="doesn't allow an argument"):
        parse(["--tables=yes"])


def test_build_config_unknown_flag() -> None:
    """unknown flags raise UnknownOptionError."""
    with pytest.raises(UnknownOptionError):
        parse(["--span"])


def test_render_markdown_html() -> None:
    """render_markdown returns the full HTML output."""
    assert render_markdown("hello") == HTML_HEADER + "<p>hello</p>\n" + HTML_FOOTER


def test_render_markdown_options() -> None:
    """options are applied in order."""
    latex = render_markdown("~~x~~", ["--no-strikethrough"], kind=RendererKind.LATEX)

    assert latex == "\\textasciitilde{}\\textasciitilde{}x\\textasciitilde{}\\textasciitilde{}\n\n"
