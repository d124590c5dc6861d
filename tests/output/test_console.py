"""Tests for Rich Console factory and theme."""

from io import StringIO

from supervisectl.output.console import SUPERVISECTL_THEME, create_console, get_output


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        console = create_console()
        assert isinstance(console.file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[sv.error]broken[/sv.error]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "broken" in output

    def test_custom_width(self) -> None:
        assert create_console(width=80).width == 80

    def test_default_width(self) -> None:
        assert create_console().width == 120


class TestTheme:
    def test_defines_issue_styles(self) -> None:
        for name in ("sv.ok", "sv.error", "sv.code", "sv.path", "sv.directive"):
            assert name in SUPERVISECTL_THEME.styles


class TestGetOutput:
    def test_extracts_printed_text(self) -> None:
        console = create_console(no_color=True)
        console.print("hello world")
        assert "hello world" in get_output(console)

    def test_empty_console(self) -> None:
        assert get_output(create_console()) == ""
