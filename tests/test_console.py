import pytest

from kernio.console import Console


def make_console(inputs=""):
    out = []
    feed = iter(inputs)
    console = Console(device_putc=out.append, device_getc=lambda: next(feed))
    return console, out


def test_newline_is_preceded_by_carriage_return():
    console, out = make_console()
    console.putc("\n")
    assert out == ["\r", "\n"]


def test_carriage_return_gets_line_feed():
    console, out = make_console()
    console.putc("\r")
    assert out == ["\r", "\n"]


def test_newline_after_carriage_return_not_doubled():
    console, out = make_console()
    console.putc("\r")
    console.putc("\n")
    assert out == ["\r", "\n", "\n"]


def test_plain_character_passes_through():
    console, out = make_console()
    console.putc("a")
    assert out == ["a"]


def test_puts_appends_newline():
    console, out = make_console()
    console.puts("hi")
    assert "".join(out) == "hi\r\n"


def test_getc_collapses_cr_lf():
    console, _ = make_console("\r\n\nab")
    assert console.getc() == "\n"
    assert console.getc() == "a"
    assert console.getc() == "b"


def test_getc_lone_lf_is_kept():
    console, _ = make_console("\n")
    assert console.getc() == "\n"


def test_getsn_reads_line_and_echoes():
    console, out = make_console("abc\r")
    assert console.getsn(16) == "abc"
    assert "".join(out) == "abc\r\n"


def test_getsn_backspace_erases():
    console, out = make_console("ab\bc\n")
    assert console.getsn(16) == "ac"
    assert "".join(out).startswith("ab\b \bc")


def test_getsn_backspace_on_empty_line_does_nothing():
    console, out = make_console("\x7fx\n")
    assert console.getsn(16) == "x"
    assert out[0] == "x"


def test_getsn_limit_rings_bell():
    console, out = make_console("abcd\n")
    assert console.getsn(3) == "ab"
    assert out.count("\a") == 2


def test_printf_formats_arguments():
    console, out = make_console()
    console.printf("%s=%d\n", "x", 5)
    assert "".join(out) == "x=5\r\n"


def test_printf_without_args_keeps_percent():
    console, out = make_console()
    console.printf("100%")
    assert "".join(out) == "100%"


def test_default_device_has_no_input():
    console = Console()
    with pytest.raises(RuntimeError):
        console.getc()


def test_device_init_is_called():
    calls = []
    console = Console(device_init=lambda: calls.append(1))
    assert calls == [1]
    assert console.initialized