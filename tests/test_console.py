import pytest

from teachos.console import (
    BACKSPACE,
    INPUT_BUF,
    CgaScreen,
    Console,
    ConsoleError,
    cprintf,
)


@pytest.mark.parametrize("value", [-5, 0, 42, -2147483648, 2147483647])
def test_cprintf_decimal(value):
    assert cprintf("%d", value) == str(value)


@pytest.mark.parametrize("value", [0, 1, 255, 4096, 0xDEADBEEF])
def test_cprintf_hex_round_trip(value):
    text = cprintf("%x", value)
    assert int(text, 16) == value
    assert text == text.lower()


def test_cprintf_hex_negative_is_unsigned():
    assert cprintf("%p", -1) == "ffffffff"


def test_cprintf_string_and_null():
    assert cprintf("[%s|%s]", "abc", None) == "[abc|(null)]"


def test_cprintf_percent_and_unknown():
    assert cprintf("100%% %q") == "100% %q"


def test_cprintf_trailing_percent_dropped():
    assert cprintf("abc%") == "abc"


def test_cprintf_null_fmt():
    with pytest.raises(ConsoleError):
        cprintf(None)


def test_cprintf_missing_argument():
    with pytest.raises(ConsoleError):
        cprintf("%d")


def test_screen_shows_text():
    screen = CgaScreen()
    for ch in "hi\nthere":
        screen.putc(ord(ch))
    assert screen.text().splitlines() == ["hi", "there"]


def test_screen_backspace_erases():
    screen = CgaScreen()
    screen.putc(ord("a"))
    screen.putc(BACKSPACE)
    assert screen.text() == ""
    assert screen.pos == 0


def test_screen_scrolls():
    screen = CgaScreen()
    for i in range(30):
        for ch in f"line{i}\n":
            screen.putc(ord(ch))
    lines = screen.text().splitlines()
    assert lines[-1] == "line29"
    assert "line0" not in lines
    assert screen.pos // 80 < 24


def test_console_reads_line_with_carriage_return():
    con = Console()
    con.intr("hello\r")
    assert con.read(100) == b"hello\n"
    assert con.output == b"hello\n"


def test_console_read_stops_at_n():
    con = Console()
    con.intr("abcdef\n")
    assert con.read(3) == b"abc"
    assert con.read(100) == b"def\n"


def test_console_ctrl_d_gives_eof_next_time():
    con = Console()
    con.intr("ab\x04")
    assert con.read(10) == b"ab"
    assert con.read(10) == b""


def test_console_backspace_edits():
    con = Console()
    con.intr("abc\x7f\n")
    assert con.read(10) == b"ab\n"
    assert b"\b \b" in con.output


def test_console_kill_line():
    con = Console()
    con.intr("abc\x15x\n")
    assert con.read(10) == b"x\n"


def test_console_procdump_called():
    calls = []
    con = Console(procdump=lambda: calls.append(1))
    con.intr("\x10")
    assert calls == [1]


def test_console_buffer_limit():
    con = Console()
    con.intr("a" * 200)
    data = con.read(INPUT_BUF)
    assert len(data) == INPUT_BUF
    assert set(data) == {ord("a")}


def test_console_write():
    con = Console()
    assert con.write(b"xyz") == 3
    assert con.output == b"xyz"
    assert con.screen.text() == "xyz"