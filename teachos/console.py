"""Console: formatted kernel output, a CGA text screen and line-edited input."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Iterator

BACKSPACE = 0x100
INPUT_BUF = 128
COLS = 80
ROWS = 25

_DIGITS = "0123456789abcdef"


def _ctrl(ch: str) -> int:
    return ord(ch) - ord("@")


class ConsoleError(Exception):
    """Raised on a console misuse that would stop the machine."""


def _number(value: int, base: int, signed: bool) -> str:
    x = value & 0xFFFFFFFF
    negative = signed and x & 0x80000000
    if negative:
        x = (-(x - (1 << 32))) & 0xFFFFFFFF
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _text(value: Any) -> str:
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def cprintf(fmt: str | None, *args: Any) -> str:
    """Render fmt as the console does; only %d, %x, %p, %s and %% are understood."""
    if fmt is None:
        raise ConsoleError("null fmt")
    values: Iterator[Any] = iter(args)

    def arg() -> Any:
        try:
            return next(values)
        except StopIteration:
            raise ConsoleError(f"missing argument for format {fmt!r}") from None

    out: list[str] = []
    i = 0
    while i < len(fmt):
        c = fmt[i]
        i += 1
        if c != "%":
            out.append(c)
            continue
        if i >= len(fmt):
            break
        c = fmt[i]
        i += 1
        if c == "d":
            out.append(_number(int(arg()), 10, True))
        elif c in "xp":
            out.append(_number(int(arg()), 16, False))
        elif c == "s":
            out.append(_text(arg()))
        elif c == "%":
            out.append("%")
        else:
            # Unknown sequence: show it to draw attention.
            out.append("%" + c)
    return "".join(out)


class CgaScreen:
    """An 80x25 text screen of attribute/character cells with a cursor."""

    def __init__(self) -> None:
        self.cells = [0] * (COLS * ROWS)
        self.pos = 0

    def putc(self, c: int) -> None:
        pos = self.pos
        if c == ord("\n"):
            pos += COLS - pos % COLS
        elif c == BACKSPACE:
            if pos > 0:
                pos -= 1
        else:
            self.cells[pos] = (c & 0xFF) | 0x0700
            pos += 1

        if pos < 0 or pos > ROWS * COLS:
            raise ConsoleError("pos under/overflow")

        if pos // COLS >= 24:
            self.cells[0:23 * COLS] = self.cells[COLS:24 * COLS]
            pos -= COLS
            self.cells[pos:24 * COLS] = [0] * (24 * COLS - pos)

        self.pos = pos
        self.cells[pos] = ord(" ") | 0x0700

    def text(self) -> str:
        """The visible characters, one line per row, trailing blanks dropped."""
        rows = []
        for start in range(0, COLS * ROWS, COLS):
            chars = (chr(cell & 0xFF) if cell & 0xFF else " " for cell in self.cells[start:start + COLS])
            rows.append("".join(chars).rstrip())
        while rows and not rows[-1]:
            rows.pop()
        return "\n".join(rows)


class Console:
    """Console device: echoes to a serial line and a screen, buffers typed lines.

    read_timeout bounds how long read waits for input; None waits forever.
    """

    def __init__(
        self,
        procdump: Callable[[], None] | None = None,
        read_timeout: float | None = None,
    ) -> None:
        self.screen = CgaScreen()
        self.output = bytearray()
        self.procdump = procdump
        self.read_timeout = read_timeout
        self._buf = [0] * INPUT_BUF
        self._r = 0
        self._w = 0
        self._e = 0
        self._cond = threading.Condition(threading.RLock())

    def putc(self, c: int) -> None:
        """Send one character to the serial line and the screen."""
        if c == BACKSPACE:
            self.output += b"\b \b"
        else:
            self.output.append(c & 0xFF)
        self.screen.putc(c)

    def intr(self, chars: Iterable[int | str]) -> None:
        """Handle typed characters, applying line editing."""
        doprocdump = False
        with self._cond:
            for c in chars:
                if isinstance(c, str):
                    c = ord(c)
                if c == _ctrl("P"):
                    doprocdump = True
                elif c == _ctrl("U"):
                    while self._e != self._w and self._buf[(self._e - 1) % INPUT_BUF] != ord("\n"):
                        self._e -= 1
                        self.putc(BACKSPACE)
                elif c in (_ctrl("H"), 0x7F):
                    if self._e != self._w:
                        self._e -= 1
                        self.putc(BACKSPACE)
                elif c != 0 and self._e - self._r < INPUT_BUF:
                    if c == ord("\r"):
                        c = ord("\n")
                    self._buf[self._e % INPUT_BUF] = c
                    self._e += 1
                    self.putc(c)
                    if c in (ord("\n"), _ctrl("D")) or self._e == self._r + INPUT_BUF:
                        self._w = self._e
                        self._cond.notify_all()
        if doprocdump and self.procdump is not None:
            self.procdump()

    def read(self, n: int) -> bytes:
        """Read up to n bytes of committed input, stopping after a newline.

        Control-D ends the read; it is kept for the next read when some
        bytes were already returned, so that read returns b"".
        """
        target = n
        out = bytearray()
        with self._cond:
            while n > 0:
                if not self._cond.wait_for(lambda: self._r != self._w, self.read_timeout):
                    raise TimeoutError("no console input")
                c = self._buf[self._r % INPUT_BUF]
                self._r += 1
                if c == _ctrl("D"):
                    if n < target:
                        self._r -= 1
                    break
                out.append(c & 0xFF)
                n -= 1
                if c == ord("\n"):
                    break
        return bytes(out)

    def write(self, data: bytes) -> int:
        with self._cond:
            for b in bytes(data):
                self.putc(b & 0xFF)
        return len(data)