"""Formatted output for user programs: %d, %x, %p, %s, %c and %%."""

from __future__ import annotations

from typing import Any, TextIO

_DIGITS = "0123456789ABCDEF"


def _number(value: int, base: int, signed: bool) -> str:
    x = value & 0xFFFFFFFF
    negative = signed and value < 0
    if negative:
        x = (-value) & 0xFFFFFFFF
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _char(value: Any) -> str:
    if isinstance(value, str):
        return value[:1]
    if isinstance(value, (bytes, bytearray)):
        return bytes(value[:1]).decode("latin-1")
    return chr(int(value) & 0xFF)


def render(fmt: str, *args: Any) -> str:
    """Return fmt with its conversions replaced by the arguments."""
    values = iter(args)

    def arg() -> Any:
        try:
            return next(values)
        except StopIteration:
            raise ValueError(f"missing argument for format {fmt!r}") from None

    out: list[str] = []
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        if c == "d":
            value = int(arg())
            x = value & 0xFFFFFFFF
            out.append(_number(x - (1 << 32) if x & 0x80000000 else x, 10, True))
        elif c in "xp":
            out.append(_number(int(arg()), 16, False))
        elif c == "s":
            s = arg()
            if s is None:
                out.append("(null)")
            elif isinstance(s, (bytes, bytearray)):
                out.append(bytes(s).decode("latin-1"))
            else:
                out.append(str(s))
        elif c == "c":
            out.append(_char(arg()))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
        pending = False
    return "".join(out)


def printf(out: TextIO, fmt: str, *args: Any) -> None:
    """Write the rendered format to a text stream."""
    out.write(render(fmt, *args))