"""Wrap input lines to a given width, dropping empty lines."""

from __future__ import annotations

import sys
from typing import BinaryIO

_CHUNK = 512
DEFAULT_WIDTH = 80


def _atoi(s: str) -> int:
    digits = ""
    for ch in s:
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else 0


def fold(src: BinaryIO, out: BinaryIO, width: int) -> None:
    """Copy src to out, breaking lines after width characters.

    Empty lines are dropped and one newline is added at the end.
    """
    result = bytearray()
    column = 0
    while chunk := src.read(_CHUNK):
        for byte in chunk:
            if byte != 0x0A:
                result.append(byte)
                column += 1
            else:
                if column == 0:
                    continue
                result += b"\n"
                column = 0
            if column == width:
                result += b"\n"
                column = 0
    result += b"\n"
    out.write(bytes(result))


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    width = DEFAULT_WIDTH
    src: BinaryIO | None = None
    try:
        i = 0
        while i < len(args):
            arg = args[i]
            if arg.startswith("-"):
                value = arg[1:]
                if value.startswith("w"):
                    value = value[1:]
                    if _atoi(value) == 0:
                        i += 1
                        if i >= len(args):
                            sys.stderr.write("fold: option requires an argument -- 'w'\n")
                            return 1
                        value = args[i]
                width = _atoi(value)
            else:
                try:
                    opened = open(arg, "rb")
                except OSError:
                    out.write(f"fold: cannot open {arg}\n".encode())
                    return 1
                if src is not None:
                    src.close()
                src = opened
            i += 1
        try:
            fold(src if src is not None else sys.stdin.buffer, out, width)
        except OSError:
            out.write(b"fold: read error\n")
            return 1
        return 0
    finally:
        if src is not None:
            src.close()
        out.flush()


if __name__ == "__main__":
    raise SystemExit(main())