"""Print the first lines or bytes of files."""

from __future__ import annotations

import sys
from typing import BinaryIO, Iterator

_CHUNK = 512
DEFAULT_LINES = 10
QUIET_LINES = 20


def _atoi(s: str) -> int:
    digits = ""
    for ch in s:
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else 0


def _bytes(src: BinaryIO) -> Iterator[int]:
    while chunk := src.read(_CHUNK):
        yield from chunk


def head(src: BinaryIO, out: BinaryIO, lines: int) -> None:
    """Copy src to out up to and including its lines-th newline."""
    result = bytearray()
    line = 1
    for byte in _bytes(src):
        if byte != 0x0A:
            result.append(byte)
        elif line == lines:
            result += b"\n"
            break
        else:
            result += b"\n"
            line += 1
    out.write(bytes(result))


def head_bytes(src: BinaryIO, out: BinaryIO, count: int) -> None:
    """Copy the first count bytes of src to out, followed by a newline."""
    result = bytearray()
    for byte in _bytes(src):
        result.append(byte)
        if len(result) == count:
            break
    result += b"\n"
    out.write(bytes(result))


def _head_quiet(paths: list[str], out: BinaryIO) -> int:
    """Print lines from the files in turn until the shared line counter runs out."""
    q = 1
    for path in paths:
        try:
            src = open(path, "rb")
        except OSError:
            out.write(f"head: cannot open {path}\n".encode())
            return 1
        result = bytearray()
        with src:
            for byte in _bytes(src):
                if byte != 0x0A:
                    result.append(byte)
                elif q == QUIET_LINES:
                    result += b"\n"
                    out.write(bytes(result))
                    return 0
                else:
                    result += b"\n"
                    q += 1
        q += 1
        result += b"\n"
        out.write(bytes(result))
    return 0


def _open(path: str, out: BinaryIO) -> BinaryIO | None:
    try:
        return open(path, "rb")
    except OSError:
        out.write(f"head: cannot open {path}\n".encode())
        return None


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            head(sys.stdin.buffer, out, DEFAULT_LINES)
            return 0
        if len(args) == 1:
            src = _open(args[0], out)
            if src is None:
                return 1
            with src:
                head(src, out, DEFAULT_LINES)
            return 0

        flag = args[0]
        option = flag[1:2] if flag.startswith("-") else ""
        if option in ("n", "c"):
            if len(args) < 3:
                sys.stderr.write("head: missing file operand\n")
                return 1
            count = _atoi(args[1])
            src = _open(args[2], out)
            if src is None:
                return 1
            with src:
                if option == "n":
                    head(src, out, count)
                else:
                    head_bytes(src, out, count)
            return 0
        if option == "q":
            return _head_quiet(args[1:], out)
        if option == "v":
            out.write(f"==> {args[1]} <==\n".encode())
            src = _open(args[1], out)
            if src is None:
                return 1
            with src:
                head(src, out, DEFAULT_LINES)
            return 0
        head(sys.stdin.buffer, out, DEFAULT_LINES)
        return 0
    except OSError:
        out.write(b"head: read error\n")
        return 1
    finally:
        out.flush()


if __name__ == "__main__":
    raise SystemExit(main())