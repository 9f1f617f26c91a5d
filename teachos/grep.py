"""Print lines matching a simple regular expression (^ . * $ only)."""

from __future__ import annotations

import sys
from typing import BinaryIO

_BUFSIZE = 1024


def _matchhere(re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if ri == len(re):
            return True
        if ri + 1 < len(re) and re[ri + 1] == "*":
            return _matchstar(re[ri], re, ri + 2, text, ti)
        if re[ri] == "$" and ri + 1 == len(re):
            return ti == len(text)
        if ti < len(text) and (re[ri] == "." or re[ri] == text[ti]):
            ri += 1
            ti += 1
            continue
        return False


def _matchstar(c: str, re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if _matchhere(re, ri, text, ti):
            return True
        if ti < len(text) and (text[ti] == c or c == "."):
            ti += 1
            continue
        return False


def match(regex: str, text: str) -> bool:
    """True if regex matches anywhere in text."""
    if regex.startswith("^"):
        return _matchhere(regex, 1, text, 0)
    return any(_matchhere(regex, 0, text, ti) for ti in range(len(text) + 1))


def grep(pattern: str, src: BinaryIO, out: BinaryIO) -> None:
    """Copy to out every complete line of src that matches pattern.

    A read that brings no newline at all throws away what is buffered.
    """
    buf = bytearray()
    while True:
        chunk = src.read(_BUFSIZE - 1 - len(buf))
        if not chunk:
            break
        buf += chunk
        start = 0
        while (end := buf.find(b"\n", start)) != -1:
            if match(pattern, buf[start:end].decode("latin-1")):
                out.write(bytes(buf[start:end + 1]))
            start = end + 1
        if start == 0:
            buf.clear()
        else:
            del buf[:start]


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, paths = args[0], args[1:]
    if not paths:
        grep(pattern, sys.stdin.buffer, out)
        out.flush()
        return 0
    for path in paths:
        try:
            src = open(path, "rb")
        except OSError:
            out.write(f"grep: cannot open {path}\n".encode())
            out.flush()
            return 1
        with src:
            grep(pattern, src, out)
    out.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())