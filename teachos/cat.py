"""Concatenate files to standard output."""

from __future__ import annotations

import sys
from typing import BinaryIO

_CHUNK = 512


def cat(src: BinaryIO, out: BinaryIO) -> int:
    """Copy src to out; return the number of bytes copied."""
    total = 0
    while chunk := src.read(_CHUNK):
        out.write(chunk)
        total += len(chunk)
    return total


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            cat(sys.stdin.buffer, out)
            return 0
        for path in args:
            try:
                src = open(path, "rb")
            except OSError:
                out.write(f"cat: cannot open {path}\n".encode())
                return 1
            with src:
                cat(src, out)
        return 0
    except OSError:
        out.write(b"cat: read error\n")
        return 1
    finally:
        out.flush()


if __name__ == "__main__":
    raise SystemExit(main())