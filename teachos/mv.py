"""Move files and directory trees."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from typing import TextIO

from teachos.cp import _copy_bytes, _make_dest_dir


def move_file(source: str, target: str, out: TextIO) -> None:
    """Copy one file to target (or into it, if a directory), then remove the source."""
    if _copy_bytes(source, target, out, "mv"):
        with suppress(OSError):
            os.unlink(source)


def move_dir(source: str, target: str, out: TextIO) -> None:
    """Move the directory source and everything below it into target."""
    try:
        names = sorted(os.listdir(source))
    except OSError:
        sys.stderr.write(f"mv: cannot open {source}\n")
        return
    bufdir = _make_dest_dir(source, target)
    for name in names:
        if name in (".", ".."):
            continue
        path = f"{source}/{name}"
        if os.path.isdir(path):
            move_dir(path, bufdir, out)
        else:
            move_file(path, bufdir, out)
    with suppress(OSError):
        os.rmdir(source)


def move_one(source: str, target: str, out: TextIO) -> None:
    if os.path.isdir(source):
        move_dir(source, target, out)
    else:
        move_file(source, target, out)


def move_all(target: str, out: TextIO) -> None:
    """Move everything in the current directory into target."""
    move_dir(".", target, out)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout
    try:
        if not args:
            sys.stderr.write("mv: missing file operand\n")
            return 1
        if len(args) < 2:
            sys.stderr.write(f"mv: missing destination file operand after '{args[0]}'\n")
            return 1

        if args[0] == "*":
            move_all(args[1], out)
            return 0
        target = args[-1]
        if len(args) > 2 and not os.path.isdir(target):
            sys.stderr.write(f"mv: target '{target}' is not a directory\n")
            return 1
        for source in args[:-1]:
            move_one(source, target, out)
        return 0
    finally:
        out.flush()


if __name__ == "__main__":
    raise SystemExit(main())