"""Copy files, and with -r whole directory trees."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from typing import TextIO

_CHUNK = 512


def file_name(path: str) -> str:
    """The part of path after its last slash."""
    return path.rpartition("/")[2]


def _join(directory: str, name: str) -> str:
    sep = "" if directory.endswith("/") else "/"
    return f"{directory}{sep}{name}"


def _copy_bytes(source: str, target: str, out: TextIO, prog: str) -> bool:
    """Copy source over target without truncating it; report failures on out."""
    newtarget = _join(target, file_name(source)) if os.path.isdir(target) else target
    try:
        src = open(source, "rb")
    except OSError:
        out.write(f"{prog}: cannot open {source}\n")
        return False
    with src:
        try:
            fd = os.open(newtarget, os.O_CREAT | os.O_RDWR, 0o666)
        except OSError:
            out.write(f"{prog}: cannot open {target}\n")
            return False
        with os.fdopen(fd, "r+b") as dst:
            while chunk := src.read(_CHUNK):
                dst.write(chunk)
    return True


def _make_dest_dir(source: str, target: str) -> str:
    """Create target/name(source), falling back to target itself."""
    bufdir = _join(target, file_name(source))
    try:
        os.mkdir(bufdir)
    except OSError:
        with suppress(OSError):
            os.mkdir(target)
        bufdir = target
    return bufdir


def copy_file(source: str, target: str, out: TextIO) -> None:
    """Copy one file to target, or into target when it is a directory."""
    _copy_bytes(source, target, out, "cp")


def copy_recurse(source: str, target: str, out: TextIO) -> None:
    """Copy the directory source and everything below it into target."""
    try:
        names = sorted(os.listdir(source))
    except OSError:
        sys.stderr.write(f"cp: cannot open {source}\n")
        return
    bufdir = _make_dest_dir(source, target)
    for name in names:
        if name in (".", ".."):
            continue
        path = f"{source}/{name}"
        if os.path.isdir(path):
            copy_recurse(path, bufdir, out)
        else:
            copy_file(path, bufdir, out)


def copy_one(source: str, target: str, out: TextIO) -> None:
    if os.path.isdir(source):
        copy_recurse(source, target, out)
    else:
        copy_file(source, target, out)


def copy_all(target: str, out: TextIO) -> None:
    """Copy everything in the current directory into target."""
    copy_recurse(".", target, out)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout
    try:
        if not args:
            sys.stderr.write("cp: missing file operand\n")
            return 1
        if len(args) < 2:
            sys.stderr.write(f"cp: missing destination file operand after {args[0]}\n")
            return 1

        target = args[-1]
        if args[0] == "*":
            copy_all(args[1], out)
        elif args[0] == "-r":
            if len(args) > 3 and not os.path.isdir(target):
                sys.stderr.write(f"cp: target '{target}' is not a directory\n")
                return 1
            for source in args[1:-1]:
                copy_one(source, target, out)
        else:
            if len(args) > 2 and not os.path.isdir(target):
                sys.stderr.write(f"cp: target '{target}' is not a directory\n")
                return 1
            for source in args[:-1]:
                if os.path.isdir(source):
                    sys.stderr.write(
                        f"cp: -r not specified; omitting directory '{source}'\n"
                    )
                    return 1
            for source in args[:-1]:
                copy_one(source, target, out)
        return 0
    finally:
        out.flush()


if __name__ == "__main__":
    raise SystemExit(main())