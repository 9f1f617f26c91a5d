"""List files and directories with their type, inode number and size."""

from __future__ import annotations

import os
import stat
import sys
from typing import TextIO

from teachos.layout import DIRSIZ, InodeType

_PATHBUF = 512


def fmtname(path: str) -> str:
    """The last path element, blank-padded to DIRSIZ characters."""
    name = path.rpartition("/")[2]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _kind(st: os.stat_result) -> InodeType:
    if stat.S_ISDIR(st.st_mode):
        return InodeType.DIR
    if stat.S_ISREG(st.st_mode):
        return InodeType.FILE
    return InodeType.DEV


def _line(path: str, st: os.stat_result) -> str:
    return f"{fmtname(path)} {int(_kind(st))} {st.st_ino} {st.st_size}\n"


def ls(path: str, out: TextIO, err: TextIO) -> None:
    """Describe a file, or each entry of a directory, on out."""
    try:
        st = os.stat(path)
    except OSError:
        err.write(f"ls: cannot open {path}\n")
        return

    kind = _kind(st)
    if kind is InodeType.FILE:
        out.write(_line(path, st))
    elif kind is InodeType.DIR:
        if len(path) + 1 + DIRSIZ + 1 > _PATHBUF:
            out.write("ls: path too long\n")
            return
        try:
            names = sorted(os.listdir(path))
        except OSError:
            err.write(f"ls: cannot open {path}\n")
            return
        for name in [".", ".."] + names:
            full = f"{path}/{name}"
            try:
                entry = os.stat(full)
            except OSError:
                out.write(f"ls: cannot stat {full}\n")
                continue
            out.write(_line(full, entry))


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    for path in args or ["."]:
        ls(path, sys.stdout, sys.stderr)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())