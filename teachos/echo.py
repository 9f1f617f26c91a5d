"""Print the arguments separated by spaces."""

from __future__ import annotations

import sys
from typing import Sequence, TextIO


def echo(words: Sequence[str], out: TextIO) -> None:
    """Write the words separated by spaces and ended by a newline; nothing if none."""
    if words:
        out.write(" ".join(words) + "\n")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    echo(args, sys.stdout)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())