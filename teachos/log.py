"""Write-ahead redo log that makes multi-block file-system updates atomic.

A transaction gathers the blocks changed by one or more file-system
operations. Commit copies them to the log area, writes the header (the
real commit point), installs them at their home locations and then
clears the header. Recovery after a crash replays a committed log.
"""

from __future__ import annotations

import struct
import threading
from contextlib import contextmanager
from typing import Iterator

from teachos.disk import Buf, BufferCache
from teachos.layout import BSIZE, BufFlags, SuperBlock

MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3

_INT = struct.Struct("<i")


class LogError(Exception):
    """Raised when the log is misused or its on-disk header is corrupt."""


class Log:
    """The redo log of one device."""

    def __init__(
        self,
        cache: BufferCache,
        dev: int,
        sb: SuperBlock | None = None,
        logsize: int = LOGSIZE,
        maxopblocks: int = MAXOPBLOCKS,
    ) -> None:
        if _INT.size * (logsize + 1) >= BSIZE:
            raise LogError("initlog: too big logheader")
        if sb is None:
            buf = cache.read(dev, 1)
            try:
                sb = SuperBlock.unpack(buf.data)
            finally:
                cache.release(buf)
        self.cache = cache
        self.dev = dev
        self.start = sb.logstart
        self.size = sb.nlog
        self.logsize = logsize
        self.maxopblocks = maxopblocks
        self.outstanding = 0
        self.committing = False
        self.blocks: list[int] = []
        self._cond = threading.Condition()
        self.recover()

    def _read_head(self) -> None:
        buf = self.cache.read(self.dev, self.start)
        try:
            (n,) = _INT.unpack_from(buf.data, 0)
            if not 0 <= n <= self.logsize:
                raise LogError(f"corrupt log header: {n} blocks")
            self.blocks = list(struct.unpack_from(f"<{n}i", buf.data, _INT.size))
        finally:
            self.cache.release(buf)

    def _write_head(self) -> None:
        buf = self.cache.read(self.dev, self.start)
        try:
            _INT.pack_into(buf.data, 0, len(self.blocks))
            struct.pack_into(f"<{len(self.blocks)}i", buf.data, _INT.size, *self.blocks)
            self.cache.write(buf)
        finally:
            self.cache.release(buf)

    def _install(self) -> None:
        """Copy committed blocks from the log to their home locations."""
        for tail, blockno in enumerate(self.blocks):
            lbuf = self.cache.read(self.dev, self.start + tail + 1)
            dbuf = self.cache.read(self.dev, blockno)
            dbuf.data[:] = lbuf.data
            self.cache.write(dbuf)
            self.cache.release(lbuf)
            self.cache.release(dbuf)

    def _write_log(self) -> None:
        """Copy modified blocks from the cache to the log area."""
        for tail, blockno in enumerate(self.blocks):
            to = self.cache.read(self.dev, self.start + tail + 1)
            src = self.cache.read(self.dev, blockno)
            to.data[:] = src.data
            self.cache.write(to)
            self.cache.release(src)
            self.cache.release(to)

    def _commit(self) -> None:
        if self.blocks:
            self._write_log()
            self._write_head()
            self._install()
            self.blocks = []
            self._write_head()

    def recover(self) -> None:
        """Replay a committed transaction found on disk, then clear the log."""
        self._read_head()
        self._install()
        self.blocks = []
        self._write_head()

    def begin_op(self) -> None:
        """Start an operation, waiting while a commit runs or space is short."""
        with self._cond:
            self._cond.wait_for(
                lambda: not self.committing
                and len(self.blocks) + (self.outstanding + 1) * self.maxopblocks
                <= self.logsize
            )
            self.outstanding += 1

    def end_op(self) -> None:
        """Finish an operation; the last one to finish commits."""
        with self._cond:
            if self.outstanding < 1:
                raise LogError("end_op without begin_op")
            self.outstanding -= 1
            if self.committing:
                raise LogError("log.committing")
            do_commit = self.outstanding == 0
            if do_commit:
                self.committing = True
            else:
                self._cond.notify_all()

        if do_commit:
            try:
                self._commit()
            finally:
                with self._cond:
                    self.committing = False
                    self._cond.notify_all()

    def log_write(self, buf: Buf) -> None:
        """Record a modified buffer in the current transaction and pin it."""
        if len(self.blocks) >= self.logsize or len(self.blocks) >= self.size - 1:
            raise LogError("too big a transaction")
        if self.outstanding < 1:
            raise LogError("log_write outside of trans")
        with self._cond:
            if buf.blockno not in self.blocks:
                self.blocks.append(buf.blockno)
            buf.flags |= BufFlags.DIRTY

    @contextmanager
    def transaction(self) -> Iterator[Log]:
        """Run the body between begin_op and end_op."""
        self.begin_op()
        try:
            yield self
        finally:
            self.end_op()