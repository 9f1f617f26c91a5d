import pytest

from teachos.disk import Buf, BufferCache, DiskError, MemDisk
from teachos.layout import BSIZE, BufFlags

NBLOCKS = 8


def _image():
    return b"".join(bytes([i]) * BSIZE for i in range(NBLOCKS))


def _cache(nbuf=4):
    disk = MemDisk(_image())
    return disk, BufferCache(disk, nbuf=nbuf)


def test_read_returns_block_contents():
    _, cache = _cache()
    b = cache.read(1, 3)
    assert bytes(b.data) == bytes([3]) * BSIZE
    assert b.flags & BufFlags.VALID
    assert b.locked


def test_write_persists_to_image():
    disk, cache = _cache()
    b = cache.read(1, 2)
    b.data[:] = b"z" * BSIZE
    cache.write(b)
    cache.release(b)
    image = disk.image()
    assert image[2 * BSIZE:3 * BSIZE] == b"z" * BSIZE
    assert image[:BSIZE] == bytes([0]) * BSIZE
    assert not b.flags & BufFlags.DIRTY


def test_cached_block_is_reused():
    _, cache = _cache()
    b = cache.read(1, 5)
    cache.release(b)
    again = cache.read(1, 5)
    assert again is b
    assert again.refcnt == 1


def test_least_recently_used_buffer_is_recycled():
    _, cache = _cache(nbuf=2)
    first = cache.read(1, 0)
    cache.release(first)
    second = cache.read(1, 1)
    cache.release(second)
    third = cache.read(1, 2)
    assert third is first
    assert bytes(third.data) == bytes([2]) * BSIZE
    cache.release(third)
    assert cache.read(1, 1) is second


def test_no_buffers_when_all_held():
    _, cache = _cache(nbuf=2)
    cache.read(1, 0)
    cache.read(1, 1)
    with pytest.raises(DiskError):
        cache.read(1, 2)


def test_dirty_buffer_is_not_recycled():
    _, cache = _cache(nbuf=1)
    b = cache.read(1, 0)
    b.flags |= BufFlags.DIRTY
    cache.release(b)
    with pytest.raises(DiskError):
        cache.read(1, 1)


def test_locked_block_cannot_be_taken_twice():
    _, cache = _cache()
    cache.read(1, 4)
    with pytest.raises(DiskError):
        cache.read(1, 4)


def test_write_and_release_require_lock():
    _, cache = _cache()
    b = cache.read(1, 1)
    cache.release(b)
    with pytest.raises(DiskError):
        cache.write(b)
    with pytest.raises(DiskError):
        cache.release(b)


def test_sync_rejects_valid_clean_buffer():
    disk = MemDisk(_image())
    b = Buf(dev=1, blockno=0, flags=BufFlags.VALID, locked=True)
    with pytest.raises(DiskError):
        disk.sync(b)


def test_sync_rejects_wrong_device_and_range():
    disk = MemDisk(_image())
    with pytest.raises(DiskError):
        disk.sync(Buf(dev=0, blockno=0, locked=True))
    with pytest.raises(DiskError):
        disk.sync(Buf(dev=1, blockno=NBLOCKS, locked=True))
    with pytest.raises(DiskError):
        disk.sync(Buf(dev=1, blockno=0, locked=False))


def test_cache_needs_a_buffer():
    with pytest.raises(ValueError):
        BufferCache(MemDisk(_image()), nbuf=0)