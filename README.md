# teachos

teachos is a small teaching operating-system toolkit in plain Python. It has
no third-party dependencies. It contains these parts:

- **On-disk format** (`teachos.layout`) covers `SuperBlock`, `DiskInode` and
  `DirEntry`. Each one can `pack()` to bytes and `unpack()` from bytes. The
  module also has the enums `InodeType`, `OpenFlags` and `BufFlags`, and the
  block helpers `iblock` and `bblock`.
- **Block layer** (`teachos.disk`) provides `MemDisk`, a disk held in memory,
  and `BufferCache`, a fixed set of buffers kept in most-recently-used order.
- **Redo log** (`teachos.log`) provides `Log`, with `begin_op`, `end_op`,
  `log_write`, `recover` and the context manager `transaction()`.
- **File system** (`teachos.fs`) provides `FileSystem`, which handles inodes
  (`ialloc`, `iget`, `ilock`, `iput`, and so on). It reads and writes inode
  content with `readi` and `writei`, and handles directories with `dirlookup`
  and `dirlink`. It looks up paths with `namei` and `nameiparent`.
- **Open files and pipes** (`teachos.file`) provides `FileTable`, which holds
  reference-counted `File` objects, and `Pipe`, a bounded byte channel.
- **Image building** (`teachos.mkfs`) provides `ImageBuilder` and
  `build_image`. They create an image with a root directory and the files you
  give it.
- **ELF loading** (`teachos.elf`) provides `ElfHeader` and `ProgramHeader`.
  `read_segment` reads from a disk image, and `load_kernel` loads a kernel that
  starts at sector 1.
- **Keyboard** (`teachos.kbd`) provides `KeyboardDecoder`, which turns PC
  scan codes into character codes.
- **Console** (`teachos.console`) provides `cprintf` for formatting, an
  80x25 `CgaScreen`, and a `Console` with line-edited input.
- **Memory** (`teachos.memory`) provides `PageAllocator`, a free list of
  4096-byte pages. It also has the address helpers `pgroundup`, `pgrounddown`,
  `pdx`, `ptx`, `pgaddr`, `pte_addr`, `pte_flags`, `v2p` and `p2v`.
- **Formatting** (`teachos.printf`) provides `render` and `printf`. They
  understand `%d`, `%x`, `%p`, `%s`, `%c` and `%%`.
- **Text tools**: `cat`, `echo`, `grep`, `fold`, `head`, `ls`, `cp` and `mv`.
  Each one can be used as a function or as a command.

## Installation

```
pip install .
```

To install the test requirements as well:

```
pip install ".[test]"
```

## Commands

### Build a file-system image

```
teachos-mkfs fs.img README.md notes.txt
```

This command writes `fs.img` and places each named file in its root directory.

- A leading `_` is dropped from a file name.
- A name that contains `/` is refused.

The default image has 1000 blocks, 30 log blocks and 200 inodes.

### Text tools

```
teachos-cat file1 file2
teachos-echo hello world
teachos-grep '^ab*c$' file.txt
teachos-fold -w 40 file.txt
teachos-head -n 5 file.txt
teachos-head -c 100 file.txt
teachos-ls .
teachos-cp -r srcdir destdir
teachos-mv old.txt new.txt
```

**grep**
- Supports only `^`, `.`, `*` and `$`.
- Prints only complete lines, meaning lines that end in a newline.

**fold**
- Wraps at 80 columns by default.
- Drops empty lines.
- Ends its output with a newline.

**head**
- Prints 10 lines by default.
- `-n N file` prints N lines.
- `-c N file` prints N bytes.
- `-v file` first prints a `==> file <==` header.
- `-q file...` prints lines from each file in turn, until 20 lines have been
  counted.

**ls**
- Prints one line per entry, in the form `name type inode size`.
- `type` is 1 for a directory, 2 for a file and 3 for anything else.

**cp**
- Copying a directory requires `-r`.
- `cp '*' dir` copies the whole current directory.

**mv**
- Copies, then removes the source.
- `mv '*' dir` moves the whole current directory.

The text tools work on files on your own system. They do not work on a
teachos image.

## Library use

Read a file from an image:

```python
from teachos.disk import BufferCache, MemDisk
from teachos.fs import FileSystem
from teachos.mkfs import build_image

image = build_image([("hello.txt", b"hi\n")])
disk = MemDisk(image)
fs = FileSystem(BufferCache(disk))

ip = fs.namei("/hello.txt")
fs.ilock(ip)
print(fs.readi(ip, 0, ip.size))          # b'hi\n'

with fs.log.transaction():
    fs.writei(ip, b"more\n", ip.size)
fs.iunlock(ip)
with fs.log.transaction():
    fs.iput(ip)

updated = disk.image()                   # bytes of the changed image
```

Use a pipe, the console and the helpers:

```python
from teachos.console import Console
from teachos.file import FileTable
from teachos.grep import match
from teachos.kbd import KeyboardDecoder
from teachos.printf import render

table = FileTable()
r, w = table.pipe()
table.write(w, b"abc")
table.read(r, 10)                        # b'abc'

console = Console()
console.intr("ls\r")
console.read(128)                        # b'ls\n'

KeyboardDecoder().feed([0x1E])           # [97], the code of 'a'
match("^ab*c$", "abbbc")                 # True
render("%d items in %s", 3, "box")       # '3 items in box'
```

## What the package does not do

- teachos does not boot or run a kernel.
- It has no processes, scheduler, system calls or shell.
- It has no real disk, keyboard or screen drivers.
- `MemDisk`, `Console`, `CgaScreen` and `KeyboardDecoder` are models that you
  drive from Python.
- `load_kernel` returns the entry point and the segments. It does not jump to
  the entry point.
- The file system has no calls for unlink, mkdir or open by path. Build these
  from `FileSystem` and `FileTable` if you need them.

## Running the tests

```
pytest
```