[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "teachos"
version = "0.1.0"
description = "A small teaching file system, disk image builder and Unix-style text tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "filesystem",
    "disk-image",
    "buffer-cache",
    "write-ahead-log",
    "inode",
    "elf",
    "teaching",
    "unix-tools",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
teachos-mkfs = "teachos.mkfs:main"
teachos-grep = "teachos.grep:main"
teachos-cat = "teachos.cat:main"
teachos-echo = "teachos.echo:main"
teachos-fold = "teachos.fold:main"
teachos-head = "teachos.head:main"
teachos-ls = "teachos.ls:main"
teachos-cp = "teachos.cp:main"
teachos-mv = "teachos.mv:main"

[tool.hatch.build.targets.wheel]
packages = ["teachos"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
