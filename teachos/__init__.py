"""A teaching file system with log, buffer cache and image builder, plus console, ELF and Unix-style text tools."""

__version__ = "0.1.0"