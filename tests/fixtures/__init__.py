"""Test fixtures for epub_reader.

This module provides in-memory EPUB builders for well-formed, unusual and
broken archives.
"""

from .epub_factory import (
    build_epub,
    create_test_epub,
    make_chapter,
    make_image,
    make_opf,
    write_epub,
)

__all__ = [
    "build_epub",
    "create_test_epub",
    "make_chapter",
    "make_image",
    "make_opf",
    "write_epub",
]
