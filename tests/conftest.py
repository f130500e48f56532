"""Pytest configuration and shared fixtures for epub_reader tests."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from fixtures.epub_factory import build_epub, create_test_epub, make_image, write_epub


# Mark test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory
    """
    temp_path = Path(tempfile.mkdtemp(prefix="epub_reader_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def png_bytes() -> bytes:
    """A small, valid PNG image."""
    return make_image("PNG")


@pytest.fixture
def sample_epub_bytes() -> bytes:
    """The end-to-end sample: OPF metadata, a cover and two chapters."""
    return build_epub({
        "content.opf": (
            '<?xml version="1.0"?>'
            '<package xmlns="http://www.idpf.org/2007/opf" version="2.0">'
            '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/">'
            "<dc:title>Sample</dc:title><dc:creator>Author</dc:creator>"
            "</metadata></package>"
        ),
        "cover.jpg": make_image("JPEG", color="green"),
        "ch1.xhtml": "<title>Intro</title><p>Hello &amp; welcome</p>",
        "ch2.xhtml": "<h1>Part Two</h1><p>More text</p>",
    })


@pytest.fixture
def standard_epub_bytes() -> bytes:
    """A conventional three-chapter EPUB 2 under OEBPS/."""
    return create_test_epub()


@pytest.fixture
def sample_epub(temp_dir: Path, standard_epub_bytes: bytes) -> Path:
    """The conventional EPUB written to disk.

    Returns:
        Path to the created EPUB file
    """
    return write_epub(temp_dir, standard_epub_bytes)
