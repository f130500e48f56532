"""
EPUB reader service.

Loads an archive into an immutable Book in one blocking call, then derives
display markup, speech text and navigation per chapter on demand. Nothing
derived is cached here; wrap a reader in CachedChapterContent for that.
"""

import logging
import posixpath
from typing import Any

from .chapters import extract_chapters
from .config import HierarchySource, ReaderConfig
from .container import ArchiveSource, read_archive
from .hierarchy import group_chapters, group_chapters_by_toc
from .images import extract_chapter_images, extract_images, find_cover
from .metadata import load_package
from .models import Book, BookMetadata, ChapterContent, ExpandableChapter
from .sanitizer import clean_for_display, clean_for_speech
from .toc import parse_toc

logger = logging.getLogger(__name__)


class EpubReader:
    """
    Turns EPUB archives into Books and answers per-chapter queries.

    A reader holds only its configuration, so one instance can serve any
    number of books and threads.
    """

    def __init__(self, config: ReaderConfig | None = None):
        self.config = config or ReaderConfig()
        self._closed = False

    def __enter__(self) -> "EpubReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the reader. Books already loaded stay valid."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def load(self, source: ArchiveSource) -> Book:
        """
        Load an EPUB archive.

        Args:
            source: Path, raw bytes, or binary stream of the archive

        Returns:
            The fully materialized Book

        Raises:
            CorruptArchiveError: If the input is not a readable ZIP archive
            ValueError: If the reader has been closed
        """
        if self._closed:
            raise ValueError("EpubReader is closed")

        entries = read_archive(source)
        warnings: list[str] = []

        package = load_package(entries)
        if package is None:
            warnings.append("Package document missing or unreadable; metadata defaulted")
            metadata = BookMetadata()
        else:
            metadata = package.to_metadata()

        chapters = extract_chapters(entries, self.config.chapter_order, package, warnings)
        images = extract_images(entries)

        cover = find_cover(images, package, self.config.cover_keywords)
        if cover is None:
            warnings.append("No cover image found")

        toc = parse_toc(entries, package) if self.config.hierarchy_source == HierarchySource.TOC else []

        book = Book(
            title=metadata.title,
            author=metadata.author,
            chapters=tuple(chapters),
            images=images,
            cover_image=cover,
            toc=tuple(toc),
            warnings=tuple(warnings),
        )
        logger.info(
            "Loaded '%s' by %s: %d chapters, %d images%s",
            book.title,
            book.author,
            book.chapter_count,
            len(images),
            ", cover found" if cover is not None else "",
        )
        return book

    def get_chapter_content(self, book: Book, index: int) -> ChapterContent:
        """
        Display markup and images of one chapter.

        Out-of-range indexes give an empty ChapterContent instead of raising.
        """
        chapter = book.get_chapter(index)
        if chapter is None:
            logger.debug("Chapter index %d out of range (0..%d)", index, book.chapter_count - 1)
            return ChapterContent()

        text = clean_for_display(chapter.content)
        images = extract_chapter_images(
            text,
            book.images,
            base_dir=posixpath.dirname(chapter.path),
            decode=self.config.decode_images,
        )
        return ChapterContent(text=text, images=tuple(images))

    def get_speech_text(self, book: Book, index: int) -> str:
        """Plain text of one chapter for TTS, '' when index is out of range."""
        chapter = book.get_chapter(index)
        if chapter is None:
            return ""
        return clean_for_speech(chapter.content)

    def get_chapter_count(self, book: Book) -> int:
        return book.chapter_count

    def get_book_metadata(self, book: Book) -> BookMetadata:
        return BookMetadata(title=book.title, author=book.author, description="")

    def get_navigation(self, book: Book, current_index: int = -1) -> list[ExpandableChapter]:
        """
        Navigation-drawer hierarchy of a book.

        Uses the book's table of contents when configured and available,
        otherwise the title heuristics.
        """
        if self.config.hierarchy_source == HierarchySource.TOC and book.toc:
            grouped = group_chapters_by_toc(book.chapters, book.toc, current_index)
            if grouped:
                return grouped
        return group_chapters(book.chapters, current_index)


class CachedChapterContent:
    """Memoizes get_chapter_content of one reader for one book."""

    def __init__(self, reader: EpubReader, book: Book):
        self.reader = reader
        self.book = book
        self._cache: dict[int, ChapterContent] = {}

    def get(self, index: int) -> ChapterContent:
        if index not in self._cache:
            self._cache[index] = self.reader.get_chapter_content(self.book, index)
        return self._cache[index]

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


def load_epub(source: ArchiveSource, config: ReaderConfig | None = None) -> Book:
    """
    Convenience function to load an EPUB.

    Args:
        source: Path, raw bytes, or binary stream of the archive
        config: Optional reader configuration

    Returns:
        The loaded Book
    """
    with EpubReader(config) as reader:
        return reader.load(source)


def get_chapter_content(book: Book, index: int) -> ChapterContent:
    return EpubReader().get_chapter_content(book, index)


def get_speech_text(book: Book, index: int) -> str:
    return EpubReader().get_speech_text(book, index)


def get_chapter_count(book: Book) -> int:
    return book.chapter_count


def get_book_metadata(book: Book) -> BookMetadata:
    return EpubReader().get_book_metadata(book)
