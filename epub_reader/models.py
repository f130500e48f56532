"""Data model for parsed EPUB books.

All values are frozen: a Book is built once by the loader and only ever read
afterwards. Derived values (ChapterContent, ExpandableChapter) are produced
on demand and never stored on the Book.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Chapter:
    """A content document in reading order.

    Attributes:
        title: From <title>, else first <h1>, else "Chapter N"
        content: The original XHTML, unmodified
        order: Zero-based position in Book.chapters
        path: Archive path of the content document
    """

    title: str
    content: str
    order: int
    path: str = ""


@dataclass(frozen=True)
class TocEntry:
    """One entry of the archive's own navigation document (NAV or NCX)."""

    title: str
    href: str = ""
    anchor: str | None = None
    play_order: int = 0
    children: tuple["TocEntry", ...] = ()

    def flatten(self) -> list["TocEntry"]:
        """This entry followed by all of its descendants, depth first."""
        result = [self]
        for child in self.children:
            result.extend(child.flatten())
        return result


@dataclass(frozen=True)
class BookMetadata:
    """Book-level metadata."""

    title: str = UNKNOWN
    author: str = UNKNOWN
    description: str = ""


@dataclass(frozen=True)
class Book:
    """A fully loaded EPUB.

    Attributes:
        title: dc:title of the package document, or "Unknown"
        author: dc:creator of the package document, or "Unknown"
        chapters: Chapters in reading order; chapters[i].order == i
        images: Archive path -> raw image bytes (read-only mapping)
        cover_image: Best-effort cover bytes, None when nothing was found
        toc: Entries of the navigation document, empty when absent
        warnings: Non-fatal problems met while loading
    """

    title: str = UNKNOWN
    author: str = UNKNOWN
    chapters: tuple[Chapter, ...] = ()
    images: Mapping[str, bytes] = field(default_factory=dict, hash=False)
    cover_image: bytes | None = None
    toc: tuple[TocEntry, ...] = ()
    warnings: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "images", MappingProxyType(dict(self.images)))

    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    def get_chapter(self, index: int) -> Chapter | None:
        """Return the chapter at index, or None when out of range."""
        if 0 <= index < len(self.chapters):
            return self.chapters[index]
        return None


@dataclass(frozen=True)
class ImageReference:
    """An <img> of a chapter resolved against the book's images.

    Attributes:
        data: Raw image bytes (already checked to decode)
        alt: alt attribute, None when absent or empty
        offset: Index of the <img tag inside ChapterContent.text
        src: The src attribute as written in the markup
        path: Archive path the reference resolved to
        width: Pixel width, 0 when the image was not decoded
        height: Pixel height, 0 when the image was not decoded
    """

    data: bytes
    alt: str | None
    offset: int
    src: str = ""
    path: str = ""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class ChapterContent:
    """Display-ready markup of one chapter plus its images."""

    text: str = ""
    images: tuple[ImageReference, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.images


@dataclass(frozen=True)
class ExpandableChapter:
    """A navigation node: a chapter and the run of chapters nested under it."""

    chapter: Chapter
    children: tuple[Chapter, ...] = ()
    is_expanded: bool = False

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.chapter.title,
            "order": self.chapter.order,
            "is_expanded": self.is_expanded,
            "children": [
                {"title": child.title, "order": child.order} for child in self.children
            ],
        }
