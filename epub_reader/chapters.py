"""Chapter discovery, ordering and titling."""

import logging
import re

from .config import ChapterOrder
from .errors import ChapterDecodeError
from .metadata import PackageDocument
from .models import Chapter
from .sanitizer import decode_entities

logger = logging.getLogger(__name__)

CHAPTER_EXTENSIONS = (".html", ".xhtml", ".htm")

_TITLE = re.compile(r"<title\b[^>]*>([^<]+)</title\s*>", re.IGNORECASE)
_H1 = re.compile(r"<h1\b[^>]*>([^<]+)</h1\s*>", re.IGNORECASE)


def is_chapter_path(path: str) -> bool:
    return path.lower().endswith(CHAPTER_EXTENSIONS)


def extract_title(html: str) -> str | None:
    """Title from the first <title>, else the first <h1>, else None.

    Only plain-text element bodies count; "<h1><span>..</span></h1>" is not
    a title.
    """
    for pattern in (_TITLE, _H1):
        match = pattern.search(html)
        if match:
            title = decode_entities(match.group(1)).strip()
            if title:
                return title
    return None


def order_chapter_paths(
    entries: dict[str, bytes],
    order: ChapterOrder = ChapterOrder.PATH,
    package: PackageDocument | None = None,
) -> list[str]:
    """Content document paths in reading order.

    PATH order is lexicographic. SPINE order lists the spine documents first
    and appends every other content document by path; without a usable spine
    it is the same as PATH order.
    """
    candidates = sorted(path for path in entries if is_chapter_path(path))
    if order != ChapterOrder.SPINE or package is None:
        return candidates

    available = set(candidates)
    spine = [path for path in package.spine_paths() if path in available]
    if not spine:
        logger.debug("No usable spine in %s, ordering chapters by path", package.path)
        return candidates
    listed = set(spine)
    return spine + [path for path in candidates if path not in listed]


def decode_chapter(path: str, data: bytes) -> str:
    """Decode a content document as UTF-8.

    Raises:
        ChapterDecodeError: If the bytes are not valid UTF-8
    """
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ChapterDecodeError(path, details=str(e)) from e


def extract_chapters(
    entries: dict[str, bytes],
    order: ChapterOrder = ChapterOrder.PATH,
    package: PackageDocument | None = None,
    warnings: list[str] | None = None,
) -> list[Chapter]:
    """Build the ordered chapter list of an archive.

    Documents that are not valid UTF-8 are skipped without leaving a gap, so
    chapter orders are dense over the chapters actually returned.

    Args:
        entries: Archive path -> bytes
        order: Chapter ordering strategy
        package: Parsed OPF, needed for spine ordering
        warnings: Optional list that receives a message per skipped document

    Returns:
        Chapters with order == index
    """
    chapters: list[Chapter] = []
    for path in order_chapter_paths(entries, order, package):
        try:
            content = decode_chapter(path, entries[path])
        except ChapterDecodeError as e:
            logger.warning("Skipping chapter %s: not valid UTF-8", path)
            if warnings is not None:
                warnings.append(e.message)
            continue

        index = len(chapters)
        title = extract_title(content) or f"Chapter {index + 1}"
        chapters.append(Chapter(title=title, content=content, order=index, path=path))

    logger.debug("Extracted %d chapters", len(chapters))
    return chapters
