"""Navigation-drawer hierarchy for a flat chapter list.

The default grouping is a title heuristic, not a table of contents: it only
looks at numbering ("1" then "1.1"), leading indentation and bullet-like
markers, and it nests at most one level deep. It can both miss real nesting
and invent nesting that the book's own NAV/NCX does not have. Testers should
judge it as a drawer affordance only.
"""

import logging
import re
from collections.abc import Sequence

from .models import Chapter, ExpandableChapter, TocEntry

logger = logging.getLogger(__name__)

CHILD_MARKERS = ("→", "•", "-", "*")

_LEADING_NUMBER = re.compile(r"^(\d+(?:\.\d+)*)")


def extract_leading_number(title: str) -> str | None:
    """Dotted numeric prefix of a title ("1.2.3" from "1.2.3 Introduction")."""
    match = _LEADING_NUMBER.match(title.strip())
    return match.group(1) if match else None


def is_nested_chapter(parent_title: str, child_title: str) -> bool:
    """Whether child_title reads as a direct sub-chapter of parent_title."""
    parent_number = extract_leading_number(parent_title)
    child_number = extract_leading_number(child_title)
    if parent_number is not None and child_number is not None:
        prefix = parent_number + "."
        if child_number.startswith(prefix) and "." not in child_number[len(prefix):]:
            return True

    # Indented under an unindented parent
    if child_title != child_title.lstrip() and parent_title == parent_title.lstrip():
        return True

    return child_title.strip().startswith(CHILD_MARKERS)


def group_chapters(chapters: Sequence[Chapter], current_index: int = -1) -> list[ExpandableChapter]:
    """Group chapters into top-level nodes with runs of direct children.

    Each chapter greedily takes the chapters right after it that are nested
    under it; the first one that is not starts the next top-level node. A
    node whose children include current_index is expanded.
    """
    grouped = []
    i = 0
    while i < len(chapters):
        current = chapters[i]
        j = i + 1
        while j < len(chapters) and is_nested_chapter(current.title, chapters[j].title):
            j += 1
        children = tuple(chapters[i + 1:j])
        grouped.append(
            ExpandableChapter(
                chapter=current,
                children=children,
                is_expanded=any(child.order == current_index for child in children),
            )
        )
        i = j
    return grouped


def group_chapters_by_toc(
    chapters: Sequence[Chapter],
    toc: Sequence[TocEntry],
    current_index: int = -1,
) -> list[ExpandableChapter]:
    """Group chapters along the book's own table of contents.

    Top-level TOC entries become nodes, their descendants become children.
    Entries are matched to chapters by archive path (anchors ignored), each
    chapter is used once and chapters the TOC never mentions are left out.
    Returns an empty list when nothing matches, so the caller can fall back
    to group_chapters().
    """
    by_path = {chapter.path: chapter for chapter in chapters if chapter.path}
    used: set[int] = set()

    def take(entry: TocEntry) -> Chapter | None:
        chapter = by_path.get(entry.href)
        if chapter is None or chapter.order in used:
            return None
        used.add(chapter.order)
        return chapter

    grouped = []
    for entry in toc:
        parent = take(entry)
        descendants = [take(child) for child in entry.flatten()[1:]]
        children = tuple(c for c in descendants if c is not None)
        if parent is None:
            if not children:
                continue
            parent, children = children[0], children[1:]
        grouped.append(
            ExpandableChapter(
                chapter=parent,
                children=children,
                is_expanded=any(child.order == current_index for child in children),
            )
        )
    if not grouped:
        logger.debug("Table of contents matched no chapters")
    return grouped
