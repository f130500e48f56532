import argparse
import sys
from pathlib import Path

from .config import ChapterOrder, HierarchySource, ReaderConfig
from .errors import EpubReaderError, format_error_for_user
from .logger import enable_debug, enable_quiet, get_logger, setup_logging
from .reader import EpubReader

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epub-reader",
        description="Inspect EPUB files: metadata, chapters, cleaned text and cover",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Title, author, chapter count and cover
  epub-reader mybook.epub info

  # Chapter list, or the navigation tree with chapter 4 expanded
  epub-reader mybook.epub chapters
  epub-reader mybook.epub chapters --tree --current 4

  # Cleaned markup of the first chapter, or its text as read aloud
  epub-reader mybook.epub show 0
  epub-reader mybook.epub show 0 --speech

  # Save the cover image
  epub-reader mybook.epub cover cover.jpg

Chapter Order:
  path   - Lexicographic by archive path (default)
  spine  - OPF spine order, remaining documents by path

Hierarchy:
  heuristic - Group by title numbering and indentation (default)
  toc       - Use the book's NAV/NCX, heuristic when absent
        """,
    )
    parser.add_argument("sourcefile", help="EPUB file to read")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument(
        "--order",
        choices=[o.value for o in ChapterOrder],
        help="Chapter ordering (default: path)",
    )
    parser.add_argument(
        "--hierarchy",
        choices=[h.value for h in HierarchySource],
        help="Navigation hierarchy source (default: heuristic)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose (debug) logging"
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Quiet mode (only warnings and errors)"
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("info", help="Show book metadata")

    chapters = subparsers.add_parser("chapters", help="List chapters")
    chapters.add_argument("--tree", action="store_true", help="Show navigation hierarchy")
    chapters.add_argument(
        "--current", type=int, default=-1, help="Currently selected chapter index"
    )

    show = subparsers.add_parser("show", help="Print one chapter")
    show.add_argument("index", type=int, help="Zero-based chapter index")
    show.add_argument("--speech", action="store_true", help="Print text as sent to TTS")

    cover = subparsers.add_parser("cover", help="Write the cover image to a file")
    cover.add_argument("output", help="Output image path")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging()
    if args.verbose:
        enable_debug()
    elif args.quiet:
        enable_quiet()

    try:
        config = ReaderConfig.load(
            args.config, chapter_order=args.order, hierarchy_source=args.hierarchy
        )
        with EpubReader(config) as reader:
            book = reader.load(args.sourcefile)
            return _run_command(reader, book, args)
    except (EpubReaderError, OSError) as e:
        logger.error("Failed to open %s", args.sourcefile)
        print(format_error_for_user(e), file=sys.stderr)
        return 1


def _run_command(reader: EpubReader, book, args) -> int:
    command = args.command or "info"

    if command == "info":
        metadata = reader.get_book_metadata(book)
        print(f"Title:    {metadata.title}")
        print(f"Author:   {metadata.author}")
        print(f"Chapters: {reader.get_chapter_count(book)}")
        print(f"Images:   {len(book.images)}")
        print(f"Cover:    {'yes' if book.cover_image is not None else 'no'}")
        for warning in book.warnings:
            print(f"Warning:  {warning}")
        return 0

    if command == "chapters":
        if args.tree:
            for node in reader.get_navigation(book, args.current):
                marker = "-" if node.is_expanded else ("+" if node.has_children else " ")
                print(f"{marker} {node.chapter.order:>4}  {node.chapter.title}")
                if node.is_expanded:
                    for child in node.children:
                        print(f"    {child.order:>4}  {child.title.strip()}")
        else:
            for chapter in book.chapters:
                print(f"{chapter.order:>4}  {chapter.title}")
        return 0

    if command == "show":
        if book.get_chapter(args.index) is None:
            logger.warning("No chapter %d (book has %d)", args.index, book.chapter_count)
            return 1
        if args.speech:
            print(reader.get_speech_text(book, args.index))
        else:
            content = reader.get_chapter_content(book, args.index)
            print(content.text)
            for image in content.images:
                logger.info("Image at %d: %s (%dx%d)", image.offset, image.path, image.width, image.height)
        return 0

    if command == "cover":
        if book.cover_image is None:
            logger.warning("Book has no cover image")
            return 1
        output = Path(args.output)
        output.write_bytes(book.cover_image)
        logger.info("Cover saved to: %s", output)
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
