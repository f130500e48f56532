# Chapter extraction
from .chapters import (
    CHAPTER_EXTENSIONS,
    extract_chapters,
    extract_title,
)

# Configuration
from .config import (
    ChapterOrder,
    HierarchySource,
    ReaderConfig,
)

# Container reading
from .container import read_archive

# Custom errors
from .errors import (
    ChapterDecodeError,
    ConfigurationError,
    CorruptArchiveError,
    CoverNotFoundError,
    EpubReaderError,
    ImageResolutionMiss,
    MetadataUnavailableError,
    format_error_for_user,
)

# Navigation hierarchy
from .hierarchy import (
    extract_leading_number,
    group_chapters,
    group_chapters_by_toc,
    is_nested_chapter,
)

# Images and cover
from .images import (
    IMAGE_EXTENSIONS,
    detect_cover,
    extract_chapter_images,
    extract_images,
    find_cover,
    find_image_path,
)

# Logging utilities
from .logger import (
    enable_debug,
    enable_quiet,
    get_logger,
    set_level,
    setup_logging,
)

# Package document
from .metadata import (
    PackageDocument,
    extract_metadata,
    find_opf_path,
)

# Data model
from .models import (
    Book,
    BookMetadata,
    Chapter,
    ChapterContent,
    ExpandableChapter,
    ImageReference,
    TocEntry,
)

# Reader service
from .reader import (
    CachedChapterContent,
    EpubReader,
    get_book_metadata,
    get_chapter_content,
    get_chapter_count,
    get_speech_text,
    load_epub,
)

# Sanitizing
from .sanitizer import (
    clean_for_display,
    clean_for_speech,
    decode_entities,
)

# Table of contents
from .toc import TOCParser, parse_toc

__all__ = [
    # Reader service
    'EpubReader',
    'CachedChapterContent',
    'load_epub',
    'get_chapter_content',
    'get_speech_text',
    'get_chapter_count',
    'get_book_metadata',
    # Data model
    'Book',
    'BookMetadata',
    'Chapter',
    'ChapterContent',
    'ImageReference',
    'ExpandableChapter',
    'TocEntry',
    # Configuration
    'ReaderConfig',
    'ChapterOrder',
    'HierarchySource',
    # Container reading
    'read_archive',
    # Package document
    'PackageDocument',
    'extract_metadata',
    'find_opf_path',
    # Chapter extraction
    'CHAPTER_EXTENSIONS',
    'extract_chapters',
    'extract_title',
    # Sanitizing
    'clean_for_display',
    'clean_for_speech',
    'decode_entities',
    # Images and cover
    'IMAGE_EXTENSIONS',
    'extract_images',
    'extract_chapter_images',
    'find_image_path',
    'detect_cover',
    'find_cover',
    # Navigation hierarchy
    'group_chapters',
    'group_chapters_by_toc',
    'is_nested_chapter',
    'extract_leading_number',
    # Table of contents
    'TOCParser',
    'parse_toc',
    # Logging
    'get_logger',
    'setup_logging',
    'set_level',
    'enable_debug',
    'enable_quiet',
    # Custom errors
    'EpubReaderError',
    'CorruptArchiveError',
    'MetadataUnavailableError',
    'ChapterDecodeError',
    'ImageResolutionMiss',
    'CoverNotFoundError',
    'ConfigurationError',
    'format_error_for_user',
]
