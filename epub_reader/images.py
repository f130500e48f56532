"""Embedded images: extraction, <img> resolution and cover detection."""

import io
import logging
import posixpath
import re
from collections.abc import Mapping, Sequence
from urllib.parse import unquote

from PIL import Image, UnidentifiedImageError

from .config import DEFAULT_COVER_KEYWORDS
from .errors import CoverNotFoundError, ImageResolutionMiss
from .metadata import PackageDocument, find_by_suffix, resolve_href, split_href
from .models import ImageReference

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

# Cover cascade strategy names, in evaluation order
STRATEGY_FILENAME = "filename"
STRATEGY_OPF = "opf"
STRATEGY_FIRST_IMAGE = "first_image"

_IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_SRC_ATTR = re.compile(r"""(?<![\w:-])src\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)
_ALT_ATTR = re.compile(r"""(?<![\w:-])alt\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)


def is_image_path(path: str) -> bool:
    return path.lower().endswith(IMAGE_EXTENSIONS)


def extract_images(entries: dict[str, bytes]) -> dict[str, bytes]:
    """All raster images of the archive keyed by path, in archive order."""
    return {path: data for path, data in entries.items() if is_image_path(path)}


def _attribute(pattern: re.Pattern, tag: str) -> str | None:
    match = pattern.search(tag)
    if not match:
        return None
    return next(group for group in match.groups() if group is not None)


def _strip_relative_prefixes(path: str) -> str:
    previous = None
    while path != previous:
        previous = path
        for prefix in ("/", "../", "./"):
            if path.startswith(prefix):
                path = path[len(prefix):]
    return path


def find_image_path(src: str, images: Mapping[str, bytes], base_dir: str = "") -> str:
    """Resolve an <img> src against the archive's images.

    Tried in order, first hit wins:
    1. the src exactly as written
    2. the src relative to the referencing document's directory
    3. the src with leading "/", "../" and "./" removed, as a path suffix
    4. the bare file name, as a path suffix

    Raises:
        ImageResolutionMiss: If no strategy matches
    """
    path, _ = split_href(unquote(src.strip()))
    path = path.split("?", 1)[0]
    if not path:
        raise ImageResolutionMiss(src)

    if path in images:
        return path

    relative = resolve_href(base_dir, path)
    if relative in images:
        return relative

    found = find_by_suffix(images, _strip_relative_prefixes(path))
    if found is None:
        found = find_by_suffix(images, posixpath.basename(path))
    if found is None:
        raise ImageResolutionMiss(src)
    return found


def resolve_image(src: str, images: Mapping[str, bytes], base_dir: str = "") -> str | None:
    """Like find_image_path, but None on a miss."""
    try:
        return find_image_path(src, images, base_dir)
    except ImageResolutionMiss as e:
        logger.debug("%s", e.message)
        return None


def image_size(data: bytes) -> tuple[int, int] | None:
    """Pixel size of an image, None when Pillow cannot decode it."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            size = image.size
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        logger.debug("Undecodable image (%d bytes): %s", len(data), e)
        return None
    return size


def extract_chapter_images(
    markup: str,
    images: Mapping[str, bytes],
    base_dir: str = "",
    decode: bool = True,
) -> list[ImageReference]:
    """Resolve the <img> tags of a chapter against the book's images.

    Offsets index into markup, which should be the display-cleaned text the
    references are delivered with. Unresolvable or undecodable references are
    dropped.

    Args:
        markup: Display-cleaned chapter markup
        images: Archive path -> image bytes
        base_dir: Directory of the chapter document inside the archive
        decode: Require the bytes to decode with Pillow

    Returns:
        References in document order
    """
    references = []
    for match in _IMG_TAG.finditer(markup):
        tag = match.group(0)
        src = _attribute(_SRC_ATTR, tag)
        if not src:
            continue
        path = resolve_image(src, images, base_dir)
        if path is None:
            continue

        data = images[path]
        width = height = 0
        if decode:
            size = image_size(data)
            if size is None:
                continue
            width, height = size

        references.append(
            ImageReference(
                data=data,
                alt=_attribute(_ALT_ATTR, tag) or None,
                offset=match.start(),
                src=src,
                path=path,
                width=width,
                height=height,
            )
        )
    return references


def detect_cover(
    images: Mapping[str, bytes],
    package: PackageDocument | None = None,
    keywords: Sequence[str] = DEFAULT_COVER_KEYWORDS,
) -> tuple[str, str]:
    """Pick the cover image.

    1. filename: first image whose path contains a keyword, keywords tried
       in priority order
    2. opf: the manifest item named by <meta name="cover"> (or carrying the
       cover-image property), relative to the OPF, then by path suffix
    3. first_image: whatever image the archive lists first. This is only a
       guess; callers must treat any cover as best-effort.

    Returns:
        (archive path, strategy name)

    Raises:
        CoverNotFoundError: If the archive has no usable image at all
    """
    for keyword in keywords:
        for path in images:
            if keyword in path:
                return path, STRATEGY_FILENAME

    if package is not None:
        for href in package.cover_hrefs():
            path = package.resolve(href)
            if path in images:
                return path, STRATEGY_OPF
            href_path, _ = split_href(unquote(href))
            found = find_by_suffix(images, _strip_relative_prefixes(href_path))
            if found is not None:
                return found, STRATEGY_OPF

    for path in images:
        return path, STRATEGY_FIRST_IMAGE

    raise CoverNotFoundError([STRATEGY_FILENAME, STRATEGY_OPF, STRATEGY_FIRST_IMAGE])


def find_cover(
    images: Mapping[str, bytes],
    package: PackageDocument | None = None,
    keywords: Sequence[str] = DEFAULT_COVER_KEYWORDS,
) -> bytes | None:
    """Cover bytes, or None when the book has no images."""
    try:
        path, strategy = detect_cover(images, package, keywords)
    except CoverNotFoundError:
        logger.debug("No cover image found")
        return None
    logger.debug("Cover %s found via %s", path, strategy)
    return images[path]
