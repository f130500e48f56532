"""ZIP container reading.

Turns an archive into a plain mapping of entry path to bytes. Nothing here
knows about EPUB; the whole archive is materialized in memory.
"""

import io
import logging
import os
import zipfile
import zlib
from typing import BinaryIO, Union

from .errors import CorruptArchiveError

logger = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, bytes, bytearray, BinaryIO]

# General purpose bit 0: entry data is encrypted
_ENCRYPTED_FLAG = 0x1


def normalize_entry_path(name: str) -> str:
    """Normalize an entry name to a forward-slash, archive-relative path."""
    path = name.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def _describe(source: ArchiveSource) -> str | None:
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return getattr(source, "name", None) if not isinstance(source, (bytes, bytearray)) else None


def _as_seekable(source: ArchiveSource) -> Union[str, os.PathLike, BinaryIO]:
    """Return something zipfile can open; buffers non-seekable streams."""
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, (str, os.PathLike)):
        return source
    seekable = getattr(source, "seekable", None)
    if seekable is not None and seekable():
        return source
    return io.BytesIO(source.read())


def read_archive(source: ArchiveSource) -> dict[str, bytes]:
    """Read every non-directory entry of a ZIP archive.

    Args:
        source: Path, raw bytes, or binary stream of the archive

    Returns:
        Mapping of normalized entry path to raw bytes, in archive order.
        Duplicate paths keep the last entry's bytes.

    Raises:
        CorruptArchiveError: If the archive is malformed, truncated or has
            encrypted entries
        FileNotFoundError: If source is a path that does not exist
    """
    label = _describe(source)
    entries: dict[str, bytes] = {}
    try:
        with zipfile.ZipFile(_as_seekable(source)) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                path = normalize_entry_path(info.filename)
                if not path:
                    continue
                if info.flag_bits & _ENCRYPTED_FLAG:
                    raise CorruptArchiveError(details=f"entry is encrypted: {path}", source=label)
                if path in entries:
                    logger.debug("Duplicate archive entry %s, keeping last", path)
                entries[path] = archive.read(info)
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, ValueError) as e:
        logger.debug("Archive %s unreadable: %s", label or "<stream>", e)
        raise CorruptArchiveError(details=str(e), source=label) from e

    logger.debug("Read %d entries from %s", len(entries), label or "<stream>")
    return entries
