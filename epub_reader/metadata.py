"""Package document (OPF) lookup and metadata extraction.

The OPF is located by name rather than through META-INF/container.xml, which
accepts the looser layouts real-world EPUB producers emit.
"""

import logging
import posixpath
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from lxml import etree

from .errors import MetadataUnavailableError
from .models import UNKNOWN, BookMetadata

logger = logging.getLogger(__name__)

NAMESPACES = {
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "ncx": "http://www.daisy.org/z3986/2005/ncx/",
    "epub": "http://www.idpf.org/2007/ops",
}

NCX_MEDIA_TYPE = "application/x-dtbncx+xml"


def parse_xml(data: bytes) -> Any:
    """Parse XML leniently, without entity expansion or network access.

    Raises:
        etree.XMLSyntaxError, ValueError: If nothing usable could be recovered
    """
    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    root = etree.fromstring(data, parser=parser)
    if root is None:
        raise ValueError("document is empty")
    return root


def local_name(tag: Any) -> str:
    """Tag name without namespace or prefix; '' for comments and PIs."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def split_href(href: str) -> tuple[str, str | None]:
    """Split href into file path and anchor."""
    if "#" in href:
        path, anchor = href.split("#", 1)
        return path, anchor or None
    return href, None


def resolve_href(base_dir: str, href: str) -> str:
    """Resolve a document-relative href to an archive path."""
    path, _ = split_href(unquote(href.strip()))
    path = path.split("?", 1)[0]
    if not path:
        return ""
    joined = posixpath.normpath(posixpath.join(base_dir, path)) if base_dir else posixpath.normpath(path)
    while joined.startswith("../"):
        joined = joined[3:]
    return joined.lstrip("/")


def find_by_suffix(mapping: Mapping[str, Any], path: str) -> str | None:
    """First key equal to path or ending in '/' + path."""
    if not path:
        return None
    if path in mapping:
        return path
    suffix = "/" + path.lstrip("/")
    for key in mapping:
        if key.endswith(suffix):
            return key
    return None


def find_opf_path(entries: dict[str, Any]) -> str | None:
    """Locate the package document by name."""
    for path in entries:
        if path.lower().endswith(".opf") or "content.opf" in path:
            return path
    return None


class PackageDocument:
    """Parsed OPF with the lookups the reader needs."""

    def __init__(self, path: str, data: bytes):
        self.path = path
        self.base_dir = posixpath.dirname(path)
        try:
            self.root = parse_xml(data)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise MetadataUnavailableError(opf_path=path, details=str(e)) from e

    @classmethod
    def from_entries(cls, entries: dict[str, bytes]) -> "PackageDocument":
        """Find and parse the package document of an archive.

        Raises:
            MetadataUnavailableError: If there is no OPF or it cannot be parsed
        """
        opf_path = find_opf_path(entries)
        if opf_path is None:
            raise MetadataUnavailableError()
        return cls(opf_path, entries[opf_path])

    def _elements(self, name: str) -> list[Any]:
        return [el for el in self.root.iter() if local_name(el.tag) == name]

    def _dc_text(self, name: str) -> str | None:
        qualified = f"{{{NAMESPACES['dc']}}}{name}"
        for el in self.root.iter():
            if el.tag == qualified or el.tag == f"dc:{name}":
                text = "".join(el.itertext()).strip()
                return text or None
        return None

    @property
    def title(self) -> str | None:
        return self._dc_text("title")

    @property
    def creator(self) -> str | None:
        return self._dc_text("creator")

    def manifest(self) -> dict[str, dict[str, str]]:
        """Manifest items by id (first declaration wins)."""
        items: dict[str, dict[str, str]] = {}
        for el in self._elements("item"):
            item_id = el.get("id")
            if item_id and item_id not in items:
                items[item_id] = dict(el.attrib)
        return items

    def resolve(self, href: str) -> str:
        """Archive path of an href relative to the OPF's directory."""
        return resolve_href(self.base_dir, href)

    def cover_ids(self) -> list[str]:
        """ids named by <meta name="cover" content="..."/>."""
        return [
            el.get("content", "")
            for el in self._elements("meta")
            if el.get("name") == "cover" and el.get("content")
        ]

    def cover_hrefs(self) -> list[str]:
        """Candidate cover hrefs: meta-named items first, then cover-image properties."""
        manifest = self.manifest()
        hrefs = []
        for cover_id in self.cover_ids():
            item = manifest.get(cover_id)
            if item and item.get("href"):
                hrefs.append(item["href"])
        for item in manifest.values():
            properties = (item.get("properties") or "").split()
            if "cover-image" in properties and item.get("href"):
                hrefs.append(item["href"])
        return hrefs

    def spine_paths(self) -> list[str]:
        """Archive paths of spine documents, in spine order."""
        manifest = self.manifest()
        paths = []
        for el in self._elements("itemref"):
            item = manifest.get(el.get("idref", ""))
            if item and item.get("href"):
                path = self.resolve(item["href"])
                if path and path not in paths:
                    paths.append(path)
        return paths

    def nav_path(self) -> str | None:
        """EPUB3 navigation document declared in the manifest."""
        for item in self.manifest().values():
            if "nav" in (item.get("properties") or "").split() and item.get("href"):
                return self.resolve(item["href"])
        return None

    def ncx_path(self) -> str | None:
        """EPUB2 NCX declared by the spine's toc attribute or its media type."""
        manifest = self.manifest()
        for spine in self._elements("spine"):
            item = manifest.get(spine.get("toc", ""))
            if item and item.get("href"):
                return self.resolve(item["href"])
        for item in manifest.values():
            if item.get("media-type") == NCX_MEDIA_TYPE and item.get("href"):
                return self.resolve(item["href"])
        return None

    def to_metadata(self) -> BookMetadata:
        return BookMetadata(
            title=self.title or UNKNOWN,
            author=self.creator or UNKNOWN,
        )


def load_package(entries: dict[str, bytes]) -> PackageDocument | None:
    """Find and parse the OPF, None when it is absent or unreadable."""
    try:
        return PackageDocument.from_entries(entries)
    except MetadataUnavailableError as e:
        logger.debug("%s", e.message)
        return None


def extract_metadata(entries: dict[str, bytes]) -> BookMetadata:
    """Read title and author, defaulting to ("Unknown", "Unknown").

    Never raises: an absent or broken package document yields the defaults.
    """
    package = load_package(entries)
    if package is None:
        return BookMetadata()
    return package.to_metadata()
