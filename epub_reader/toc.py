"""Navigation document parsing (EPUB3 NAV and EPUB2 NCX).

Only used when the navigation hierarchy is taken from the book's own table
of contents instead of the title heuristics.
"""

import logging
import posixpath
import warnings

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning
from lxml import etree

from .metadata import NAMESPACES, PackageDocument, local_name, parse_xml, resolve_href, split_href
from .models import TocEntry

logger = logging.getLogger(__name__)

NAV_FALLBACK_NAMES = ("nav.xhtml", "nav.html", "toc.xhtml", "toc.html")


class TOCParser:
    """Parses the table of contents of an archive into TocEntry trees."""

    def __init__(self, entries: dict[str, bytes], package: PackageDocument | None = None):
        self.entries = entries
        self.package = package

    def parse(self) -> list[TocEntry]:
        """Parse the TOC, preferring NAV over NCX. Empty when neither exists."""
        nav_path = self._find_nav_document()
        if nav_path:
            entries = self._parse_nav(nav_path)
            if entries:
                return entries

        ncx_path = self._find_ncx()
        if ncx_path:
            return self._parse_ncx(ncx_path)

        return []

    def _find_nav_document(self) -> str | None:
        """Find the EPUB3 navigation document."""
        if self.package is not None:
            path = self.package.nav_path()
            if path in self.entries:
                return path
        for path in self.entries:
            if posixpath.basename(path).lower() in NAV_FALLBACK_NAMES:
                return path
        return None

    def _find_ncx(self) -> str | None:
        """Find the EPUB2 NCX file."""
        if self.package is not None:
            path = self.package.ncx_path()
            if path in self.entries:
                return path
        for path in self.entries:
            if path.lower().endswith(".ncx"):
                return path
        return None

    def _parse_nav(self, nav_path: str) -> list[TocEntry]:
        """Parse EPUB3 NAV document."""
        # NAV documents are XHTML; html.parser is the lenient choice here
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
            soup = BeautifulSoup(self.entries[nav_path], "html.parser")

        nav = soup.find("nav", attrs={"epub:type": "toc"})
        if not nav:
            nav = soup.find("nav", id="toc")
        if not nav:
            nav = soup.find("nav")
        if not nav:
            return []

        ol = nav.find("ol")
        if not ol:
            return []
        return self._parse_nav_ol(ol, posixpath.dirname(nav_path), play_order=[0])

    def _parse_nav_ol(self, ol: Tag, base_dir: str, play_order: list[int]) -> list[TocEntry]:
        """Recursively parse NAV ordered list."""
        result = []
        for li in ol.find_all("li", recursive=False):
            a = li.find(["a", "span"])
            if not a:
                continue
            title = a.get_text(strip=True)
            href, anchor = split_href(a.get("href", ""))

            play_order[0] += 1
            order = play_order[0]

            nested_ol = li.find("ol")
            children = self._parse_nav_ol(nested_ol, base_dir, play_order) if nested_ol else []
            result.append(
                TocEntry(
                    title=title,
                    href=resolve_href(base_dir, href) if href else "",
                    anchor=anchor,
                    play_order=order,
                    children=tuple(children),
                )
            )
        return result

    def _parse_ncx(self, ncx_path: str) -> list[TocEntry]:
        """Parse EPUB2 NCX file."""
        try:
            tree = parse_xml(self.entries[ncx_path])
        except (etree.XMLSyntaxError, ValueError) as e:
            logger.debug("NCX %s unreadable: %s", ncx_path, e)
            return []

        nav_map = tree.find(f".//{{{NAMESPACES['ncx']}}}navMap")
        if nav_map is None:
            nav_map = tree.find(".//navMap")
        if nav_map is None:
            return []
        return self._parse_ncx_navmap(nav_map, posixpath.dirname(ncx_path))

    def _parse_ncx_navmap(self, nav_map, base_dir: str) -> list[TocEntry]:
        """Recursively parse NCX navMap."""
        result = []
        for nav_point in nav_map:
            if local_name(nav_point.tag) != "navPoint":
                continue

            title = ""
            src = ""
            for child in nav_point:
                name = local_name(child.tag)
                if name == "navLabel" and not title:
                    title = "".join(child.itertext()).strip()
                elif name == "content" and not src:
                    src = child.get("src", "")

            href, anchor = split_href(src)
            try:
                play_order = int(nav_point.get("playOrder", 0))
            except ValueError:
                play_order = 0

            result.append(
                TocEntry(
                    title=title,
                    href=resolve_href(base_dir, href) if href else "",
                    anchor=anchor,
                    play_order=play_order,
                    children=tuple(self._parse_ncx_navmap(nav_point, base_dir)),
                )
            )
        return result


def parse_toc(entries: dict[str, bytes], package: PackageDocument | None = None) -> list[TocEntry]:
    """Table of contents of an archive; never raises."""
    return TOCParser(entries, package).parse()
