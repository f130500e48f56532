"""Tests for the EpubReader service and module-level conveniences."""

import io
import logging

import pytest

from epub_reader import (
    Book,
    CachedChapterContent,
    ChapterOrder,
    CorruptArchiveError,
    EpubReader,
    HierarchySource,
    ReaderConfig,
    get_book_metadata,
    get_chapter_content,
    get_chapter_count,
    get_speech_text,
    load_epub,
)
from fixtures.epub_factory import build_epub, create_test_epub, make_chapter, make_image, make_opf

NAV_XHTML = """<html xmlns:epub="http://www.idpf.org/2007/ops"><body>
<nav epub:type="toc"><ol>
  <li><a href="b.xhtml">Part B</a><ol><li><a href="a.xhtml">Inside B</a></li></ol></li>
</ol></nav></body></html>"""


@pytest.fixture
def reader():
    with EpubReader() as r:
        yield r


class TestEndToEnd:
    """The reference scenario: OPF metadata, a cover and two chapters."""

    def test_book(self, reader, sample_epub_bytes):
        book = reader.load(sample_epub_bytes)

        assert book.title == "Sample"
        assert book.author == "Author"
        assert reader.get_chapter_count(book) == 2
        assert [c.title for c in book.chapters] == ["Intro", "Part Two"]
        assert [c.path for c in book.chapters] == ["ch1.xhtml", "ch2.xhtml"]
        assert book.warnings == ()

    def test_chapter_content(self, reader, sample_epub_bytes):
        book = reader.load(sample_epub_bytes)

        content = reader.get_chapter_content(book, 0)

        assert "Hello & welcome" in content.text
        assert "<p>" in content.text
        assert content.images == ()

    def test_speech_text(self, reader, sample_epub_bytes):
        book = reader.load(sample_epub_bytes)
        assert reader.get_speech_text(book, 0) == "Hello & welcome"

    def test_cover_from_filename(self, reader, sample_epub_bytes):
        book = reader.load(sample_epub_bytes)
        assert book.cover_image is not None
        assert book.cover_image == book.images["cover.jpg"]

    def test_raw_content_unmodified(self, reader, sample_epub_bytes):
        book = reader.load(sample_epub_bytes)
        assert book.chapters[0].content == "<title>Intro</title><p>Hello &amp; welcome</p>"

    def test_module_functions(self, sample_epub_bytes):
        book = load_epub(sample_epub_bytes)

        assert get_chapter_count(book) == 2
        assert get_book_metadata(book).title == "Sample"
        assert get_book_metadata(book).description == ""
        assert get_speech_text(book, 1) == "Part Two More text"
        assert "<h1>Part Two</h1>" in get_chapter_content(book, 1).text


class TestLoad:
    """Tests for loading from different sources and degraded archives."""

    def test_from_path(self, reader, sample_epub):
        assert reader.load(sample_epub).chapter_count == 3

    def test_from_str_path(self, reader, sample_epub):
        assert reader.load(str(sample_epub)).title == "Test Book"

    def test_from_stream(self, reader, standard_epub_bytes):
        assert reader.load(io.BytesIO(standard_epub_bytes)).author == "Test Author"

    def test_deterministic(self, reader, standard_epub_bytes):
        first = reader.load(standard_epub_bytes)
        second = reader.load(standard_epub_bytes)

        assert first.chapters == second.chapters
        assert first.cover_image == second.cover_image
        assert reader.get_chapter_content(first, 1) == reader.get_chapter_content(second, 1)

    def test_images_read_only(self, reader, png_bytes):
        data = build_epub({"OEBPS/ch1.xhtml": make_chapter("One", "<p>x</p>"), "OEBPS/cover.png": png_bytes})
        book = reader.load(data)

        with pytest.raises(TypeError):
            book.images["OEBPS/extra.png"] = png_bytes
        with pytest.raises(TypeError):
            del book.images["OEBPS/cover.png"]
        assert list(book.images) == ["OEBPS/cover.png"]

    def test_book_copies_images(self, png_bytes):
        images = {"a.png": png_bytes}
        book = Book(images=images)
        images["b.png"] = png_bytes
        assert list(book.images) == ["a.png"]

    def test_truncated_archive(self, reader, standard_epub_bytes):
        with pytest.raises(CorruptArchiveError):
            reader.load(standard_epub_bytes[: len(standard_epub_bytes) // 2])

    def test_missing_file(self, reader, temp_dir):
        with pytest.raises(FileNotFoundError):
            reader.load(temp_dir / "missing.epub")

    def test_no_package_document(self, reader, png_bytes):
        book = reader.load(build_epub({"a.xhtml": "<p>x</p>", "img/p.png": png_bytes}))

        assert (book.title, book.author) == ("Unknown", "Unknown")
        assert book.chapter_count == 1
        assert book.cover_image == png_bytes
        assert any("Package document" in w for w in book.warnings)

    def test_zero_chapters(self, reader):
        book = reader.load(build_epub({"content.opf": make_opf()}))

        assert book.chapter_count == 0
        assert book.chapters == ()
        assert book.cover_image is None
        assert "No cover image found" in book.warnings
        assert reader.get_chapter_content(book, 0).is_empty

    def test_undecodable_chapter_warned(self, reader, caplog):
        data = build_epub({"a.xhtml": "<p>ok</p>", "b.xhtml": b"\xff\xfe\x00bad", "c.xhtml": "<p>ok</p>"})

        with caplog.at_level(logging.WARNING, logger="epub_reader"):
            book = reader.load(data)

        assert [c.path for c in book.chapters] == ["a.xhtml", "c.xhtml"]
        assert [c.order for c in book.chapters] == [0, 1]
        assert any("b.xhtml" in w for w in book.warnings)
        assert "b.xhtml" in caplog.text

    def test_logs_summary(self, reader, sample_epub_bytes, caplog):
        with caplog.at_level(logging.INFO, logger="epub_reader"):
            reader.load(sample_epub_bytes)
        assert "Loaded 'Sample' by Author: 2 chapters" in caplog.text


class TestQueries:
    """Tests for per-chapter queries."""

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range(self, reader, standard_epub_bytes, index):
        book = reader.load(standard_epub_bytes)

        assert reader.get_chapter_content(book, index).is_empty
        assert reader.get_speech_text(book, index) == ""

    def test_chapter_images(self, reader, png_bytes):
        body = '<p>Before</p><img src="../images/pic.png" alt="Picture"/><p>After</p>'
        data = build_epub({
            "OEBPS/text/ch1.xhtml": make_chapter("One", body),
            "OEBPS/images/pic.png": png_bytes,
        })
        book = reader.load(data)

        content = reader.get_chapter_content(book, 0)

        assert len(content.images) == 1
        image = content.images[0]
        assert image.alt == "Picture"
        assert image.data == png_bytes
        assert 0 <= image.offset < len(content.text)
        assert content.text[image.offset:].startswith("<img")

    def test_undecodable_image_dropped(self, reader):
        data = build_epub({
            "ch1.xhtml": '<body><img src="bad.png"/></body>',
            "bad.png": b"not a png",
        })
        book = reader.load(data)
        assert reader.get_chapter_content(book, 0).images == ()

    def test_undecodable_image_kept_when_not_decoding(self):
        data = build_epub({
            "ch1.xhtml": '<body><img src="bad.png"/></body>',
            "bad.png": b"not a png",
        })
        with EpubReader(ReaderConfig(decode_images=False)) as reader:
            book = reader.load(data)
            assert len(reader.get_chapter_content(book, 0).images) == 1

    def test_navigation_heuristic(self, reader):
        data = build_epub({
            "a.xhtml": "<title>1</title>",
            "b.xhtml": "<title>1.1</title>",
            "c.xhtml": "<title>1.1.1</title>",
        })
        book = reader.load(data)

        nodes = reader.get_navigation(book, current_index=1)

        assert [n.chapter.title for n in nodes] == ["1", "1.1"]
        assert nodes[0].is_expanded


class TestConfiguredReader:
    """Tests for configuration-dependent loading."""

    def _spine_epub(self) -> bytes:
        manifest = [
            ("a", "a.xhtml", "application/xhtml+xml"),
            ("b", "b.xhtml", "application/xhtml+xml"),
            ("nav", "nav.xhtml", "application/xhtml+xml"),
        ]
        opf = make_opf(manifest=manifest, spine=["b", "a"]).replace(
            'href="nav.xhtml"', 'href="nav.xhtml" properties="nav"'
        )
        return build_epub({
            "OEBPS/content.opf": opf,
            "OEBPS/a.xhtml": make_chapter("Inside B", "<p>a</p>"),
            "OEBPS/b.xhtml": make_chapter("Part B", "<p>b</p>"),
            "OEBPS/nav.xhtml": NAV_XHTML,
        })

    def test_spine_order(self):
        with EpubReader(ReaderConfig(chapter_order=ChapterOrder.SPINE)) as reader:
            book = reader.load(self._spine_epub())
        assert [c.title for c in book.chapters[:2]] == ["Part B", "Inside B"]

    def test_path_order_default(self, reader):
        book = reader.load(self._spine_epub())
        assert [c.path for c in book.chapters] == ["OEBPS/a.xhtml", "OEBPS/b.xhtml", "OEBPS/nav.xhtml"]

    def test_toc_hierarchy(self):
        config = ReaderConfig(hierarchy_source=HierarchySource.TOC)
        with EpubReader(config) as reader:
            book = reader.load(self._spine_epub())
            nodes = reader.get_navigation(book, current_index=0)

        assert book.toc[0].title == "Part B"
        assert [n.chapter.title for n in nodes] == ["Part B"]
        assert [c.title for c in nodes[0].children] == ["Inside B"]
        assert nodes[0].is_expanded

    def test_toc_not_parsed_by_default(self, reader):
        assert reader.load(self._spine_epub()).toc == ()

    def test_toc_hierarchy_falls_back_without_toc(self, standard_epub_bytes):
        config = ReaderConfig(hierarchy_source="toc")
        with EpubReader(config) as reader:
            book = reader.load(standard_epub_bytes)
            nodes = reader.get_navigation(book)
        assert [n.chapter.title for n in nodes] == ["Chapter 1", "Chapter 2", "Chapter 3"]


class TestLifecycle:
    """Tests for the reader's explicit lifecycle."""

    def test_context_manager_closes(self):
        with EpubReader() as reader:
            assert not reader.closed
        assert reader.closed

    def test_load_after_close(self, standard_epub_bytes):
        reader = EpubReader()
        reader.close()
        with pytest.raises(ValueError):
            reader.load(standard_epub_bytes)

    def test_book_outlives_reader(self, standard_epub_bytes):
        with EpubReader() as reader:
            book = reader.load(standard_epub_bytes)
        assert book.chapter_count == 3
        assert "first chapter" in get_speech_text(book, 0)

    def test_default_config(self):
        assert EpubReader().config == ReaderConfig()


class TestCachedChapterContent:
    """Tests for the optional memoizing wrapper."""

    def test_caches_results(self, reader, standard_epub_bytes, monkeypatch):
        book = reader.load(standard_epub_bytes)
        cache = CachedChapterContent(reader, book)
        calls = []
        original = reader.get_chapter_content

        def counting(b, index):
            calls.append(index)
            return original(b, index)

        monkeypatch.setattr(reader, "get_chapter_content", counting)

        first = cache.get(1)
        second = cache.get(1)

        assert first is second
        assert calls == [1]
        assert len(cache) == 1

    def test_clear(self, reader, standard_epub_bytes):
        cache = CachedChapterContent(reader, reader.load(standard_epub_bytes))
        cache.get(0)
        cache.get(2)
        cache.clear()
        assert len(cache) == 0

    def test_matches_uncached(self, reader):
        book = reader.load(create_test_epub(chapters=[("A", "<p>x &amp; y</p>")]))
        assert CachedChapterContent(reader, book).get(0) == reader.get_chapter_content(book, 0)
