"""HTML cleaning for display and for speech.

Both transforms work on the raw chapter markup with regular expressions and
never build a tree, so unclosed or malformed tags cannot make them fail.
The two entity tables intentionally differ: the display path keeps
typographic glyphs, the speech path uses plain ASCII where an engine would
otherwise stumble ("..." for an ellipsis, straight quotes).
"""

import re
from html import unescape

# Applied in order; &amp; is decoded early so "&amp;lt;" reads as "<".
DISPLAY_ENTITIES: list[tuple[str, str]] = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&mdash;", "—"),
    ("&ndash;", "–"),
    ("&lsquo;", "‘"),
    ("&rsquo;", "’"),
    ("&ldquo;", "“"),
    ("&rdquo;", "”"),
    ("&hellip;", "…"),
]

SPEECH_ENTITIES: list[tuple[str, str]] = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&mdash;", "—"),
    ("&ndash;", "–"),
    ("&lsquo;", "'"),
    ("&rsquo;", "'"),
    ("&ldquo;", '"'),
    ("&rdquo;", '"'),
    ("&hellip;", "..."),
]

_HEX_ENTITY = re.compile(r"&#[xX]([0-9a-fA-F]+);")
_DEC_ENTITY = re.compile(r"&#(\d+);")

_XML_DECLARATION = re.compile(r"<\?xml[^>]*>?", re.IGNORECASE)
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]*>?", re.IGNORECASE)
_NAMESPACE_ATTR = re.compile(r"\s*xmlns(?::[\w.-]+)?\s*=\s*(\"[^\"]*\"|'[^']*')")
_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_HEAD = re.compile(r"<head\b[^>]*>.*?</head\s*>", re.IGNORECASE | re.DOTALL)
_STYLE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_BODY = re.compile(r"<body\b[^>]*>(.*?)</body\s*>", re.IGNORECASE | re.DOTALL)
_STRAY_HEAD = re.compile(r"</?head\b[^>]*>?", re.IGNORECASE)
_EPUB_TAG = re.compile(r"</?epub:[^>]*>", re.IGNORECASE)
_EPUB_TYPE = re.compile(r"\s*epub:type\s*=\s*(\"[^\"]*\"|'[^']*')", re.IGNORECASE)

# Elements whose text is never read aloud
_UNSPOKEN = re.compile(
    r"<(head|title|style|script)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_LEFTOVER_ENTITY = re.compile(r"&(?:#[xX][0-9a-fA-F]+|#\d+|[A-Za-z][A-Za-z0-9]*);")


def _numeric_to_char(value: int, original: str) -> str:
    try:
        char = chr(value)
    except (ValueError, OverflowError):
        return original
    if 0xD800 <= value <= 0xDFFF or value == 0:
        return original
    return char


def decode_numeric_entities(text: str) -> str:
    """Decode &#NNN; and &#xHH; references, leaving invalid ones untouched."""
    text = _HEX_ENTITY.sub(lambda m: _numeric_to_char(int(m.group(1), 16), m.group(0)), text)
    return _DEC_ENTITY.sub(lambda m: _numeric_to_char(int(m.group(1)), m.group(0)), text)


def decode_entities(text: str, table: list[tuple[str, str]] = DISPLAY_ENTITIES) -> str:
    """Decode the named entities of table, then numeric entities."""
    for entity, replacement in table:
        text = text.replace(entity, replacement)
    return decode_numeric_entities(text)


def _speak_leftover_entity(match: re.Match) -> str:
    # Named HTML5 entities outside the table are spoken as their character;
    # invalid references (NUL, surrogates, out of range) and unknown names are
    # not spoken at all
    char = unescape(match.group(0))
    if char == match.group(0) or char == "\ufffd":
        return ""
    return char


def clean_for_display(html: str) -> str:
    """Reduce a chapter document to a markup fragment for rich-text rendering.

    Structural tags (<p>, <h1>, <ul>, <img>, ...) are kept. The XML
    declaration, DOCTYPE, namespace declarations, <head>, <style> and
    <script> are removed, the <body> interior is extracted when present, and
    epub:-namespaced markup is dropped before entities are decoded.

    Args:
        html: Raw chapter XHTML

    Returns:
        The cleaned fragment, trimmed
    """
    cleaned = _XML_DECLARATION.sub("", html)
    cleaned = _DOCTYPE.sub("", cleaned)
    cleaned = _NAMESPACE_ATTR.sub("", cleaned)
    cleaned = _HTML_OPEN.sub("<html>", cleaned)
    cleaned = _HEAD.sub("", cleaned)

    cleaned = _STYLE.sub("", cleaned)
    cleaned = _SCRIPT.sub("", cleaned)

    body = _BODY.search(cleaned)
    if body:
        cleaned = body.group(1)

    cleaned = _EPUB_TAG.sub("", cleaned)
    cleaned = _EPUB_TYPE.sub("", cleaned)
    cleaned = _STRAY_HEAD.sub("", cleaned)

    cleaned = decode_entities(cleaned, DISPLAY_ENTITIES)
    # Decoded text must not smuggle document markers back in
    cleaned = _XML_DECLARATION.sub("", cleaned)
    cleaned = _DOCTYPE.sub("", cleaned)
    cleaned = _STRAY_HEAD.sub("", cleaned)
    return cleaned.strip()


def clean_for_speech(html: str) -> str:
    """Reduce raw markup to a single line of plain text for a TTS engine.

    Always pass the raw chapter or segment markup: the output of
    clean_for_display has had entities decoded already and must not be fed
    through here again.

    Args:
        html: Raw chapter XHTML or a fragment of it

    Returns:
        Tag-free text with collapsed whitespace
    """
    text = _UNSPOKEN.sub(" ", html)
    text = _TAG.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()
    # Repeat so double-escaped input ("&amp;amp;") leaves no entity behind;
    # each pass only shortens the text
    previous = None
    while text != previous:
        previous = text
        text = decode_entities(text, SPEECH_ENTITIES)
        text = _LEFTOVER_ENTITY.sub(_speak_leftover_entity, text)
    # Decoded &lt;...&gt; must not reintroduce tags
    if "<" in text:
        text = _TAG.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()
