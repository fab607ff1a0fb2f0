"""Turn Mastodon status HTML into Bluesky-ready text and facets.

Mastodon renders every status as HTML: paragraphs, ``<br>`` line breaks and
anchors for links, mentions and hashtags. Bluesky wants plain text plus
"facets" that point at UTF-8 byte ranges of that text. Anchors are turned
into facets while walking the tree; loose text is scanned for bare URLs,
``@handle.domain`` mentions and ``#hashtags``.
"""

import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup, NavigableString
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from errors import ConfigError, ContentRejected
from platforms.base import Facet, RichContent
import config


URL_PATTERN = re.compile(
    r"https?://[^\s\)\]\}>\"',]+[^\s\)\]\}>\"',.\!?]"
)
MENTION_PATTERN = re.compile(
    r"(?<!\w)@([\w.]+(?:\.[\w]+)+)"
)
HASHTAG_PATTERN = re.compile(
    r"(?<!\w)#(\w+)"
)

_WHITESPACE_RE = re.compile(r"\s+")

BLOCK_TAGS = {
    "p", "div", "blockquote", "li", "ul", "ol", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6",
}
SKIPPED_TAGS = {"script", "style", "template"}
_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class _TextBuilder:
    """Accumulates text and char-offset facets in document order."""

    def __init__(self):
        self.text = ""
        self.facets = []  # (start, end, kind, value, uri)

    def add_text(self, s):
        if not s:
            return
        if s[0] == " " and (not self.text or self.text[-1] in " \n"):
            s = s[1:]
        self.text += s

    def add_facet(self, label, kind, value, uri=""):
        core = label.strip(" ")
        if not core:
            self.add_text(label)
            return
        if label[0] == " ":
            self.add_text(" ")
        start = len(self.text)
        self.text += core
        self.facets.append((start, len(self.text), kind, value, uri))
        if label[-1] == " ":
            self.add_text(" ")

    def _rstrip_spaces(self):
        # facets never end in a space, so this cannot cut one short
        self.text = self.text.rstrip(" ")

    def newline(self):
        self._rstrip_spaces()
        self.text += "\n"

    def block_break(self):
        self._rstrip_spaces()
        if not self.text:
            return
        trailing = len(self.text) - len(self.text.rstrip("\n"))
        if trailing < 2:
            self.text += "\n" * (2 - trailing)


def _overlaps(start, end, spans):
    return any(start < s_end and s_start < end for s_start, s_end, *_ in spans)


def find_plain_facets(text):
    """Locate bare URLs, domain-style mentions and hashtags in ``text``.

    Returns non-overlapping ``(start, end, kind, value)`` tuples sorted by
    position. URLs win over anything found inside them.
    """
    spans = [(m.start(), m.end(), "link", m.group(0)) for m in URL_PATTERN.finditer(text)]
    for m in MENTION_PATTERN.finditer(text):
        if not _overlaps(m.start(), m.end(), spans):
            spans.append((m.start(), m.end(), "mention", m.group(1)))
    for m in HASHTAG_PATTERN.finditer(text):
        if not _overlaps(m.start(), m.end(), spans):
            spans.append((m.start(), m.end(), "tag", m.group(1)))
    return sorted(spans)


def _collapse(s):
    return _WHITESPACE_RE.sub(" ", s)


def _mention_handle(label, href):
    handle = label.strip().lstrip("@")
    if "@" not in handle:
        host = urlparse(href).netloc
        if host:
            handle = f"{handle}@{host}"
    return handle


def _visible_strings(node):
    for child in node.children:
        if isinstance(child, NavigableString):
            if not isinstance(child, _NON_TEXT_STRINGS):
                yield str(child)
        elif "invisible" not in (child.get("class") or []):
            yield from _visible_strings(child)


def _anchor_label(anchor):
    """Text Mastodon shows for an anchor, with long links shortened."""
    label = _collapse("".join(_visible_strings(anchor)))
    if anchor.find("span", class_="ellipsis") is not None:
        label += "…"
    return label


class ContentTransformer:
    def __init__(self, strip_patterns=None, max_chars=None, max_bytes=None):
        if strip_patterns is None:
            strip_patterns = config.STRIP_URL_PATTERNS
        try:
            self.strip_patterns = [re.compile(p) for p in strip_patterns]
        except re.error as e:
            raise ConfigError(f"Invalid URL strip pattern: {e}") from e
        self.max_chars = max_chars or config.BLUESKY_CHAR_LIMIT
        self.max_bytes = max_bytes or config.BLUESKY_BYTE_LIMIT

    def strip_denylisted(self, markup):
        for pattern in self.strip_patterns:
            markup = pattern.sub("", markup)
        return markup

    def _walk(self, node, out):
        for child in node.children:
            if isinstance(child, NavigableString):
                if isinstance(child, _NON_TEXT_STRINGS):
                    continue
                self._add_plain(_collapse(str(child)), out)
            elif child.name == "br":
                out.newline()
            elif child.name == "a":
                self._add_anchor(child, out)
            elif child.name in SKIPPED_TAGS:
                continue
            elif child.name in BLOCK_TAGS:
                out.block_break()
                self._walk(child, out)
                out.block_break()
            else:
                self._walk(child, out)

    def _add_plain(self, text, out):
        pos = 0
        for start, end, kind, value in find_plain_facets(text):
            out.add_text(text[pos:start])
            out.add_facet(text[start:end], kind, value)
            pos = end
        out.add_text(text[pos:])

    def _add_anchor(self, anchor, out):
        href = (anchor.get("href") or "").strip()
        if anchor.has_attr("href") and not href:
            # href emptied by the denylist: drop the whole link
            return
        label = _anchor_label(anchor)
        if not label.strip():
            return
        if not href.startswith(("http://", "https://")):
            self._add_plain(label, out)
            return

        classes = anchor.get("class") or []
        rel = anchor.get("rel") or []
        stripped = label.strip()
        if "hashtag" in classes or ("tag" in rel and stripped.startswith("#")):
            out.add_facet(label, "tag", stripped.lstrip("#"), uri=href)
        elif "mention" in classes and stripped.startswith("@"):
            out.add_facet(label, "mention", _mention_handle(stripped, href), uri=href)
        else:
            out.add_facet(label, "link", href)

    def transform(self, markup):
        """Return RichContent for ``markup`` or raise ContentRejected.

        Text is never truncated: too-long text is rejected whole.
        """
        markup = self.strip_denylisted(markup or "")
        soup = BeautifulSoup(markup, "html.parser")
        out = _TextBuilder()
        self._walk(soup, out)

        raw = out.text
        lead = len(raw) - len(raw.lstrip())
        text = raw.strip()
        if not text:
            raise ContentRejected("empty", "Post has no text after conversion")

        if len(text) > self.max_chars:
            raise ContentRejected(
                "too_long", f"Text is {len(text)} characters, limit is {self.max_chars}"
            )
        encoded_length = len(text.encode("utf-8"))
        if encoded_length > self.max_bytes:
            raise ContentRejected(
                "too_long", f"Text is {encoded_length} bytes, limit is {self.max_bytes}"
            )

        facets = []
        for start, end, kind, value, uri in out.facets:
            start = max(start - lead, 0)
            end = min(end - lead, len(text))
            if start >= end:
                continue
            facets.append(
                Facet(
                    byte_start=len(text[:start].encode("utf-8")),
                    byte_end=len(text[:end].encode("utf-8")),
                    kind=kind,
                    value=value,
                    uri=uri,
                )
            )
        return RichContent(text=text, facets=tuple(facets))
