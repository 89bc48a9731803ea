"""EPUB source: one chapter per spine document with readable text.

WHY: Books come as EPUBs. Their spine already splits the book into
chapters, which gives chapter jumps and chapter pauses for free, but
the text is XHTML, and paragraph structure has to survive the trip to
plain text or every chapter would read as one giant paragraph.

HOW: ebooklib opens the archive and walks the spine in reading order.
Each document is parsed with BeautifulSoup; a recursive walk emits text
nodes with their whitespace collapsed, a blank line around every block
element, and a newline for <br>. Scripts and styles are skipped. The
chapter title is the first h1/h2/h3, the book title comes from the
Dublin Core metadata.

RULES:
- Block elements (p, div, h1–h6, li, blockquote) become paragraph breaks
- Inline markup never splits a word ("<em>very</em>," stays "very,")
- Spine items that are missing, fail to read or parse, or have no
  readable text are skipped with a log line; the rest of the book loads
- Title: dc:title, else the filename stem
- An unreadable archive raises SourceError
"""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path
from typing import FrozenSet, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag
from ebooklib import epub

from rsvp_reader.config import EPUB_FORMATS
from rsvp_reader.sources.base import BaseSource, RawChapter, SourceError, SourceText

logger = logging.getLogger(__name__)

_BLOCK_TAGS = frozenset({
    "p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote",
})
_SKIP_TAGS = frozenset({"script", "style", "head", "title"})
_HEADING_TAGS = ["h1", "h2", "h3"]
_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_whitespace(text: str) -> str:
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n[ \t]+", "\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _collect_text(node: Tag, parts: List[str]) -> None:
    for child in node.children:
        if isinstance(child, NavigableString):
            if isinstance(child, _NON_TEXT_STRINGS):
                continue
            parts.append(_WHITESPACE_RE.sub(" ", str(child)))
        elif isinstance(child, Tag):
            name = child.name.lower()
            if name in _SKIP_TAGS:
                continue
            if name == "br":
                parts.append("\n")
                continue
            is_block = name in _BLOCK_TAGS
            if is_block:
                parts.append("\n\n")
            _collect_text(child, parts)
            if is_block:
                parts.append("\n\n")


def html_to_text(markup: bytes) -> str:
    """Extract readable text from one XHTML document, keeping paragraphs.

    Returns:
        Text with paragraphs separated by a blank line (may be empty).
    """
    soup = BeautifulSoup(markup, "html.parser")
    root = soup.body or soup
    parts = []  # type: List[str]
    _collect_text(root, parts)
    return _normalize_whitespace("".join(parts))


def _chapter_title(markup: bytes) -> Optional[str]:
    soup = BeautifulSoup(markup, "html.parser")
    heading = soup.find(_HEADING_TAGS)
    if heading is None:
        return None
    title = heading.get_text(" ", strip=True)
    return title or None


def _book_title(book: epub.EpubBook, path: Path) -> str:
    titles = book.get_metadata("DC", "title")
    if titles:
        title = str(titles[0][0]).strip()
        if title:
            return title
    return path.stem


class EpubSource(BaseSource):
    """EPUB 2/3 books read through ebooklib."""

    @property
    def name(self) -> str:
        return "EPUB"

    @property
    def extensions(self) -> FrozenSet[str]:
        return frozenset(EPUB_FORMATS)

    def load(self, path: Path) -> SourceText:
        path = Path(path)
        try:
            book = epub.read_epub(str(path))
        except (OSError, KeyError, zipfile.BadZipFile, epub.EpubException) as exc:
            raise SourceError(path, str(exc) or type(exc).__name__) from exc

        chapters = []  # type: List[RawChapter]
        for entry in book.spine:
            idref = entry[0] if isinstance(entry, (tuple, list)) else entry
            item = book.get_item_with_id(idref)
            if item is None:
                logger.warning("Skipping missing spine item %r in %s", idref, path.name)
                continue

            try:
                markup = item.get_content()
                text = html_to_text(markup)
                chapter_title = _chapter_title(markup)
            except Exception as exc:
                logger.warning(
                    "Skipping unreadable spine item %r in %s: %s", idref, path.name, exc
                )
                continue
            if not text:
                logger.debug("Skipping spine item %r (no text)", idref)
                continue

            chapters.append(RawChapter(text=text, title=chapter_title))

        title = _book_title(book, path)
        logger.info("Read %d chapters from %s", len(chapters), path.name)
        return SourceText(title=title, chapters=chapters)
