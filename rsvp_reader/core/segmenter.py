"""Paragraph, sentence and chapter segmentation, and Document construction.

WHY: Sources hand over plain strings, one per chapter. Playback needs
words grouped into sentences and paragraphs so it can pause at breaks
and jump by unit. This module is the bridge between raw chapter text and
the Document IR.

HOW: Line endings are normalized and the text is split into paragraphs
on blank lines. Inside a paragraph whitespace is collapsed and a greedy
regex cuts sentences after each run of terminal punctuation (plus at
most one closing quote). Each sentence is tokenized into words. Empty
units are dropped at every level. build_document wraps the per-chapter
results into a Document; build_document_async does the same while
yielding to the event loop between chapters.

RULES:
- Paragraph separator: one or more newlines with at least one blank line
- Sentence = non-terminal run + terminal run (. ! ?) + optional ' or ",
  or a trailing remainder with no terminal punctuation
- Terminal punctuation stays on the last word of its sentence
- No sentence match (punctuation-only paragraph) → the whole paragraph is
  one sentence
- Empty sentences, paragraphs and chapters are dropped
- No usable text → empty Document, never an exception
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterable, List, Optional, Sequence

from rsvp_reader.core.ir import Chapter, Document, Paragraph, Sentence
from rsvp_reader.core.tokenizer import tokenize_sentence

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+[\"']?|[^.!?]+$")


def _normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_sentences(paragraph: str) -> List[str]:
    """Split one paragraph's text into sentence strings.

    WHY: Sentence boundaries drive sentence jumps and give the last word
    of each sentence its trailing punctuation (and so its longer pause).

    HOW: Collapse whitespace, then take every greedy match of
    ``_SENTENCE_RE``. If nothing matches (the paragraph is punctuation
    only), the normalized paragraph itself is the single sentence.

    RULES:
    - Returned strings are stripped and non-empty
    - Punctuation that precedes any word in the paragraph is not part of a
      match and is dropped, the same as the greedy scan it mirrors
    """
    normalized = _WHITESPACE_RE.sub(" ", paragraph).strip()
    if not normalized:
        return []

    matches = _SENTENCE_RE.findall(normalized)
    if not matches:
        return [normalized]

    return [m.strip() for m in matches if m.strip()]


def segment(raw_text: str) -> List[Paragraph]:
    """Segment raw text into paragraphs of sentences of words.

    Args:
        raw_text: Text of one chapter (or a whole plain text file).

    Returns:
        Paragraphs in reading order. Every returned paragraph has at least
        one sentence and every sentence at least one word.
    """
    normalized = _normalize_line_endings(raw_text).strip()
    if not normalized:
        return []

    paragraphs: List[Paragraph] = []
    for raw_paragraph in _PARAGRAPH_SPLIT_RE.split(normalized):
        sentences: List[Sentence] = []
        for sentence_text in split_sentences(raw_paragraph):
            words = tokenize_sentence(sentence_text)
            if words:
                sentences.append(Sentence(words=tuple(words)))
        if sentences:
            paragraphs.append(Paragraph(sentences=tuple(sentences)))

    return paragraphs


def build_chapter(text: str, title: Optional[str] = None) -> Optional[Chapter]:
    """Segment one chapter's text; None when it has no readable words."""
    paragraphs = segment(text)
    if not paragraphs:
        return None
    return Chapter(paragraphs=tuple(paragraphs), title=title)


def _chapter_from_raw(raw_chapter) -> Optional[Chapter]:
    chapter = build_chapter(raw_chapter.text, raw_chapter.title)
    if chapter is None:
        logger.debug("Dropping empty chapter %r", raw_chapter.title)
    return chapter


def build_document(raw_chapters: Iterable, title: str = DEFAULT_TITLE) -> Document:
    """Build a Document from raw chapters.

    WHY: Container formats such as EPUB expose native chapter boundaries;
    each is segmented independently so paragraph numbering restarts per
    chapter and chapter jumps land on real chapter starts.

    HOW: Segments every raw chapter in order and keeps the non-empty
    ones.

    RULES:
    - raw_chapters: objects with ``title`` and ``text`` attributes
      (see rsvp_reader.sources.base.RawChapter)
    - A source with no readable text yields Document(title, ())

    Args:
        raw_chapters: Chapter texts in reading order.
        title: Document title.

    Returns:
        The immutable Document.
    """
    chapters = []  # type: List[Chapter]
    for raw_chapter in raw_chapters:
        chapter = _chapter_from_raw(raw_chapter)
        if chapter is not None:
            chapters.append(chapter)

    document = Document(title=title, chapters=tuple(chapters))
    logger.info(
        "Segmented %r: %d chapters, %d words",
        title, len(document.chapters), document.word_count,
    )
    return document


async def build_document_async(
    raw_chapters: Sequence,
    title: str = DEFAULT_TITLE,
) -> Document:
    """Build a Document without holding the event loop for the whole book.

    Same result as build_document; yields to the loop after each chapter
    so a long book does not stall timers or request handling.
    """
    chapters = []  # type: List[Chapter]
    for raw_chapter in raw_chapters:
        chapter = _chapter_from_raw(raw_chapter)
        if chapter is not None:
            chapters.append(chapter)
        await asyncio.sleep(0)

    document = Document(title=title, chapters=tuple(chapters))
    logger.info(
        "Segmented %r: %d chapters, %d words",
        title, len(document.chapters), document.word_count,
    )
    return document


def parse_text(text: str, title: str = DEFAULT_TITLE) -> Document:
    """Build a single-chapter Document from plain text.

    The chapter is untitled. Text with no readable words gives an empty
    Document.
    """
    chapter = build_chapter(text)
    chapters = (chapter,) if chapter is not None else ()
    return Document(title=title, chapters=chapters)
