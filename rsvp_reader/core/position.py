"""Hierarchical playback position and the pure functions that move it.

WHY: A reader's place in a book is four nested indices (chapter,
paragraph, sentence, word). Playback advances one word at a time and
needs to know when it crossed a paragraph or chapter break; navigation
jumps by sentence, paragraph, chapter or absolute word index. Keeping
all of that as pure functions over an immutable Position means the
scheduler can never leave a half-updated cursor behind.

HOW: Position is a frozen dataclass. Every operation takes
``(document, position)`` and returns a new Position (advance_one also
returns break flags). Rollover resets all lower indices to 0; borrowing
backwards lands on the last word of the previous unit. Linear indexing
counts words before a position in document order.

RULES:
- Operations never raise for positions inside the document; at the
  bounds they return the position unchanged
- advance_one: paragraph_break on paragraph or chapter crossing,
  chapter_break only on chapter crossing
- step_sentence backward lands on the *last* sentence of the previous
  paragraph/chapter; step_paragraph backward across a chapter lands on
  the *last* paragraph of the previous chapter at sentence 0; the two
  granularities differ
- word_at_linear_index clamps to [0, total_words - 1]
- Chapters, paragraphs and sentences without words are skipped by every
  move, so a move that succeeds always lands on a word
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

from rsvp_reader.core.ir import Chapter, Document, Paragraph, Sentence, Word


@dataclass(frozen=True)
class Position:
    """Zero-based (chapter, paragraph, sentence, word) coordinate."""

    chapter_index: int = 0
    paragraph_index: int = 0
    sentence_index: int = 0
    word_index: int = 0


START = Position()


class Advance(NamedTuple):
    """Result of advance_one: the new position and the breaks crossed."""

    position: Position
    paragraph_break: bool = False
    chapter_break: bool = False


def _get(items, index: int):
    if 0 <= index < len(items):
        return items[index]
    return None


def _chapter(doc: Document, pos: Position) -> Optional[Chapter]:
    return _get(doc.chapters, pos.chapter_index)


def _paragraph(doc: Document, pos: Position) -> Optional[Paragraph]:
    chapter = _chapter(doc, pos)
    if chapter is None:
        return None
    return _get(chapter.paragraphs, pos.paragraph_index)


def _sentence(doc: Document, pos: Position) -> Optional[Sentence]:
    paragraph = _paragraph(doc, pos)
    if paragraph is None:
        return None
    return _get(paragraph.sentences, pos.sentence_index)


def resolve_word(doc: Document, pos: Position) -> Optional[Word]:
    """Return the Word at ``pos``, or None if any index is out of range."""
    sentence = _sentence(doc, pos)
    if sentence is None:
        return None
    return _get(sentence.words, pos.word_index)


def resolve_chapter(doc: Document, pos: Position) -> Optional[Chapter]:
    return _chapter(doc, pos)


# ----------------------------------------------------------------------
# Readable-word search
# ----------------------------------------------------------------------
# Hand-built documents may contain chapters, paragraphs or sentences with
# no words. The helpers below walk document order and only ever return a
# position that resolves to a word.

def _first_word_from(doc: Document, c: int, p: int, s: int) -> Optional[Position]:
    """First word of the first non-empty sentence at or after (c, p, s)."""
    while c < len(doc.chapters):
        paragraphs = doc.chapters[c].paragraphs
        while p < len(paragraphs):
            sentences = paragraphs[p].sentences
            while s < len(sentences):
                if sentences[s].words:
                    return Position(c, p, s, 0)
                s += 1
            p += 1
            s = 0
        c += 1
        p = 0
        s = 0
    return None


def _last_word_before(doc: Document, c: int, p: int, s: int) -> Optional[Position]:
    """Last word of the last non-empty sentence strictly before (c, p, s).

    (c, p, s) must name an existing sentence.
    """
    s -= 1
    while c >= 0:
        paragraphs = doc.chapters[c].paragraphs
        while p >= 0:
            sentences = paragraphs[p].sentences
            while s >= 0:
                words = sentences[s].words
                if words:
                    return Position(c, p, s, len(words) - 1)
                s -= 1
            p -= 1
            if p >= 0:
                s = len(paragraphs[p].sentences) - 1
        c -= 1
        if c >= 0:
            p = len(doc.chapters[c].paragraphs) - 1
            s = len(doc.chapters[c].paragraphs[p].sentences) - 1 if p >= 0 else -1
    return None


def _paragraph_start_before(doc: Document, c: int, p: int) -> Optional[Position]:
    """First word of the last paragraph with words strictly before (c, p)."""
    p -= 1
    while c >= 0:
        paragraphs = doc.chapters[c].paragraphs
        while p >= 0:
            if paragraphs[p].word_count:
                return _first_word_from(doc, c, p, 0)
            p -= 1
        c -= 1
        if c >= 0:
            p = len(doc.chapters[c].paragraphs) - 1
    return None


def last_position(doc: Document) -> Optional[Position]:
    """Position of the last word of the document, None when it has none."""
    for c in range(len(doc.chapters) - 1, -1, -1):
        paragraphs = doc.chapters[c].paragraphs
        for p in range(len(paragraphs) - 1, -1, -1):
            sentences = paragraphs[p].sentences
            for s in range(len(sentences) - 1, -1, -1):
                if sentences[s].words:
                    return Position(c, p, s, len(sentences[s].words) - 1)
    return None


def first_position(doc: Document) -> Position:
    """Position of the first word of the document (START when it has none)."""
    return _first_word_from(doc, 0, 0, 0) or START


def chapter_start(doc: Document, chapter_index: int) -> Position:
    """First readable word at or after the start of ``chapter_index``.

    An empty chapter resolves to the next readable word; when nothing
    follows, the last word of the document.
    """
    position = _first_word_from(doc, chapter_index, 0, 0)
    if position is not None:
        return position
    return last_position(doc) or START


# ----------------------------------------------------------------------
# Movement
# ----------------------------------------------------------------------

def is_at_end(doc: Document, pos: Position) -> bool:
    """True iff ``pos`` is the last word of the document.

    RULES:
    - Trailing empty chapters, paragraphs and sentences are ignored; the
      last word is the last one that actually exists
    - A document without any word is always at its end
    """
    last = last_position(doc)
    return last is None or pos == last


def advance_one(doc: Document, pos: Position) -> Advance:
    """Move to the next word in document order.

    WHY: This is the only way playback moves forward, and the only place
    that knows whether a paragraph or chapter break was just crossed (the
    scheduler turns those into extra pause).

    HOW: Try the next word in the sentence, then the first word of the
    next non-empty sentence, paragraph, chapter, resetting lower indices.

    RULES:
    - At the end, or for a position that does not resolve: unchanged
      position, both flags False
    """
    sentence = _sentence(doc, pos)
    if sentence is None or resolve_word(doc, pos) is None:
        return Advance(pos)

    if pos.word_index < len(sentence.words) - 1:
        return Advance(replace(pos, word_index=pos.word_index + 1))

    target = _first_word_from(
        doc, pos.chapter_index, pos.paragraph_index, pos.sentence_index + 1
    )
    if target is None:
        return Advance(pos)

    chapter_break = target.chapter_index != pos.chapter_index
    paragraph_break = chapter_break or target.paragraph_index != pos.paragraph_index
    return Advance(target, paragraph_break=paragraph_break, chapter_break=chapter_break)


def retreat_one(doc: Document, pos: Position) -> Position:
    """Move to the previous word in document order.

    Exact inverse of advance_one: underflow borrows from the previous
    non-empty sentence, paragraph or chapter and lands on its last word.
    No-op at the document start or for a position that does not resolve.
    """
    if resolve_word(doc, pos) is None:
        return pos

    if pos.word_index > 0:
        return replace(pos, word_index=pos.word_index - 1)

    previous = _last_word_before(
        doc, pos.chapter_index, pos.paragraph_index, pos.sentence_index
    )
    return previous or pos


def step_sentence(doc: Document, pos: Position, direction: int) -> Position:
    """Move one sentence forward (direction > 0) or backward (< 0).

    RULES:
    - Forward: next sentence, else first sentence of the next paragraph,
      else first sentence of the next chapter, at word 0; unchanged at the
      last sentence of the document
    - Backward from mid-sentence: word 0 of the current sentence
    - Backward from a sentence start: previous sentence; across a
      paragraph the *last* sentence of the previous paragraph; across a
      chapter the last sentence of the previous chapter's last paragraph;
      always word 0
    - Sentences without words are skipped in both directions
    """
    if _sentence(doc, pos) is None:
        return pos

    if direction > 0:
        target = _first_word_from(
            doc, pos.chapter_index, pos.paragraph_index, pos.sentence_index + 1
        )
        return target or pos

    if direction < 0:
        if pos.word_index > 0:
            return replace(pos, word_index=0)
        previous = _last_word_before(
            doc, pos.chapter_index, pos.paragraph_index, pos.sentence_index
        )
        if previous is not None:
            return replace(previous, word_index=0)

    return pos


def step_paragraph(doc: Document, pos: Position, direction: int) -> Position:
    """Move one paragraph forward (direction > 0) or backward (< 0).

    RULES:
    - Forward: next paragraph, else first paragraph of the next chapter
    - Backward: previous paragraph; across a chapter the *last* paragraph
      of the previous chapter
    - Lands on the paragraph's first word (sentence 0, word 0 unless the
      leading sentences are empty); paragraphs without words are skipped;
      unchanged at the bounds
    """
    if _paragraph(doc, pos) is None:
        return pos

    if direction > 0:
        target = _first_word_from(doc, pos.chapter_index, pos.paragraph_index + 1, 0)
        return target or pos

    if direction < 0:
        target = _paragraph_start_before(doc, pos.chapter_index, pos.paragraph_index)
        return target or pos

    return pos


def total_words(doc: Document) -> int:
    return doc.word_count


def linear_index_of(doc: Document, pos: Position) -> int:
    """Count the words strictly before ``pos`` in document order.

    Indices past the end of a level count every word of that level, the
    same as the running total would.
    """
    count = 0
    for chapter in doc.chapters[:pos.chapter_index]:
        count += chapter.word_count

    chapter = _chapter(doc, pos)
    if chapter is None:
        return count

    for paragraph in chapter.paragraphs[:pos.paragraph_index]:
        count += paragraph.word_count

    paragraph = _paragraph(doc, pos)
    if paragraph is None:
        return count

    for sentence in paragraph.sentences[:pos.sentence_index]:
        count += len(sentence.words)

    return count + pos.word_index


def word_at_linear_index(doc: Document, index: int) -> Position:
    """Return the Position of the ``index``-th word (0-based), clamped.

    WHY: Progress bars and "go to word N" need the inverse of
    linear_index_of.

    HOW: Clamp to [0, total_words - 1], then walk chapter, paragraph and
    sentence word counts subtracting whole units until the index falls
    inside one.

    RULES:
    - Empty document → START
    - Negative index → first word; index ≥ total → last word
    """
    total = total_words(doc)
    if total == 0:
        return START

    remaining = min(max(index, 0), total - 1)

    for c, chapter in enumerate(doc.chapters):
        chapter_words = chapter.word_count
        if remaining >= chapter_words:
            remaining -= chapter_words
            continue
        for p, paragraph in enumerate(chapter.paragraphs):
            paragraph_words = paragraph.word_count
            if remaining >= paragraph_words:
                remaining -= paragraph_words
                continue
            for s, sentence in enumerate(paragraph.sentences):
                if remaining >= len(sentence.words):
                    remaining -= len(sentence.words)
                    continue
                return Position(c, p, s, remaining)


    # Unreachable for a consistent document; stay on the last word.
    return last_position(doc) or START
