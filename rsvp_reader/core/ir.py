"""Intermediate representation dataclasses for segmented documents.

WHY: A raw book is one long string. Playback needs to know where each
word sits inside its sentence, paragraph and chapter so it can pause at
breaks and jump by unit. The IR provides that hierarchy as a single,
well-typed form that the position model, the scheduler, the CLI and the
HTTP API all consume.

HOW: Five frozen dataclasses form a hierarchy:
  Word      — one whitespace-delimited token with anchor and punctuation
  Sentence  — ordered words
  Paragraph — ordered sentences
  Chapter   — ordered paragraphs with an optional title
  Document  — the complete book with a title

RULES:
- Every container is a tuple; nothing is mutated after the segmenter
  returns (loading a new source builds a new Document)
- Sentences, paragraphs and chapters produced by the segmenter are never
  empty; hand-built documents may be, and the position model copes
- Word.text keeps trailing punctuation exactly as typed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Word:
    """A single displayable token.

    WHY: The display needs the full token ("there."), the letter to pin
    at the focal point, and whether the word ends on punctuation that
    deserves a longer pause.

    RULES:
    - text: the original token, trailing punctuation included
    - anchor_index: optimal recognition point, a function of the
      punctuation-stripped length only
    - punctuation: maximal trailing run of . , ; : ! ? ' " ) ] or None
    """

    text: str
    anchor_index: int
    punctuation: Optional[str] = None


@dataclass(frozen=True)
class Sentence:
    words: Tuple[Word, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Paragraph:
    sentences: Tuple[Sentence, ...] = field(default_factory=tuple)

    @property
    def word_count(self) -> int:
        return sum(len(s.words) for s in self.sentences)


@dataclass(frozen=True)
class Chapter:
    """A run of paragraphs, usually one EPUB spine item.

    Plain text sources produce a single untitled chapter.
    """

    paragraphs: Tuple[Paragraph, ...] = field(default_factory=tuple)
    title: Optional[str] = None

    @property
    def word_count(self) -> int:
        return sum(p.word_count for p in self.paragraphs)


@dataclass(frozen=True)
class Document:
    """The complete segmented book.

    WHY: This is the top-level container handed to the scheduler. An
    empty document (no chapters) is a valid value: it is what a source
    with no readable text produces, and playback treats it as already
    finished.
    """

    title: str
    chapters: Tuple[Chapter, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.word_count == 0

    @property
    def word_count(self) -> int:
        return sum(c.word_count for c in self.chapters)
