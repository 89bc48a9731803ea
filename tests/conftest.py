"""Shared test fixtures for the rsvp_reader test suite.

WHY: The position, timing, scheduler and API tests all walk the same
small book. Centralizing it here means every module reasons about the
same indices, and a change to segmentation shows up everywhere at once.

HOW: SAMPLE_CHAPTERS is segmented with build_document into a two-chapter
Document. ManualTimer implements BaseTimer without a clock: tests fire
the pending callback explicitly and inspect the armed delay.

RULES:
- Sample layout (chapter, paragraph, sentence → words):
    0,0,0: Hello there, friend.        0,0,1: How are you?
    0,1,0: Second paragraph here.      0,1,1: Really.
    1,0,0: Chapter two begins.         1,0,1: It ends!
    1,1,0: Final words.
  10 words in chapter 0, 7 in chapter 1, 17 in total
- gappy_document is hand-built around empty units; its 7 words sit at
  gappy_positions
- Settings fixtures never touch the user's settings file
"""

from __future__ import annotations

from typing import List, Optional

import pytest

from rsvp_reader.core.ir import Chapter, Document, Paragraph, Sentence
from rsvp_reader.core.position import Position
from rsvp_reader.core.segmenter import build_document
from rsvp_reader.core.tokenizer import tokenize
from rsvp_reader.playback.timers import BaseTimer, TimerCallback
from rsvp_reader.settings import Settings
from rsvp_reader.sources.base import RawChapter


# ---------------------------------------------------------------------------
# Sample book
# ---------------------------------------------------------------------------

SAMPLE_CHAPTERS: List[RawChapter] = [
    RawChapter(
        title="One",
        text="Hello there, friend. How are you?\n\nSecond paragraph here. Really.",
    ),
    RawChapter(
        title="Two",
        text="Chapter two begins. It ends!\n\nFinal words.",
    ),
]

SAMPLE_TOTAL_WORDS = 17


@pytest.fixture
def sample_document() -> Document:
    """The two-chapter sample book described in the module docstring."""
    return build_document(SAMPLE_CHAPTERS, title="Sample")


@pytest.fixture
def empty_document() -> Document:
    return Document(title="Empty")


# The segmenter never emits empty units, but hand-built documents can.
# Chapter 1 and the final chapter have no words at all.
GAPPY_WORD_POSITIONS: List[Position] = [
    Position(0, 0, 0, 0),  # One
    Position(0, 0, 0, 1),  # two.
    Position(0, 0, 2, 0),  # Three.
    Position(0, 2, 1, 0),  # Four.
    Position(2, 0, 0, 0),  # Five.
    Position(2, 1, 0, 0),  # Six
    Position(2, 1, 0, 1),  # seven.
]


def make_sentence(*texts: str) -> Sentence:
    return Sentence(words=tuple(tokenize(text) for text in texts))


@pytest.fixture
def gappy_document() -> Document:
    """Words interleaved with empty sentences, paragraphs and chapters."""
    return Document(title="Gappy", chapters=(
        Chapter(title="A", paragraphs=(
            Paragraph(sentences=(
                make_sentence("One", "two."), Sentence(), make_sentence("Three."),
            )),
            Paragraph(),
            Paragraph(sentences=(Sentence(), make_sentence("Four."))),
        )),
        Chapter(title="Blank"),
        Chapter(title="C", paragraphs=(
            Paragraph(sentences=(make_sentence("Five."),)),
            Paragraph(sentences=(make_sentence("Six", "seven."), Sentence())),
        )),
        Chapter(title="Trailing", paragraphs=(Paragraph(sentences=(Sentence(),)),)),
    ))


@pytest.fixture
def gappy_positions() -> List[Position]:
    """Every word position of gappy_document, in reading order."""
    return list(GAPPY_WORD_POSITIONS)


@pytest.fixture
def default_settings() -> Settings:
    """Defaults with a fixed 250 wpm, independent of RSVP_DEFAULT_WPM."""
    return Settings(wpm=250)


# ---------------------------------------------------------------------------
# Manual timer
# ---------------------------------------------------------------------------


class ManualTimer(BaseTimer):
    """BaseTimer that only fires when a test calls fire().

    RULES:
    - delay_ms holds the most recently scheduled delay (None before any)
    - scheduled counts schedule() calls
    - fire() runs the pending callback once and clears it
    """

    def __init__(self) -> None:
        self.delay_ms: Optional[float] = None
        self.scheduled = 0
        self._callback: Optional[TimerCallback] = None

    def schedule(self, delay_ms: float, callback: TimerCallback) -> None:
        self.delay_ms = delay_ms
        self.scheduled += 1
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    @property
    def pending(self) -> Optional[TimerCallback]:
        return self._callback

    def fire(self) -> None:
        callback = self._callback
        assert callback is not None, "no callback scheduled"
        self._callback = None
        callback()


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()
