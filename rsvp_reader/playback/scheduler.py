"""Playback scheduler: play/pause state machine, step loop and navigation.

WHY: This is the engine behind the reader. It decides how long each
word stays up, moves the cursor one word per tick, stops at the end, and
lets the reader jump around without a stale tick ever moving the cursor
afterwards.

HOW: Two states, PAUSED (initial) and PLAYING. While PLAYING each step
computes the delay for the word on screen, advances the position by one
word and arms a single-shot timer for that delay plus any break pause;
the timer fire runs the next step. Every navigation pauses first, then
moves the position with the pure functions in core.position. Listeners
registered with subscribe() hear about every change.

RULES:
- play() is a no-op without a document or when already at the end
- Step: at end → PAUSED and stop; else advance and arm delay + extra
- extra = chapter_pause_ms on a chapter crossing, else paragraph_pause_ms
  on a paragraph crossing, else 0
- pause() and all navigation cancel the timer before touching position;
  timer callbacks carry a generation number and stale ones are ignored
- Changing wpm while PLAYING cancels the pending tick and steps at once
- jump_to_chapter with an index outside [0, chapter count) does nothing
- set_document / restart pause and reset the position to the first word
  (START for any document produced by the segmenter)
- A step that cannot move the cursor pauses instead of re-arming
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional

from rsvp_reader.core.ir import Chapter, Document, Word
from rsvp_reader.core.position import (
    START,
    Position,
    advance_one,
    chapter_start,
    first_position,
    is_at_end,
    linear_index_of,
    resolve_chapter,
    resolve_word,
    retreat_one,
    step_paragraph,
    step_sentence,
    total_words,
    word_at_linear_index,
)
from rsvp_reader.playback.timers import BaseTimer
from rsvp_reader.playback.timing import break_pause_ms, word_delay_ms
from rsvp_reader.settings import Settings

logger = logging.getLogger(__name__)

PlaybackListener = Callable[["PlaybackScheduler"], None]


class PlaybackState(str, enum.Enum):
    PAUSED = "paused"
    PLAYING = "playing"


class PlaybackScheduler:
    """Drives one Document at a time on a single-shot timer.

    Args:
        settings: Validated reader settings (see settings.validate_settings).
        timer: Timer backend; the scheduler is its only user.
        document: Optional initial document.
    """

    def __init__(
        self,
        settings: Settings,
        timer: BaseTimer,
        document: Optional[Document] = None,
    ) -> None:
        self._settings = settings
        self._timer = timer
        self._document = document
        self._position = first_position(document) if document is not None else START
        self._state = PlaybackState.PAUSED
        self._generation = 0
        self._listeners: List[PlaybackListener] = []

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def position(self) -> Position:
        return self._position

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    @property
    def current_word(self) -> Optional[Word]:
        if self._document is None:
            return None
        return resolve_word(self._document, self._position)

    @property
    def current_chapter(self) -> Optional[Chapter]:
        if self._document is None:
            return None
        return resolve_chapter(self._document, self._position)

    @property
    def total_words(self) -> int:
        if self._document is None:
            return 0
        return total_words(self._document)

    @property
    def current_word_index(self) -> int:
        if self._document is None:
            return 0
        return linear_index_of(self._document, self._position)

    @property
    def progress(self) -> float:
        """Fraction of the document already passed, in [0, 1)."""
        total = self.total_words
        if total == 0:
            return 0.0
        return self.current_word_index / total

    def is_at_end(self) -> bool:
        if self._document is None:
            return True
        return is_at_end(self._document, self._position)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: PlaybackListener) -> Callable[[], None]:
        """Call ``listener(scheduler)`` after every state or position change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Play / pause
    # ------------------------------------------------------------------

    def play(self) -> None:
        if self._document is None or self.is_at_end():
            return
        self._state = PlaybackState.PLAYING
        logger.debug("Playing from word %d", self.current_word_index)
        self._step()

    def pause(self) -> None:
        self._cancel_timer()
        if self._state is PlaybackState.PAUSED:
            return
        self._state = PlaybackState.PAUSED
        logger.debug("Paused at word %d", self.current_word_index)
        self._notify()

    def toggle_play_pause(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def restart(self) -> None:
        self._pause_silently()
        self._position = (
            first_position(self._document) if self._document is not None else START
        )
        self._notify()

    def set_document(self, document: Document) -> None:
        """Replace the document, pause, and go back to the first word."""
        self._pause_silently()
        self._document = document
        self._position = first_position(document)
        logger.info(
            "Loaded document %r (%d words)", document.title, total_words(document)
        )
        self._notify()

    def update_settings(self, settings: Settings) -> None:
        """Swap in new settings; a wpm change while playing re-arms at once.

        WHY: Waiting out a delay computed at the old speed makes a speed
        change feel unresponsive, especially when slowing down from a very
        high wpm to a very low one (or the reverse).
        """
        wpm_changed = settings.wpm != self._settings.wpm
        self._settings = settings
        if wpm_changed and self.is_playing:
            self._cancel_timer()
            self._step()

    # ------------------------------------------------------------------
    # Step loop
    # ------------------------------------------------------------------

    def _step(self) -> None:
        if not self.is_playing or self._document is None:
            return

        if is_at_end(self._document, self._position):
            self._cancel_timer()
            self._state = PlaybackState.PAUSED
            logger.debug("Reached end of %r", self._document.title)
            self._notify()
            return

        delay = word_delay_ms(self.current_word, self._settings)
        advance = advance_one(self._document, self._position)
        if advance.position == self._position:
            # Unresolvable cursor; nothing left to show.
            self._cancel_timer()
            self._state = PlaybackState.PAUSED
            logger.warning("Cannot advance from %s; pausing", self._position)
            self._notify()
            return
        self._position = advance.position
        self._arm(delay + break_pause_ms(self._settings, advance))
        self._notify()

    def _arm(self, delay_ms: float) -> None:
        self._generation += 1
        generation = self._generation
        self._timer.schedule(delay_ms, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._step()

    def _cancel_timer(self) -> None:
        self._generation += 1
        self._timer.cancel()

    def _pause_silently(self) -> None:
        self._cancel_timer()
        self._state = PlaybackState.PAUSED

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def jump_to_chapter(self, chapter_index: int) -> None:
        if self._document is None:
            return
        if chapter_index < 0 or chapter_index >= len(self._document.chapters):
            return
        self._pause_silently()
        self._position = chapter_start(self._document, chapter_index)
        self._notify()

    def jump_words(self, count: int) -> None:
        """Move ``count`` words forward (positive) or backward (negative)."""
        if self._document is None:
            return
        self._pause_silently()
        doc = self._document
        for _ in range(abs(count)):
            if count > 0:
                new_position = advance_one(doc, self._position).position
            else:
                new_position = retreat_one(doc, self._position)
            if new_position == self._position:
                break
            self._position = new_position
        self._notify()

    def jump_sentences(self, count: int) -> None:
        if self._document is None:
            return
        self._pause_silently()
        for _ in range(abs(count)):
            new_position = step_sentence(self._document, self._position, count)
            if new_position == self._position:
                break
            self._position = new_position
        self._notify()

    def jump_paragraphs(self, count: int) -> None:
        if self._document is None:
            return
        self._pause_silently()
        for _ in range(abs(count)):
            new_position = step_paragraph(self._document, self._position, count)
            if new_position == self._position:
                break
            self._position = new_position
        self._notify()

    def jump_to_word(self, index: int) -> None:
        """Go to the ``index``-th word of the document (clamped)."""
        if self._document is None:
            return
        self._pause_silently()
        self._position = word_at_linear_index(self._document, index)
        self._notify()
