"""RSVP Reader — paced word-by-word reading of plain text and EPUB books.

WHY: Rapid serial visual presentation (RSVP) shows one word at a time at
a fixed point, so the reader's eyes never move. Doing that well needs two
things: a text model that knows where sentences, paragraphs and chapters
begin and end, and a playback engine that lingers on punctuation and
breaks instead of ticking at a flat rate.

HOW: Three-stage pipeline — acquire (sources), segment (core IR), play
(playback scheduler). The CLI and the HTTP API are thin shells over the
same position model and delay model.

RULES:
- The Document IR is immutable once built; playback only moves a cursor
- Adding a new source format = one new source module, no core changes
- The core never renders words and never persists settings itself
"""

__version__ = "0.1.0"
