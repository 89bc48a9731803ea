"""Command-line interface for the RSVP reader.

WHY: The quickest way to read a book at 400 wpm is a terminal: no GUI,
no browser. The CLI wires together the whole pipeline (file validation,
source acquisition, segmentation, settings, and playback) behind a
single command.

HOW: Uses argparse to accept a source file, per-run setting overrides,
a start position and an --info mode. Playback runs on an asyncio loop
with an AsyncioTimer; a scheduler listener redraws one terminal line
per word with the anchor letter pinned to a fixed column. Status
messages go to stderr; words go to stdout.

RULES:
- Positional argument: source file path (.txt, .md, .epub)
- Validates the extension against SUPPORTED_SOURCE_FORMATS before reading
- Setting flags override the stored settings for this run only, unless
  --save-settings is given
- --chapter and --start-word are 1-based for humans
- Ctrl+C stops playback, reports where it stopped, exits 130
- Errors print "Error: ..." to stderr and exit 1
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from rsvp_reader.config import SETTINGS_PATH, SUPPORTED_SOURCE_FORMATS
from rsvp_reader.core.ir import Document, Word
from rsvp_reader.playback.scheduler import PlaybackScheduler
from rsvp_reader.playback.timers import AsyncioTimer
from rsvp_reader.playback.timing import estimate_duration_ms
from rsvp_reader.settings import Settings, SettingsStore, validate_settings
from rsvp_reader.sources import SourceError, load_document

# Column the anchor letter is pinned to.
ANCHOR_COLUMN = 14

_CLEAR_LINE = "\r\x1b[K"


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not interleave with the word display on
    stdout, so either stream can be redirected on its own.
    """
    print(msg, file=sys.stderr, flush=True)


def _error(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def render_word(word: Optional[Word], column: int = ANCHOR_COLUMN) -> str:
    """Left-pad ``word`` so its anchor letter lands on ``column``."""
    if word is None:
        return ""
    padding = max(column - word.anchor_index, 0)
    return " " * padding + word.text


def format_duration(ms: float) -> str:
    total_seconds = int(round(ms / 1000.0))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return "{}:{:02d}:{:02d}".format(hours, minutes, seconds)
    return "{}:{:02d}".format(minutes, seconds)


def _setting_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides = {}  # type: Dict[str, Any]
    if args.wpm is not None:
        overrides["wpm"] = args.wpm
    if args.comma_pause is not None:
        overrides["comma_pause_multiplier"] = args.comma_pause
    if args.period_pause is not None:
        overrides["period_pause_multiplier"] = args.period_pause
    if args.paragraph_pause_ms is not None:
        overrides["paragraph_pause_ms"] = args.paragraph_pause_ms
    if args.chapter_pause_ms is not None:
        overrides["chapter_pause_ms"] = args.chapter_pause_ms
    return overrides


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Load stored settings and apply this run's overrides.

    RULES:
    - --save-settings persists the overridden value through SettingsStore
    - Invalid values (wpm <= 0, negative pauses) raise ValueError
    """
    store = SettingsStore(path=Path(args.settings) if args.settings else None)
    overrides = _setting_overrides(args)

    if args.save_settings:
        settings = store.update(**overrides)
        _status("Settings saved to {}".format(store.path))
        return settings

    return validate_settings(replace(store.settings, **overrides))


def _print_info(document: Document, settings: Settings, out: TextIO) -> None:
    print("Title: {}".format(document.title), file=out)
    print("Chapters: {}".format(len(document.chapters)), file=out)
    for index, chapter in enumerate(document.chapters, start=1):
        print("  {:>3}. {} ({} words)".format(
            index, chapter.title or "(untitled)", chapter.word_count,
        ), file=out)
    print("Words: {}".format(document.word_count), file=out)
    print("Estimated reading time at {:g} wpm: {}".format(
        settings.wpm, format_duration(estimate_duration_ms(document, settings)),
    ), file=out)


def _position_start(scheduler: PlaybackScheduler, args: argparse.Namespace) -> None:
    document = scheduler.document
    if document is None:
        return

    if args.chapter is not None:
        chapter_index = args.chapter - 1
        if 0 <= chapter_index < len(document.chapters):
            scheduler.jump_to_chapter(chapter_index)
        else:
            _status("Chapter {} does not exist ({} chapters); starting at the beginning".format(
                args.chapter, len(document.chapters),
            ))

    if args.start_word is not None:
        scheduler.jump_to_word(args.start_word - 1)


async def _play(scheduler: PlaybackScheduler, out: TextIO) -> None:
    """Play until the end of the document (or cancellation)."""
    finished = asyncio.Event()

    def _draw(s: PlaybackScheduler) -> None:
        out.write("{}{}".format(_CLEAR_LINE, render_word(s.current_word)))
        out.flush()

    def _on_change(s: PlaybackScheduler) -> None:
        _draw(s)
        if not s.is_playing:
            finished.set()

    _draw(scheduler)
    unsubscribe = scheduler.subscribe(_on_change)
    try:
        scheduler.play()
        if scheduler.is_playing:
            await finished.wait()
    finally:
        unsubscribe()
        scheduler.pause()
        out.write("\n")
        out.flush()


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without starting playback.
    """
    parser = argparse.ArgumentParser(
        prog="rsvp-reader",
        description="Read a plain text or EPUB file one word at a time "
                    "(rapid serial visual presentation).",
    )

    parser.add_argument(
        "source",
        help="Path to the text or EPUB file to read.",
    )

    parser.add_argument(
        "--wpm",
        type=float,
        default=None,
        help="Reading speed in words per minute (default: stored setting).",
    )

    parser.add_argument(
        "--comma-pause",
        type=float,
        default=None,
        help="Delay multiplier for words ending in a comma.",
    )

    parser.add_argument(
        "--period-pause",
        type=float,
        default=None,
        help="Delay multiplier for words ending in . ! ? ; or :.",
    )

    parser.add_argument(
        "--paragraph-pause-ms",
        type=float,
        default=None,
        help="Extra pause after each paragraph, in milliseconds.",
    )

    parser.add_argument(
        "--chapter-pause-ms",
        type=float,
        default=None,
        help="Extra pause after each chapter, in milliseconds.",
    )

    parser.add_argument(
        "--settings",
        default=None,
        help="Settings file (default: {}).".format(SETTINGS_PATH),
    )

    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store the effective settings for future runs.",
    )

    parser.add_argument(
        "--chapter",
        type=int,
        default=None,
        help="Start at this chapter (1 = first).",
    )

    parser.add_argument(
        "--start-word",
        type=int,
        default=None,
        help="Start at this word of the book (1 = first).",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        help="Print title, chapters, word count and reading time, then exit.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    source_path = Path(args.source).resolve()
    if not source_path.is_file():
        _error("File not found: {}".format(source_path))

    ext = source_path.suffix.lower()
    if ext not in SUPPORTED_SOURCE_FORMATS:
        _error("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_SOURCE_FORMATS)),
        ))

    try:
        settings = _resolve_settings(args)
    except ValueError as e:
        _error(str(e))

    _status("Reading {}...".format(source_path.name))
    try:
        document = load_document(source_path)
    except (SourceError, ValueError) as e:
        _error(str(e))

    if args.info:
        _print_info(document, settings, sys.stdout)
        return

    if document.is_empty:
        _status("No readable text in {}".format(source_path.name))
        return

    _status("{}: {} words in {} chapter(s) at {:g} wpm. Ctrl+C to stop.".format(
        document.title, document.word_count, len(document.chapters), settings.wpm,
    ))

    scheduler = PlaybackScheduler(settings, AsyncioTimer(), document)
    _position_start(scheduler, args)

    try:
        asyncio.run(_play(scheduler, sys.stdout))
    except KeyboardInterrupt:
        _status("Stopped at word {} of {}.".format(
            scheduler.current_word_index + 1, scheduler.total_words,
        ))
        sys.exit(130)

    _status("Finished {}.".format(document.title))


if __name__ == "__main__":
    main()
