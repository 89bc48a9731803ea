"""Tests for the command-line interface.

WHY: The CLI is the main way people use the reader. These tests pin down
argument parsing, the error exits, the --info report and a real (very
fast) playback run.

HOW: main() is called with an explicit argv. Every run passes --settings
pointing into tmp_path so the user's settings file is never touched.
Playback uses an absurd wpm so a few words finish in milliseconds.
"""

from __future__ import annotations

import json

import pytest

from rsvp_reader.cli import ANCHOR_COLUMN, build_parser, format_duration, main, render_word
from rsvp_reader.core.tokenizer import tokenize


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def book(tmp_path):
    path = tmp_path / "book.txt"
    path.write_text("Hello there, friend.\n\nThe end.", encoding="utf-8")
    return path


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["book.epub"])
        assert args.source == "book.epub"
        assert args.wpm is None
        assert args.chapter is None
        assert args.start_word is None
        assert not args.info
        assert not args.save_settings

    def test_all_flags(self):
        args = build_parser().parse_args([
            "book.txt", "--wpm", "400", "--comma-pause", "1.2", "--period-pause", "2",
            "--paragraph-pause-ms", "300", "--chapter-pause-ms", "900",
            "--chapter", "3", "--start-word", "10", "--info",
        ])
        assert args.wpm == 400
        assert args.comma_pause == 1.2
        assert args.period_pause == 2
        assert args.paragraph_pause_ms == 300
        assert args.chapter_pause_ms == 900
        assert args.chapter == 3
        assert args.start_word == 10
        assert args.info


class TestHelpers:

    def test_render_word_pins_anchor(self):
        line = render_word(tokenize("paragraph"))
        assert line.index("r") == ANCHOR_COLUMN
        assert line.strip() == "paragraph"

    def test_render_word_none(self):
        assert render_word(None) == ""

    @pytest.mark.parametrize("ms,expected", [
        (0, "0:00"),
        (59400, "0:59"),
        (61000, "1:01"),
        (3723000, "1:02:03"),
    ])
    def test_format_duration(self, ms, expected):
        assert format_duration(ms) == expected


class TestMain:

    def test_info(self, book, settings_file, capsys):
        main([str(book), "--info", "--settings", str(settings_file)])
        out = capsys.readouterr().out
        assert "Title: book" in out
        assert "Chapters: 1" in out
        assert "(untitled) (5 words)" in out
        assert "Words: 5" in out
        assert "Estimated reading time at 250 wpm" in out

    def test_missing_file_exits_1(self, tmp_path, settings_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing.txt"), "--settings", str(settings_file)])
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_unsupported_extension_exits_1(self, tmp_path, settings_file, capsys):
        path = tmp_path / "paper.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "--settings", str(settings_file)])
        assert exc_info.value.code == 1
        assert "Unsupported file type '.pdf'" in capsys.readouterr().err

    def test_invalid_wpm_exits_1(self, book, settings_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(book), "--wpm", "0", "--settings", str(settings_file)])
        assert exc_info.value.code == 1
        assert "Invalid settings" in capsys.readouterr().err

    def test_unreadable_source_exits_1(self, tmp_path, settings_file, capsys):
        path = tmp_path / "broken.epub"
        path.write_bytes(b"not a zip")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "--settings", str(settings_file)])
        assert exc_info.value.code == 1

    def test_save_settings(self, book, settings_file):
        main([
            str(book), "--info", "--wpm", "480", "--save-settings",
            "--settings", str(settings_file),
        ])
        assert json.loads(settings_file.read_text(encoding="utf-8"))["wpm"] == 480

    def test_overrides_not_saved_by_default(self, book, settings_file):
        main([str(book), "--info", "--wpm", "480", "--settings", str(settings_file)])
        assert not settings_file.exists()

    def test_stored_settings_used(self, book, settings_file, capsys):
        settings_file.write_text(json.dumps({"wpm": 123}), encoding="utf-8")
        main([str(book), "--info", "--settings", str(settings_file)])
        assert "at 123 wpm" in capsys.readouterr().out

    def test_empty_source(self, tmp_path, settings_file, capsys):
        path = tmp_path / "blank.txt"
        path.write_text("  \n\n  ", encoding="utf-8")
        main([str(path), "--settings", str(settings_file)])
        assert "No readable text" in capsys.readouterr().err

    def test_plays_to_the_end(self, book, settings_file, capsys):
        main([str(book), "--wpm", "600000", "--settings", str(settings_file)])
        captured = capsys.readouterr()
        assert "friend." in captured.out
        assert "end." in captured.out
        assert "Finished book." in captured.err

    def test_start_word(self, book, settings_file, capsys):
        main([
            str(book), "--wpm", "600000", "--start-word", "4",
            "--settings", str(settings_file),
        ])
        out = capsys.readouterr().out
        assert "Hello" not in out
        assert "end." in out

    def test_chapter_out_of_range_warns(self, book, settings_file, capsys):
        main([
            str(book), "--wpm", "600000", "--chapter", "5",
            "--settings", str(settings_file),
        ])
        assert "Chapter 5 does not exist" in capsys.readouterr().err
