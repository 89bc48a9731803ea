"""Plain text source: one untitled chapter covering the whole file.

RULES:
- Decoded as UTF-8 (a leading BOM is dropped); undecodable bytes are an
  error, not silently replaced
- Title is the filename stem
"""

from __future__ import annotations

from pathlib import Path
from typing import FrozenSet

from rsvp_reader.config import PLAIN_TEXT_FORMATS
from rsvp_reader.sources.base import BaseSource, RawChapter, SourceError, SourceText


class PlainTextSource(BaseSource):

    @property
    def name(self) -> str:
        return "Plain Text"

    @property
    def extensions(self) -> FrozenSet[str]:
        return frozenset(PLAIN_TEXT_FORMATS)

    def load(self, path: Path) -> SourceText:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(path, str(exc)) from exc

        return SourceText(title=path.stem, chapters=[RawChapter(text=text)])
