"""Abstract base source and the raw chapter container.

WHY: Every container format (plain text, EPUB, ...) ends up as the same
thing: a title and a list of chapter texts. This base class enforces a
consistent interface so the CLI and the API can open any supported file
generically, and so the segmenter never learns about file formats.

HOW: BaseSource is an ABC with a ``name`` property, the ``extensions``
it accepts, and ``load(path)`` returning a SourceText. RawChapter and
SourceText are plain dataclasses.

RULES:
- Subclasses MUST implement ``name``, ``extensions`` and ``load()``
- ``load()`` either returns the complete text of the source or raises
  SourceError, never a partial result
- Chapter titles are optional; plain text has a single untitled chapter
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional


class SourceError(Exception):
    """Raised when a source file cannot be read or decoded.

    Wraps the underlying I/O or archive error so callers deal with one
    exception type for "this file is unusable".
    """

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__("Cannot read {}: {}".format(path, message))


class UnsupportedSourceError(ValueError):
    """Raised for a file extension no registered source accepts."""


@dataclass
class RawChapter:
    """The readable text of one chapter, before segmentation."""

    text: str
    title: Optional[str] = None


@dataclass
class SourceText:
    """Everything a source extracts: the book title and its chapters."""

    title: str
    chapters: List[RawChapter] = field(default_factory=list)


class BaseSource(ABC):
    """Abstract base for all source formats.

    To add a new source format:
    1. Create a new file in sources/
    2. Subclass BaseSource
    3. Implement name, extensions and load()
    4. Register in SOURCES dict in sources/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'EPUB'."""

    @property
    @abstractmethod
    def extensions(self) -> FrozenSet[str]:
        """Lowercase file extensions with dot, e.g. {'.epub'}."""

    @abstractmethod
    def load(self, path: Path) -> SourceText:
        """Extract the title and chapter texts from ``path``.

        Raises:
            SourceError: If the file cannot be read or decoded.
        """

    def accepts(self, path: Path) -> bool:
        return Path(path).suffix.lower() in self.extensions
