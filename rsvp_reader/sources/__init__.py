"""Source registry — acquisition of raw chapter text from files.

WHY: The CLI and the API need a single lookup to open any supported
file. A central dict makes it trivial to add new formats: create the
source class, import it here, add one line.

HOW: SOURCES maps string keys to source *classes* (not instances).
source_for_path() picks the class by file extension; load_source(),
load_raw_chapters() and load_document() are the convenience entry
points callers actually use.

RULES:
- Keys are snake_case identifiers
- Values are BaseSource subclasses (not instances)
- Unknown extensions raise UnsupportedSourceError (a ValueError)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from rsvp_reader.core.ir import Document
from rsvp_reader.core.segmenter import build_document
from rsvp_reader.sources.base import (
    RawChapter,
    SourceError,
    SourceText,
    UnsupportedSourceError,
)
from rsvp_reader.sources.epub import EpubSource
from rsvp_reader.sources.plain_text import PlainTextSource

if TYPE_CHECKING:
    from rsvp_reader.sources.base import BaseSource

SOURCES: Dict[str, type[BaseSource]] = {
    "plain_text": PlainTextSource,
    "epub": EpubSource,
}

__all__ = [
    "RawChapter",
    "SOURCES",
    "SourceError",
    "SourceText",
    "UnsupportedSourceError",
    "load_document",
    "load_raw_chapters",
    "load_source",
    "source_for_path",
]


def source_for_path(path: Union[str, Path]) -> BaseSource:
    """Return a source instance able to read ``path``.

    Raises:
        UnsupportedSourceError: If no registered source takes the extension.
    """
    path = Path(path)
    for source_cls in SOURCES.values():
        source = source_cls()
        if source.accepts(path):
            return source

    supported = sorted(ext for cls in SOURCES.values() for ext in cls().extensions)
    raise UnsupportedSourceError(
        "Unsupported file type '{}'. Supported formats: {}".format(
            path.suffix.lower(), ", ".join(supported)
        )
    )


def load_source(path: Union[str, Path]) -> SourceText:
    return source_for_path(path).load(Path(path))


def load_raw_chapters(path: Union[str, Path]) -> List[RawChapter]:
    return load_source(path).chapters


def load_document(path: Union[str, Path], title: Optional[str] = None) -> Document:
    """Read and segment ``path`` in one call.

    Args:
        path: A supported source file.
        title: Overrides the title the source reports.
    """
    source_text = load_source(path)
    return build_document(source_text.chapters, title or source_text.title)
