"""Raw token → Word conversion: punctuation extraction and anchor index.

WHY: Each word flashed on screen is pinned at its "optimal recognition
point" (ORP) so the eye lands on the same spot every time, and words
ending in punctuation are held longer. Both facts are derived from the
token text alone, independent of where the text came from.

HOW: A regex captures the maximal trailing run of closing punctuation.
The anchor is looked up from the length of the token with that run
stripped, using a fixed table (the Spritz-style ORP heuristic). The
token text itself is kept unstripped for display.

RULES:
- Trailing punctuation class: . , ; : ! ? ' " ) ]
- Anchor by stripped length: 1–3 → 0, 4–5 → 1, 6–9 → 2, 10+ → 3
- A punctuation-only token ("...") is a valid word with anchor 0
- Empty tokens are rejected; callers split on whitespace and drop blanks
"""

from __future__ import annotations

import re
from typing import List, Optional

from rsvp_reader.core.ir import Word

# Maximal run of closing punctuation at the end of a token.
_TRAILING_PUNCTUATION_RE = re.compile(r"[.,;:!?'\")\]]+$")

# (max stripped length, anchor index), checked in order; longer → last anchor.
_ANCHOR_TABLE = (
    (3, 0),
    (5, 1),
    (9, 2),
)
_LONG_WORD_ANCHOR = 3


def extract_punctuation(raw: str) -> Optional[str]:
    """Return the trailing punctuation run of ``raw``, or None."""
    match = _TRAILING_PUNCTUATION_RE.search(raw)
    return match.group(0) if match else None


def clean_word(raw: str) -> str:
    """Return ``raw`` with its trailing punctuation run removed."""
    return _TRAILING_PUNCTUATION_RE.sub("", raw)


def calculate_anchor_index(clean: str) -> int:
    """Map a punctuation-stripped word to its ORP anchor index.

    WHY: The focal letter sits slightly left of centre; for short words
    that is the first letter, for long words the fourth.

    HOW: Table lookup on ``len(clean)``.

    RULES:
    - 0–3 chars → 0 (0 only happens for punctuation-only tokens)
    - 4–5 → 1, 6–9 → 2, 10 or more → 3
    """
    length = len(clean)
    for max_length, anchor in _ANCHOR_TABLE:
        if length <= max_length:
            return anchor
    return _LONG_WORD_ANCHOR


def tokenize(raw: str) -> Word:
    """Convert one whitespace-delimited token into a Word.

    Args:
        raw: A non-empty token, e.g. ``"there."``.

    Returns:
        Word with the original text, its anchor index and its trailing
        punctuation (None when the token ends in a letter or digit).

    Raises:
        ValueError: If ``raw`` is empty.
    """
    if not raw:
        raise ValueError("Cannot tokenize an empty token")
    return Word(
        text=raw,
        anchor_index=calculate_anchor_index(clean_word(raw)),
        punctuation=extract_punctuation(raw),
    )


def tokenize_sentence(sentence: str) -> List[Word]:
    """Split a sentence on whitespace and tokenize every non-empty token."""
    return [tokenize(raw) for raw in sentence.split() if raw]
