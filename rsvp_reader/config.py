"""Configuration constants, supported source formats, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Default reading speed, where settings are stored,
and how the API server and its document store are sized are plain data
and not buried in logic.

HOW: python-dotenv loads the .env file on import. Constants are module
level values read from environment variables with defaults.

RULES:
- SUPPORTED_SOURCE_FORMATS lists accepted source file extensions
- All defaults can be overridden via environment variables (RSVP_*)
- Reader preferences (wpm, pauses) live in the settings file, not here;
  RSVP_DEFAULT_WPM only seeds the defaults that file is merged over
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Supported source file extensions
# ---------------------------------------------------------------------------

PLAIN_TEXT_FORMATS: set[str] = {".txt", ".md"}
EPUB_FORMATS: set[str] = {".epub"}

SUPPORTED_SOURCE_FORMATS: set[str] = PLAIN_TEXT_FORMATS | EPUB_FORMATS
"""Source file extensions the reader can open (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# Reader defaults
# ---------------------------------------------------------------------------

DEFAULT_WPM = int(os.getenv("RSVP_DEFAULT_WPM", "250"))

SETTINGS_PATH = Path(
    os.getenv("RSVP_SETTINGS_PATH", "~/.config/rsvp-reader/settings.json")
).expanduser()

LOG_LEVEL = os.getenv("RSVP_LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# HTTP API defaults
# ---------------------------------------------------------------------------

API_HOST = os.getenv("RSVP_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("RSVP_API_PORT", "8000"))
DOCUMENT_TTL_SECONDS = int(os.getenv("RSVP_DOCUMENT_TTL_SECONDS", "3600"))
MAX_DOCUMENTS = int(os.getenv("RSVP_MAX_DOCUMENTS", "50"))
