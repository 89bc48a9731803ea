"""Reader settings: the value type, validation, and the persistent store.

WHY: Playback speed and pause lengths are personal preferences that
should survive restarts, but the playback core must only ever see a
plain, already-validated value. This module keeps both concerns apart:
Settings is an immutable snapshot the scheduler reads, SettingsStore is
the application-side owner that loads, saves and broadcasts changes.

HOW: Settings is a frozen dataclass. On disk it is a flat JSON object
with camelCase keys, merged over the defaults on load and checked
against a JSON schema (jsonschema). Anything unreadable falls back to
the defaults with a warning. SettingsStore holds the live value,
auto-saves on every change and calls registered listeners with the new
snapshot.

RULES:
- Persisted keys: wpm, commaPauseMultiplier, periodPauseMultiplier,
  paragraphPauseMs, chapterPauseMs — nothing else is written
- Unknown keys in the file are ignored; missing keys take defaults
- load_settings never raises; save failures are logged, not raised
- validate_settings raises ValueError for wpm <= 0 or negative values;
  every caller that builds Settings from user input runs it first
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import jsonschema

from rsvp_reader.config import DEFAULT_WPM, SETTINGS_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Reader timing preferences.

    RULES:
    - wpm: words per minute, > 0
    - comma_pause_multiplier / period_pause_multiplier: scale the base
      delay for words ending in a comma / in . ! ? ; :
    - paragraph_pause_ms / chapter_pause_ms: extra pause after crossing
      a paragraph / chapter break
    """

    wpm: float = DEFAULT_WPM
    comma_pause_multiplier: float = 1.0
    period_pause_multiplier: float = 1.7
    paragraph_pause_ms: float = 0
    chapter_pause_ms: float = 0


DEFAULT_SETTINGS = Settings()

# Field name → persisted JSON key.
_FIELD_TO_KEY: Dict[str, str] = {
    "wpm": "wpm",
    "comma_pause_multiplier": "commaPauseMultiplier",
    "period_pause_multiplier": "periodPauseMultiplier",
    "paragraph_pause_ms": "paragraphPauseMs",
    "chapter_pause_ms": "chapterPauseMs",
}
_KEY_TO_FIELD: Dict[str, str] = {v: k for k, v in _FIELD_TO_KEY.items()}

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "wpm": {"type": "number", "exclusiveMinimum": 0},
        "commaPauseMultiplier": {"type": "number", "minimum": 0},
        "periodPauseMultiplier": {"type": "number", "minimum": 0},
        "paragraphPauseMs": {"type": "number", "minimum": 0},
        "chapterPauseMs": {"type": "number", "minimum": 0},
    },
    "required": list(_FIELD_TO_KEY.values()),
}


def settings_to_dict(settings: Settings) -> Dict[str, Any]:
    """Serialize to the persisted camelCase layout."""
    return {_FIELD_TO_KEY[name]: value for name, value in asdict(settings).items()}


def settings_from_dict(data: Dict[str, Any]) -> Settings:
    """Merge a persisted record over the defaults and validate it.

    Raises:
        ValueError: If the merged record violates SETTINGS_SCHEMA.
    """
    merged = settings_to_dict(DEFAULT_SETTINGS)
    for key, value in data.items():
        if key in _KEY_TO_FIELD:
            merged[key] = value

    try:
        jsonschema.validate(instance=merged, schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise ValueError("Invalid settings: {}".format(exc.message)) from exc

    return Settings(**{_KEY_TO_FIELD[key]: value for key, value in merged.items()})


def validate_settings(settings: Settings) -> Settings:
    """Return ``settings`` unchanged if valid, else raise ValueError.

    WHY: The delay formula divides by wpm. A non-positive speed has to be
    stopped where settings enter the program, not inside the scheduler.
    """
    try:
        jsonschema.validate(instance=settings_to_dict(settings), schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise ValueError("Invalid settings: {}".format(exc.message)) from exc
    return settings


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from ``path`` (default SETTINGS_PATH).

    RULES:
    - Missing file → defaults, silently
    - Unreadable file, bad JSON, non-object JSON or schema violation →
      defaults, with a warning
    """
    path = Path(path) if path is not None else SETTINGS_PATH
    if not path.is_file():
        return DEFAULT_SETTINGS

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return DEFAULT_SETTINGS

    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return DEFAULT_SETTINGS

    try:
        return settings_from_dict(data)
    except ValueError as exc:
        logger.warning("Ignoring settings file %s: %s", path, exc)
        return DEFAULT_SETTINGS


def save_settings(settings: Settings, path: Optional[Path] = None) -> bool:
    """Write ``settings`` as JSON, creating parent directories.

    Returns:
        True on success, False if the file could not be written.
    """
    path = Path(path) if path is not None else SETTINGS_PATH
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(settings_to_dict(settings), indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("Could not save settings to %s: %s", path, exc)
        return False
    return True


SettingsListener = Callable[[Settings], None]


class SettingsStore:
    """Live, persisted settings with change notification.

    WHY: The CLI and any future UI change settings while a book is
    playing; the scheduler must hear about a new wpm immediately, and the
    file on disk must follow without each caller remembering to save.

    HOW: Holds the current snapshot. update() builds a new validated
    snapshot with dataclasses.replace, saves it, then calls every
    listener in subscription order.

    RULES:
    - subscribe() returns an unsubscribe callable
    - Invalid updates raise ValueError and change nothing
    - Listeners are not called when an update leaves the value unchanged
    """

    def __init__(self, path: Optional[Path] = None, autosave: bool = True) -> None:
        self.path = Path(path) if path is not None else SETTINGS_PATH
        self.autosave = autosave
        self._settings = load_settings(self.path)
        self._listeners: List[SettingsListener] = []

    @property
    def settings(self) -> Settings:
        return self._settings

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, **changes: Any) -> Settings:
        """Apply field changes, e.g. ``store.update(wpm=400)``."""
        new_settings = validate_settings(replace(self._settings, **changes))
        self._set(new_settings)
        return new_settings

    def reset(self) -> Settings:
        self._set(DEFAULT_SETTINGS)
        return DEFAULT_SETTINGS

    def _set(self, new_settings: Settings) -> None:
        if new_settings == self._settings:
            return
        self._settings = new_settings
        if self.autosave:
            save_settings(new_settings, self.path)
        for listener in list(self._listeners):
            listener(new_settings)
