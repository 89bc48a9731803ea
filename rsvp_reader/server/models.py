"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: One model per response shape. SettingsModel reports the timing
settings a timeline was computed with and the server defaults; timeline
query parameters are declared on the endpoint itself. All fields carry
Field descriptions for the /docs UI.

RULES:
- Response models never expose internal objects (Document, Path)
- Positions are reported with zero-based indices
- SettingsModel mirrors the Settings bounds (wpm > 0, non-negative
  pauses)
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from rsvp_reader.core.position import Position
from rsvp_reader.settings import Settings


class SettingsModel(BaseModel):
    """Reader timing settings as exchanged over HTTP."""

    wpm: float = Field(gt=0, description="Words per minute.")
    comma_pause_multiplier: float = Field(
        ge=0, description="Delay multiplier for words ending in a comma.",
    )
    period_pause_multiplier: float = Field(
        ge=0, description="Delay multiplier for words ending in . ! ? ; or :.",
    )
    paragraph_pause_ms: float = Field(
        ge=0, description="Extra pause after a paragraph break, in milliseconds.",
    )
    chapter_pause_ms: float = Field(
        ge=0, description="Extra pause after a chapter break, in milliseconds.",
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsModel":
        return cls(
            wpm=settings.wpm,
            comma_pause_multiplier=settings.comma_pause_multiplier,
            period_pause_multiplier=settings.period_pause_multiplier,
            paragraph_pause_ms=settings.paragraph_pause_ms,
            chapter_pause_ms=settings.chapter_pause_ms,
        )


class PositionModel(BaseModel):
    chapter_index: int = Field(description="Zero-based chapter index.")
    paragraph_index: int = Field(description="Zero-based paragraph index within the chapter.")
    sentence_index: int = Field(description="Zero-based sentence index within the paragraph.")
    word_index: int = Field(description="Zero-based word index within the sentence.")

    @classmethod
    def from_position(cls, position: Position) -> "PositionModel":
        return cls(
            chapter_index=position.chapter_index,
            paragraph_index=position.paragraph_index,
            sentence_index=position.sentence_index,
            word_index=position.word_index,
        )


class ChapterInfo(BaseModel):
    index: int = Field(description="Zero-based chapter index.")
    title: Optional[str] = Field(default=None, description="Chapter title, if the source has one.")
    paragraphs: int = Field(description="Number of paragraphs.")
    words: int = Field(description="Number of words.")
    start_word: int = Field(description="Linear index of the chapter's first word.")


class DocumentCreatedResponse(BaseModel):
    """Returned immediately after upload; parsing continues in the background."""

    id: str = Field(description="Unique document identifier.")
    status: str = Field(description="Initial status (always 'pending').")
    filename: str = Field(description="Sanitized uploaded filename.")


class DocumentResponse(BaseModel):
    """Document status, plus the outline once parsing has finished.

    RULES:
    - title, total_words, estimated_duration_ms and chapters are only set
      when status is 'ready'
    - error is only set when status is 'failed'
    """

    id: str = Field(description="Unique document identifier.")
    status: str = Field(description="pending, parsing, ready or failed.")
    filename: str = Field(description="Sanitized uploaded filename.")
    created_at: float = Field(description="Upload timestamp (Unix epoch seconds).")
    title: Optional[str] = Field(default=None, description="Document title.")
    error: Optional[str] = Field(default=None, description="Why parsing failed.")
    total_words: Optional[int] = Field(default=None, description="Words in the document.")
    estimated_duration_ms: Optional[float] = Field(
        default=None,
        description="Reading time from the first word at the default settings.",
    )
    chapters: Optional[List[ChapterInfo]] = Field(default=None, description="Chapter outline.")


class TimelineWord(BaseModel):
    index: int = Field(description="Linear word index in the document.")
    text: str = Field(description="Word text including trailing punctuation.")
    anchor_index: int = Field(description="Character index of the recognition anchor.")
    punctuation: Optional[str] = Field(default=None, description="Trailing punctuation run.")
    position: PositionModel = Field(description="Hierarchical position of the word.")
    delay_ms: float = Field(
        description="How long the word stays up: word delay plus any break pause.",
    )
    paragraph_break: bool = Field(description="A paragraph or chapter break follows.")
    chapter_break: bool = Field(description="A chapter break follows.")


class TimelineResponse(BaseModel):
    document_id: str = Field(description="Document identifier.")
    start: int = Field(description="Linear index of the first returned word.")
    total_words: int = Field(description="Words in the document.")
    settings: SettingsModel = Field(description="Settings the delays were computed with.")
    words: List[TimelineWord] = Field(description="Words in playback order.")


class PositionResponse(BaseModel):
    document_id: str = Field(description="Document identifier.")
    index: int = Field(description="Clamped linear word index.")
    position: PositionModel = Field(description="Hierarchical position of the word.")
    progress: float = Field(description="Fraction of the document before this word.")
    word: Optional[str] = Field(default=None, description="The word at this position.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service status.", examples=["ok"])
    version: str = Field(description="Application version.", examples=["0.1.0"])


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error message.")
