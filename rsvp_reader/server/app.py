"""FastAPI application exposing segmented documents and playback timelines.

WHY: A browser or mobile front end should not have to reimplement
segmentation, anchors, or the pause model. The API does the heavy part
once (parse the book) and then serves words together with the exact
delays the playback engine would use, so a client only has to flip
words on a timer.

HOW: POST /documents accepts a multipart upload, stores it in a
per-document temp directory, and parses it in a background task
(pending → parsing → ready | failed). Other endpoints serve the outline,
a timeline window of words with delays, position lookups, defaults and
health. A lifespan task expires old documents.

RULES:
- Error responses use a consistent ErrorResponse schema
- 400 unsupported file type, 404 unknown document or empty selection,
  409 document not ready, 422 invalid settings, 429 store full
- Timeline settings come from query parameters merged over the defaults
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from rsvp_reader import __version__
from rsvp_reader.config import API_HOST, API_PORT, LOG_LEVEL, SUPPORTED_SOURCE_FORMATS
from rsvp_reader.core.ir import Document
from rsvp_reader.core.position import (
    advance_one,
    is_at_end,
    linear_index_of,
    resolve_word,
    total_words,
    word_at_linear_index,
)
from rsvp_reader.core.segmenter import build_document_async
from rsvp_reader.playback.timing import break_pause_ms, estimate_duration_ms, word_delay_ms
from rsvp_reader.server.documents import DocumentRecord, DocumentStatus, DocumentStore
from rsvp_reader.server.models import (
    ChapterInfo,
    DocumentCreatedResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    PositionModel,
    PositionResponse,
    SettingsModel,
    TimelineResponse,
    TimelineWord,
)
from rsvp_reader.settings import DEFAULT_SETTINGS, Settings
from rsvp_reader.sources import load_source

logger = logging.getLogger(__name__)

MAX_TIMELINE_WORDS = 1000

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

document_store = DocumentStore()


async def _periodic_cleanup() -> None:
    """Expire old documents every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        document_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="RSVP Reader API",
    description=(
        "Upload plain text or EPUB books, then fetch their words with "
        "recognition anchors and the per-word delays of RSVP playback."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validate_file_extension(filename: str) -> None:
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_SOURCE_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_SOURCE_FORMATS))
            ),
        )


def _chapter_outline(document: Document) -> List[ChapterInfo]:
    outline = []  # type: List[ChapterInfo]
    start_word = 0
    for index, chapter in enumerate(document.chapters):
        outline.append(ChapterInfo(
            index=index,
            title=chapter.title,
            paragraphs=len(chapter.paragraphs),
            words=chapter.word_count,
            start_word=start_word,
        ))
        start_word += chapter.word_count
    return outline


def _record_to_response(record: DocumentRecord) -> DocumentResponse:
    response = DocumentResponse(
        id=record.id,
        status=record.status.value,
        filename=record.filename,
        created_at=record.created_at,
        error=record.error,
    )
    document = record.document
    if record.status == DocumentStatus.READY and document is not None:
        response.title = document.title
        response.total_words = document.word_count
        response.estimated_duration_ms = estimate_duration_ms(document, DEFAULT_SETTINGS)
        response.chapters = _chapter_outline(document)
    return response


def _get_ready_document(document_id: str) -> Document:
    record = document_store.get(document_id)
    if record is None:
        raise HTTPException(
            status_code=404, detail="Document not found: {}".format(document_id)
        )
    if record.status != DocumentStatus.READY or record.document is None:
        raise HTTPException(
            status_code=409,
            detail="Document is not ready (current status: {}).".format(record.status.value),
        )
    return record.document


def build_timeline(
    document: Document,
    settings: Settings,
    start: int,
    count: int,
) -> List[TimelineWord]:
    """List up to ``count`` words from linear index ``start`` with delays.

    WHY: Clients that run their own timer need the same delays the
    playback scheduler would arm, including paragraph/chapter pauses.

    HOW: Walks forward with advance_one from word_at_linear_index(start),
    applying word_delay_ms and break_pause_ms at each step.

    RULES:
    - start beyond the last word → empty list
    - The last word of the document gets its word delay and no breaks
    """
    total = total_words(document)
    if start >= total or count <= 0:
        return []

    words = []  # type: List[TimelineWord]
    pos = word_at_linear_index(document, start)
    index = linear_index_of(document, pos)

    while len(words) < count:
        word = resolve_word(document, pos)
        if word is None:
            break

        delay = word_delay_ms(word, settings)
        at_end = is_at_end(document, pos)
        advance = advance_one(document, pos)

        words.append(TimelineWord(
            index=index,
            text=word.text,
            anchor_index=word.anchor_index,
            punctuation=word.punctuation,
            position=PositionModel.from_position(pos),
            delay_ms=delay + break_pause_ms(settings, advance),
            paragraph_break=advance.paragraph_break,
            chapter_break=advance.chapter_break,
        ))

        if at_end:
            break
        pos = advance.position
        index += 1

    return words


async def _parse_document(record_id: str, store: DocumentStore) -> None:
    """Read and segment an uploaded source.

    RULES:
    - PENDING → PARSING → READY (with the Document) or FAILED (with error)
    - Any exception marks the record failed; nothing partial is stored
    """
    record = store.get(record_id)
    if record is None:
        return

    try:
        store.update(record_id, status=DocumentStatus.PARSING)
        source_text = load_source(record.source_path)
        document = await build_document_async(
            source_text.chapters, record.title or source_text.title,
        )
        store.update(record_id, status=DocumentStatus.READY, document=document)
    except Exception as exc:
        logger.exception("Parsing failed for document %s", record_id)
        store.update(record_id, status=DocumentStatus.FAILED, error=str(exc))


def _parse_document_sync(record_id: str, store: DocumentStore) -> None:
    """Synchronous wrapper so BackgroundTasks can run the async parser."""
    asyncio.run(_parse_document(record_id, store))


# ---------------------------------------------------------------------------
# Endpoints: Documents
# ---------------------------------------------------------------------------


@app.post(
    "/documents",
    response_model=DocumentCreatedResponse,
    status_code=201,
    tags=["documents"],
    summary="Upload a document",
    description=(
        "Upload a plain text or EPUB file. Returns a document ID immediately; "
        "parsing runs in the background. Poll GET /documents/{id} until the "
        "status is 'ready'."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported file type"},
        429: {"model": ErrorResponse, "description": "Too many stored documents"},
        500: {"model": ErrorResponse, "description": "Upload could not be stored"},
    },
)
async def create_document(
    background_tasks: BackgroundTasks,
    file: Annotated[
        UploadFile,
        File(description="Plain text (.txt, .md) or EPUB (.epub) file."),
    ],
    title: Annotated[
        Optional[str],
        Form(description="Overrides the title found in the file."),
    ] = None,
) -> DocumentCreatedResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload").name
    _validate_file_extension(filename)

    try:
        record = document_store.create(filename=filename, title=title)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    content = await file.read()
    try:
        record.source_path.write_bytes(content)
    except OSError as exc:
        logger.exception("Could not store upload for document %s", record.id)
        document_store.delete(record.id)
        raise HTTPException(status_code=500, detail="Could not store upload: {}".format(exc))

    background_tasks.add_task(_parse_document_sync, record.id, document_store)

    return DocumentCreatedResponse(
        id=record.id,
        status=record.status.value,
        filename=record.filename,
    )


@app.get(
    "/documents",
    response_model=List[DocumentResponse],
    tags=["documents"],
    summary="List documents",
)
async def list_documents() -> List[DocumentResponse]:
    return [_record_to_response(r) for r in document_store.list_documents()]


@app.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    tags=["documents"],
    summary="Get document status and outline",
    responses={404: {"model": ErrorResponse, "description": "Document not found"}},
)
async def get_document(document_id: str) -> DocumentResponse:
    record = document_store.get(document_id)
    if record is None:
        raise HTTPException(
            status_code=404, detail="Document not found: {}".format(document_id)
        )
    return _record_to_response(record)


@app.delete(
    "/documents/{document_id}",
    status_code=204,
    tags=["documents"],
    summary="Delete a document",
    responses={404: {"model": ErrorResponse, "description": "Document not found"}},
)
async def delete_document(document_id: str) -> Response:
    if not document_store.delete(document_id):
        raise HTTPException(
            status_code=404, detail="Document not found: {}".format(document_id)
        )
    return Response(status_code=204)


@app.get(
    "/documents/{document_id}/timeline",
    response_model=TimelineResponse,
    tags=["playback"],
    summary="Words with display delays",
    description=(
        "Returns up to `count` words starting at linear index `start`, each "
        "with its recognition anchor, position, and the delay it stays on "
        "screen. Settings not given as query parameters use the defaults."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Document not found"},
        409: {"model": ErrorResponse, "description": "Document not ready"},
    },
)
async def get_timeline(
    document_id: str,
    start: Annotated[int, Query(ge=0, description="First linear word index.")] = 0,
    count: Annotated[
        int, Query(ge=1, le=MAX_TIMELINE_WORDS, description="Maximum words to return."),
    ] = 100,
    wpm: Annotated[Optional[float], Query(gt=0)] = None,
    comma_pause_multiplier: Annotated[Optional[float], Query(ge=0)] = None,
    period_pause_multiplier: Annotated[Optional[float], Query(ge=0)] = None,
    paragraph_pause_ms: Annotated[Optional[float], Query(ge=0)] = None,
    chapter_pause_ms: Annotated[Optional[float], Query(ge=0)] = None,
) -> TimelineResponse:
    document = _get_ready_document(document_id)

    overrides = {
        "wpm": wpm,
        "comma_pause_multiplier": comma_pause_multiplier,
        "period_pause_multiplier": period_pause_multiplier,
        "paragraph_pause_ms": paragraph_pause_ms,
        "chapter_pause_ms": chapter_pause_ms,
    }
    settings = replace(
        DEFAULT_SETTINGS, **{k: v for k, v in overrides.items() if v is not None}
    )

    return TimelineResponse(
        document_id=document_id,
        start=start,
        total_words=total_words(document),
        settings=SettingsModel.from_settings(settings),
        words=build_timeline(document, settings, start, count),
    )


@app.get(
    "/documents/{document_id}/positions/{index}",
    response_model=PositionResponse,
    tags=["playback"],
    summary="Resolve a linear word index",
    description="Clamps `index` to the document and returns its position and progress.",
    responses={
        404: {"model": ErrorResponse, "description": "Document not found or empty"},
        409: {"model": ErrorResponse, "description": "Document not ready"},
    },
)
async def get_position(document_id: str, index: int) -> PositionResponse:
    document = _get_ready_document(document_id)
    total = total_words(document)
    if total == 0:
        raise HTTPException(status_code=404, detail="Document has no words.")

    position = word_at_linear_index(document, index)
    clamped = linear_index_of(document, position)
    word = resolve_word(document, position)

    return PositionResponse(
        document_id=document_id,
        index=clamped,
        position=PositionModel.from_position(position),
        progress=clamped / total,
        word=word.text if word is not None else None,
    )


# ---------------------------------------------------------------------------
# Endpoints: Settings and health
# ---------------------------------------------------------------------------


@app.get(
    "/settings/defaults",
    response_model=SettingsModel,
    tags=["settings"],
    summary="Default reader settings",
)
async def get_default_settings() -> SettingsModel:
    return SettingsModel.from_settings(DEFAULT_SETTINGS)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the rsvp-api console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting RSVP Reader API on %s:%d", API_HOST, API_PORT)
    uvicorn.run(app, host=API_HOST, port=API_PORT)
