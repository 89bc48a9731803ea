"""In-memory document store with background parsing and TTL cleanup.

WHY: The HTTP API accepts uploaded books and serves their words and
timelines. Segmenting a long EPUB takes a noticeable moment, so the API
returns a document ID immediately and parses in the background. An
in-memory store is sufficient for a single-user reading tool with no
persistence requirements.

HOW: Three components work together:
  DocumentStatus — enum of valid record states
  DocumentRecord — dataclass holding metadata, status, the upload
                   directory and (once ready) the Document
  DocumentStore  — thread-safe dict-based store with create/update/get/
                   list/delete and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- Each record gets a dedicated temp directory for the uploaded file
- A record only ever holds a complete Document (set together with READY)
- TTL is measured from completed_at and applies to READY and FAILED
- Record IDs are UUID4 hex strings
"""

from __future__ import annotations

import enum
import logging
import shutil
import tempfile
import threading
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from rsvp_reader.config import DOCUMENT_TTL_SECONDS, MAX_DOCUMENTS
from rsvp_reader.core.ir import Document

logger = logging.getLogger(__name__)


class DocumentStatus(str, enum.Enum):
    """Valid states for an uploaded document.

    RULES:
    - pending: uploaded, parsing not started
    - parsing: source being read and segmented
    - ready: Document available
    - failed: unreadable source; error holds the reason
    """

    PENDING = "pending"
    PARSING = "parsing"
    READY = "ready"
    FAILED = "failed"


_TERMINAL = (DocumentStatus.READY, DocumentStatus.FAILED)


@dataclass
class DocumentRecord:
    """Metadata and state for one uploaded source.

    RULES:
    - filename: sanitized upload name; the file lives in upload_dir
    - title: optional override for the title the source reports
    - document: None until status is READY
    """

    id: str
    status: DocumentStatus
    filename: str
    upload_dir: Path
    created_at: float
    updated_at: float
    title: Optional[str] = None
    completed_at: Optional[float] = None
    error: Optional[str] = None
    document: Optional[Document] = None

    @property
    def source_path(self) -> Path:
        return self.upload_dir / self.filename


class DocumentStore:
    """Thread-safe in-memory store for uploaded documents.

    RULES:
    - create() raises ValueError when max_documents is reached
    - get() returns None for unknown IDs (no exceptions)
    - delete() and cleanup_expired() remove upload directories outside
      the lock, best-effort
    """

    def __init__(
        self,
        ttl_seconds: int = DOCUMENT_TTL_SECONDS,
        max_documents: int = MAX_DOCUMENTS,
    ) -> None:
        self._records: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_documents = max_documents

    def create(self, filename: str, title: Optional[str] = None) -> DocumentRecord:
        """Create a PENDING record with its own upload directory."""
        with self._lock:
            if len(self._records) >= self.max_documents:
                raise ValueError(
                    "Maximum number of documents ({}) reached".format(self.max_documents)
                )

            record_id = uuid.uuid4().hex
            now = time.time()
            record = DocumentRecord(
                id=record_id,
                status=DocumentStatus.PENDING,
                filename=filename,
                upload_dir=Path(tempfile.mkdtemp(prefix="rsvp_doc_")),
                created_at=now,
                updated_at=now,
                title=title,
            )
            self._records[record_id] = record

        logger.info("Created document %s for file %s", record_id, filename)
        return record

    def get(self, record_id: str) -> Optional[DocumentRecord]:
        with self._lock:
            return self._records.get(record_id)

    def list_documents(self) -> List[DocumentRecord]:
        """All records, oldest first."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.created_at)

    def update(
        self,
        record_id: str,
        status: Optional[DocumentStatus] = None,
        error: Optional[str] = None,
        document: Optional[Document] = None,
    ) -> Optional[DocumentRecord]:
        """Apply non-None changes; sets completed_at on READY/FAILED.

        Returns:
            The updated record, or None if ``record_id`` is unknown.
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None

            now = time.time()
            if status is not None:
                record.status = status
            if error is not None:
                record.error = error
            if document is not None:
                record.document = document
            record.updated_at = now

            if record.status in _TERMINAL:
                record.completed_at = now

            return record

    def delete(self, record_id: str) -> bool:
        with self._lock:
            record = self._records.pop(record_id, None)

        if record is None:
            return False

        self._cleanup_upload_dir(record.upload_dir)
        logger.info("Deleted document %s", record_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove READY/FAILED records older than the TTL; return the count."""
        now = time.time()
        expired = []  # type: List[DocumentRecord]

        with self._lock:
            for record_id, record in list(self._records.items()):
                if record.status not in _TERMINAL or record.completed_at is None:
                    continue
                if now - record.completed_at > self._ttl_seconds:
                    expired.append(self._records.pop(record_id))

        for record in expired:
            self._cleanup_upload_dir(record.upload_dir)
            logger.info("Expired document %s", record.id)

        return len(expired)

    @staticmethod
    def _cleanup_upload_dir(upload_dir: Path) -> None:
        if upload_dir.exists():
            try:
                shutil.rmtree(upload_dir)
            except OSError:
                logger.warning("Failed to clean up temp dir: %s", upload_dir)
