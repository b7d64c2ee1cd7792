"""Evidence ingestion service — classify, store, record, and (for Office files) defer to conversion.

Responsibilities:
  - Effective MIME type resolution (declared type, else file extension)
  - Classification into direct-viewable / convertible / unsupported
  - One object-store write per upload, keyed by tenant and record id
  - Enqueueing ``files.convert_to_pdf`` for convertible uploads
  - Signed view URLs for READY evidence

Rule: No FastAPI here. Collaborators (object store, job queue) are injected.
"""


import enum
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from app.domain.evidence import EvidenceFile, EvidenceStatus
from app.jobs.queue import CONVERT_TO_PDF_JOB, JobQueue
from app.repositories.evidence import EvidenceFileRepository
from app.storage.object_store import ObjectStore, SignedUrl

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DIRECT_VIEWABLE_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
)

CONVERTIBLE_MIME_TYPES: tuple[str, ...] = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
)

ACCEPTED_MIME_TYPES: list[str] = [*DIRECT_VIEWABLE_MIME_TYPES, *CONVERTIBLE_MIME_TYPES]

# Browsers on Windows often send an empty content type
EXTENSION_MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class EvidenceKind(str, enum.Enum):
    DIRECT_VIEWABLE = "direct_viewable"
    CONVERTIBLE = "convertible"
    UNSUPPORTED = "unsupported"


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------

def resolve_mime_type(filename: str, content_type: str | None) -> str:
    """Declared content type if present (parameters stripped), else infer from extension."""
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared:
        return declared
    ext = PurePosixPath(filename.lower()).suffix.lstrip(".")
    return EXTENSION_MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def classify_mime_type(mime_type: str) -> EvidenceKind:
    if mime_type in DIRECT_VIEWABLE_MIME_TYPES:
        return EvidenceKind.DIRECT_VIEWABLE
    if mime_type in CONVERTIBLE_MIME_TYPES:
        return EvidenceKind.CONVERTIBLE
    return EvidenceKind.UNSUPPORTED


def safe_filename(filename: str) -> str:
    """Reduce a client filename to characters safe to embed in a storage key."""
    return _UNSAFE_KEY_CHARS.sub("_", filename)


def evidence_key(tenant_id: str, evidence_file_id: str, rendition: str, filename: str) -> str:
    """``t/{tenant}/evidence/{id}/{view|source}/{safe name}``"""
    return f"t/{tenant_id}/evidence/{evidence_file_id}/{rendition}/{safe_filename(filename)}"


@dataclass(frozen=True)
class UploadResult:
    evidence: EvidenceFile
    # True when the file was accepted for conversion rather than stored ready-to-view
    deferred: bool
    job_id: str | None = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class EvidenceService:
    def __init__(
        self,
        session: AsyncSession,
        tenant_id: str,
        *,
        store: ObjectStore,
        queue: JobQueue,
        max_upload_bytes: int | None = None,
    ):
        self._repo = EvidenceFileRepository(session, tenant_id)
        self._tenant_id = tenant_id
        self._store = store
        self._queue = queue
        self._max_upload_bytes = (
            max_upload_bytes if max_upload_bytes is not None else settings.max_upload_size_bytes
        )

    def ensure_within_limit(self, size: int | None) -> None:
        """Raise PayloadTooLargeError when a known size is over the upload limit."""
        if size is not None and size > self._max_upload_bytes:
            raise PayloadTooLargeError(self._max_upload_bytes)

    async def upload(
        self,
        *,
        filename: str | None,
        content_type: str | None,
        data: bytes | None,
        actor_id: str | None,
        trace_id: str | None = None,
    ) -> UploadResult:
        # Validate before touching storage or the DB
        if not filename or not filename.strip():
            raise InvalidInputError("Missing or invalid 'file': a filename is required")
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInputError("Missing or invalid 'file': no content")
        if len(data) == 0:
            raise InvalidInputError("Uploaded file is empty.")
        self.ensure_within_limit(len(data))

        mime_type = resolve_mime_type(filename, content_type)
        kind = classify_mime_type(mime_type)
        if kind is EvidenceKind.UNSUPPORTED:
            logger.info(
                "Rejected unsupported upload tenant=%s name=%s mime=%s",
                self._tenant_id, filename, mime_type,
            )
            raise UnsupportedMediaTypeError(mime_type, ACCEPTED_MIME_TYPES)

        uploaded_by = actor_id or "anonymous"
        evidence_file_id = str(uuid.uuid4())

        if kind is EvidenceKind.DIRECT_VIEWABLE:
            view_key = evidence_key(self._tenant_id, evidence_file_id, "view", filename)
            await self._store.put(view_key, bytes(data), mime_type)
            record = await self._repo.create(
                id=evidence_file_id,
                original_name=filename,
                mime_type=mime_type,
                size_bytes=len(data),
                status=EvidenceStatus.READY.value,
                view_key=view_key,
                uploaded_by=uploaded_by,
            )
            logger.info("Evidence %s stored ready-to-view at %s", record.id, view_key)
            return UploadResult(evidence=record, deferred=False)

        source_key = evidence_key(self._tenant_id, evidence_file_id, "source", filename)
        await self._store.put(source_key, bytes(data), mime_type)
        record = await self._repo.create(
            id=evidence_file_id,
            original_name=filename,
            mime_type=mime_type,
            size_bytes=len(data),
            status=EvidenceStatus.CONVERT_PENDING.value,
            source_key=source_key,
            uploaded_by=uploaded_by,
        )
        job_id = await self._queue.enqueue(
            CONVERT_TO_PDF_JOB,
            {"evidenceFileId": record.id},
            tenant_id=self._tenant_id,
            actor_id=actor_id,
            trace_id=trace_id,
        )
        logger.info(
            "Evidence %s pending conversion (source=%s job=%s trace=%s)",
            record.id, source_key, job_id, trace_id,
        )
        return UploadResult(evidence=record, deferred=True, job_id=job_id)

    async def get_file(self, evidence_file_id: str) -> EvidenceFile:
        evidence = await self._repo.get_by_id(evidence_file_id)
        if not evidence:
            raise NotFoundError("Evidence file", evidence_file_id)
        return evidence

    async def get_view(
        self, evidence_file_id: str, expires_in: int | None = None
    ) -> tuple[EvidenceFile, SignedUrl]:
        """Signed URL for the viewable rendition; only READY evidence has one."""
        evidence = await self.get_file(evidence_file_id)
        if evidence.status != EvidenceStatus.READY.value or not evidence.view_key:
            raise ConflictError(
                f"Evidence file '{evidence_file_id}' is not viewable yet",
                details={"status": evidence.status},
            )
        signed = await self._store.signed_url(
            evidence.view_key, expires_in or settings.evidence_view_url_ttl_seconds
        )
        return evidence, signed
