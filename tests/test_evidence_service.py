"""Evidence ingestion: classification, storage keys, conversion hand-off, view URLs."""

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaTypeError,
)
from app.domain.evidence import EvidenceFile, EvidenceStatus
from app.jobs.queue import CONVERT_TO_PDF_JOB
from app.services.evidence import (
    ACCEPTED_MIME_TYPES,
    EvidenceKind,
    EvidenceService,
    classify_mime_type,
    evidence_key,
    resolve_mime_type,
    safe_filename,
)
from tests.helpers import ACTOR, OTHER_TENANT, PDF_BYTES, TENANT, XLSX_MIME, FailingObjectStore


async def _count_files(session) -> int:
    return (await session.execute(select(func.count()).select_from(EvidenceFile))).scalar_one()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "filename,content_type,expected",
    [
        ("report.pdf", "application/pdf", "application/pdf"),
        ("report.pdf", "Application/PDF; charset=binary", "application/pdf"),
        ("sheet.xlsx", "", XLSX_MIME),
        ("sheet.XLSX", None, XLSX_MIME),
        ("photo.jpg", None, "image/jpeg"),
        ("archive.zip", None, "application/octet-stream"),
        ("no-extension", "", "application/octet-stream"),
    ],
)
def test_resolve_mime_type(filename, content_type, expected) -> None:
    assert resolve_mime_type(filename, content_type) == expected


def test_classify_mime_type() -> None:
    assert classify_mime_type("image/png") is EvidenceKind.DIRECT_VIEWABLE
    assert classify_mime_type("application/msword") is EvidenceKind.CONVERTIBLE
    assert classify_mime_type("application/zip") is EvidenceKind.UNSUPPORTED


def test_storage_keys_are_tenant_prefixed_and_sanitised() -> None:
    assert safe_filename("Q3 report (final).pdf") == "Q3_report__final_.pdf"
    assert (
        evidence_key("t1", "e1", "view", "../etc/passwd")
        == "t/t1/evidence/e1/view/.._etc_passwd"
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pdf_upload_is_ready_with_one_view_object(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    result = await svc.upload(
        filename="report.pdf", content_type="application/pdf", data=PDF_BYTES, actor_id=ACTOR
    )

    evidence = result.evidence
    assert result.deferred is False
    assert evidence.status == EvidenceStatus.READY.value
    assert evidence.view_key == f"t/{TENANT}/evidence/{evidence.id}/view/report.pdf"
    assert evidence.source_key is None
    assert evidence.size_bytes == len(PDF_BYTES)
    assert evidence.uploaded_by == ACTOR
    assert list(store.objects) == [evidence.view_key]
    assert queue.jobs == []


@pytest.mark.asyncio
async def test_xlsx_with_empty_content_type_is_deferred_to_conversion(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    result = await svc.upload(
        filename="budget.xlsx", content_type="", data=b"PK\x03\x04sheet", actor_id=ACTOR,
        trace_id="trace-1",
    )

    evidence = result.evidence
    assert result.deferred is True
    assert result.job_id == "job-1"
    assert evidence.status == EvidenceStatus.CONVERT_PENDING.value
    assert evidence.mime_type == XLSX_MIME
    assert evidence.view_key is None
    assert evidence.source_key == f"t/{TENANT}/evidence/{evidence.id}/source/budget.xlsx"
    assert list(store.objects) == [evidence.source_key]
    assert queue.jobs == [
        {
            "name": CONVERT_TO_PDF_JOB,
            "payload": {"evidenceFileId": evidence.id},
            "tenant_id": TENANT,
            "actor_id": ACTOR,
            "trace_id": "trace-1",
        }
    ]


@pytest.mark.asyncio
async def test_unsupported_type_is_rejected_without_side_effects(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    with pytest.raises(UnsupportedMediaTypeError) as exc_info:
        await svc.upload(filename="bundle.zip", content_type=None, data=b"PK", actor_id=ACTOR)

    assert exc_info.value.status_code == 415
    assert exc_info.value.details["accepted"] == ACCEPTED_MIME_TYPES
    assert await _count_files(session) == 0
    assert store.objects == {}
    assert queue.jobs == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "filename,data",
    [(None, PDF_BYTES), ("", PDF_BYTES), ("   ", PDF_BYTES), ("a.pdf", None), ("a.pdf", b"")],
)
async def test_missing_or_empty_file_is_invalid_input(session, store, queue, filename, data) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    with pytest.raises(InvalidInputError):
        await svc.upload(filename=filename, content_type="application/pdf", data=data, actor_id=ACTOR)
    assert await _count_files(session) == 0
    assert store.objects == {}


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue, max_upload_bytes=8)
    with pytest.raises(PayloadTooLargeError) as exc_info:
        await svc.upload(
            filename="report.pdf", content_type="application/pdf", data=b"x" * 9, actor_id=ACTOR
        )
    assert exc_info.value.details == {"limitBytes": 8}
    assert "8 byte" in exc_info.value.message
    assert store.objects == {}


def test_known_size_is_checked_before_reading(store, queue) -> None:
    svc = EvidenceService(None, TENANT, store=store, queue=queue, max_upload_bytes=8)
    svc.ensure_within_limit(None)
    svc.ensure_within_limit(8)
    with pytest.raises(PayloadTooLargeError):
        svc.ensure_within_limit(9)


@pytest.mark.asyncio
async def test_storage_failure_leaves_no_record(session, queue) -> None:
    svc = EvidenceService(session, TENANT, store=FailingObjectStore(), queue=queue)
    with pytest.raises(StorageError):
        await svc.upload(
            filename="report.pdf", content_type="application/pdf", data=PDF_BYTES, actor_id=ACTOR
        )
    assert await _count_files(session) == 0


@pytest.mark.asyncio
async def test_anonymous_uploader_is_recorded(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    result = await svc.upload(
        filename="scan.png", content_type="image/png", data=b"\x89PNG", actor_id=None
    )
    assert result.evidence.uploaded_by == "anonymous"


# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_ready_evidence_has_signed_view_url(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    uploaded = (
        await svc.upload(
            filename="report.pdf", content_type="application/pdf", data=PDF_BYTES, actor_id=ACTOR
        )
    ).evidence

    evidence, signed = await svc.get_view(uploaded.id, expires_in=60)
    assert evidence.id == uploaded.id
    assert signed.url == f"https://objects.test/{uploaded.view_key}?expires=60"


@pytest.mark.asyncio
async def test_pending_evidence_is_not_viewable(session, store, queue) -> None:
    svc = EvidenceService(session, TENANT, store=store, queue=queue)
    pending = (
        await svc.upload(filename="deck.pptx", content_type=None, data=b"PK", actor_id=ACTOR)
    ).evidence

    with pytest.raises(ConflictError) as exc_info:
        await svc.get_view(pending.id)
    assert exc_info.value.details == {"status": EvidenceStatus.CONVERT_PENDING.value}


@pytest.mark.asyncio
async def test_evidence_is_invisible_to_other_tenants(session, store, queue) -> None:
    owner = EvidenceService(session, TENANT, store=store, queue=queue)
    uploaded = (
        await owner.upload(
            filename="report.pdf", content_type="application/pdf", data=PDF_BYTES, actor_id=ACTOR
        )
    ).evidence

    stranger = EvidenceService(session, OTHER_TENANT, store=store, queue=queue)
    with pytest.raises(NotFoundError):
        await stranger.get_view(uploaded.id)
