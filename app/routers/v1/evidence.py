"""Evidence upload & view router — thin HTTP layer.

Business logic lives in :mod:`app.services.evidence`. This router only reads
the multipart payload and picks the status code (201 ready / 202 pending).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import RequestContext, get_request_context
from app.core.response import DataResponse
from app.db.base import get_db
from app.jobs.queue import JobQueue
from app.routers.v1.dependencies import get_job_queue, get_object_store
from app.schemas.evidence import EvidenceUploadOut, EvidenceViewOut
from app.services.evidence import EvidenceService
from app.storage.object_store import ObjectStore

router = APIRouter(prefix="/evidence", tags=["Evidence"])


def _svc(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    queue: JobQueue = Depends(get_job_queue),
) -> EvidenceService:
    return EvidenceService(session, ctx.tenant_id, store=store, queue=queue)


@router.post(
    "/upload",
    response_model=DataResponse[EvidenceUploadOut],
    status_code=status.HTTP_201_CREATED,
    responses={202: {"description": "Accepted; conversion pending"}},
)
async def upload_evidence(
    response: Response,
    file: UploadFile | None = File(default=None),
    ctx: RequestContext = Depends(get_request_context),
    svc: EvidenceService = Depends(_svc),
):
    """Upload an evidence file. PDF/PNG/JPEG are ready immediately; Office files are converted."""
    data = None
    if file is not None:
        # size is set once the multipart part has been spooled
        svc.ensure_within_limit(file.size)
        data = await file.read()
    result = await svc.upload(
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        data=data,
        actor_id=ctx.actor_id,
        trace_id=ctx.trace_id,
    )
    if result.deferred:
        response.status_code = status.HTTP_202_ACCEPTED
    return {"data": EvidenceUploadOut.model_validate(result.evidence)}


@router.get("/{evidence_file_id}/view", response_model=DataResponse[EvidenceViewOut])
async def view_evidence(
    evidence_file_id: str,
    svc: EvidenceService = Depends(_svc),
):
    """Short-lived URL for the viewable rendition. 409 while conversion is pending."""
    evidence, signed = await svc.get_view(evidence_file_id)
    return {
        "data": EvidenceViewOut(
            evidence_file_id=evidence.id, url=signed.url, expires_at=signed.expires_at
        )
    }
