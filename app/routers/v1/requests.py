"""Request lifecycle router: create, submit, link evidence, approve, reject, audit trail.

Pattern (same as every v1 router):
  1. Resolve tenant / actor / trace via get_request_context
  2. Instantiate the service with (session, ctx.tenant_id)
  3. Call service methods and wrap result in response envelope
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ensure_utc
from app.core.context import RequestContext, get_request_context
from app.core.response import DataResponse
from app.db.base import get_db
from app.schemas.audit import AuditEntryOut
from app.schemas.evidence import (
    EvidenceLinkCreate,
    EvidenceLinkOut,
    LinkedEvidenceOut,
    RequestEvidenceListOut,
)
from app.schemas.request import ApprovalOut, RequestCreate, RequestOut, RequestReject
from app.services.approval import ApprovalService
from app.services.audit import AuditService
from app.services.evidence_links import EvidenceLinkService
from app.services.requests import RequestService

router = APIRouter(prefix="/requests", tags=["Requests"])


# ------------------------------------------------------------------
# Request lifecycle
# ------------------------------------------------------------------

@router.post("", response_model=DataResponse[RequestOut], status_code=status.HTTP_201_CREATED)
async def create_request(
    body: RequestCreate,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    """Create a DRAFT request; evidence policy comes from the body, the template, or defaults."""
    request = await RequestService(session, ctx.tenant_id).create_request(
        body, ctx.actor_id, ctx.trace_id
    )
    return {"data": RequestOut.model_validate(request)}


@router.get("/{request_id}", response_model=DataResponse[RequestOut])
async def get_request(
    request_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    request = await RequestService(session, ctx.tenant_id).get_request(request_id)
    return {"data": RequestOut.model_validate(request)}


@router.post("/{request_id}/submit", response_model=DataResponse[RequestOut])
async def submit_request(
    request_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    request = await RequestService(session, ctx.tenant_id).submit_request(
        request_id, ctx.actor_id, ctx.trace_id
    )
    return {"data": RequestOut.model_validate(request)}


# ------------------------------------------------------------------
# Evidence links
# ------------------------------------------------------------------

@router.post("/{request_id}/evidence", response_model=DataResponse[EvidenceLinkOut])
async def link_evidence(
    request_id: str,
    body: EvidenceLinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    """Attach an uploaded evidence file to a request. 409 if already linked."""
    link = await EvidenceLinkService(session, ctx.tenant_id).link(
        request_id, body.evidence_file_id, ctx.actor_id, ctx.trace_id
    )
    return {
        "data": EvidenceLinkOut(
            link_id=link.id,
            request_id=link.request_id,
            evidence_file_id=link.evidence_file_id,
            linked_by=link.linked_by,
            created_at=link.created_at,
        )
    }


@router.get("/{request_id}/evidence", response_model=DataResponse[RequestEvidenceListOut])
async def list_evidence(
    request_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    items = await EvidenceLinkService(session, ctx.tenant_id).list_by_request(request_id)
    return {
        "data": RequestEvidenceListOut(
            request_id=request_id,
            evidence=[
                LinkedEvidenceOut(
                    evidence_file_id=item.evidence.id,
                    original_name=item.evidence.original_name,
                    mime_type=item.evidence.mime_type,
                    size_bytes=item.evidence.size_bytes,
                    status=item.evidence.status,
                    linked_at=item.link.created_at,
                    linked_by=item.link.linked_by,
                    view_endpoint=item.view_endpoint,
                )
                for item in items
            ],
        )
    }


# ------------------------------------------------------------------
# Decisions
# ------------------------------------------------------------------

@router.post("/{request_id}/approve", response_model=DataResponse[ApprovalOut])
async def approve_request(
    request_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    """Approve a SUBMITTED request. 409 EVIDENCE_REQUIRED / EVIDENCE_STALE / CONFLICT when blocked."""
    request = await ApprovalService(session, ctx.tenant_id).approve(
        request_id, ctx.actor_id, ctx.trace_id
    )
    return {
        "data": ApprovalOut(
            request_id=request.id,
            status=request.status,
            approved_at=ensure_utc(request.approved_at),
            approved_by=request.approved_by,
        )
    }


@router.post("/{request_id}/reject", response_model=DataResponse[RequestOut])
async def reject_request(
    request_id: str,
    body: RequestReject | None = None,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    request = await ApprovalService(session, ctx.tenant_id).reject(
        request_id, ctx.actor_id, ctx.trace_id, reason=body.reason if body else None
    )
    return {"data": RequestOut.model_validate(request)}


# ------------------------------------------------------------------
# Audit trail (read-only, for display)
# ------------------------------------------------------------------

@router.get("/{request_id}/audit", response_model=DataResponse[list[AuditEntryOut]])
async def request_audit_trail(
    request_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    await RequestService(session, ctx.tenant_id).get_request(request_id)  # 404 if missing
    entries = await AuditService(session, ctx.tenant_id).list_for_entity("request", request_id)
    return {"data": [AuditEntryOut.model_validate(e) for e in entries]}
