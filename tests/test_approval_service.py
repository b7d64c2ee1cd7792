"""Approval guard: evidence gates, audit ordering, compare-and-swap transitions."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    AuditWriteError,
    ConflictError,
    EvidenceRequiredError,
    EvidenceStaleError,
    NotFoundError,
)
from app.domain.audit import AuditLogEntry
from app.domain.request import ApprovalRequest, RequestStatus
from app.repositories.audit import AuditRepository
from app.repositories.request import RequestRepository
from app.schemas.request import RequestCreate
from app.services.approval import ApprovalService
from app.services.evidence import EvidenceService
from app.services.evidence_links import EvidenceLinkService, evaluate_freshness
from app.services.requests import RequestService
from tests.helpers import ACTOR, OTHER_TENANT, PDF_BYTES, T0, TENANT

pytestmark = pytest.mark.asyncio

APPROVER = "approver-1"


async def _submitted(session, *, required=False, ttl=None, tenant=TENANT):
    svc = RequestService(session, tenant)
    body = {"title": "Purchase order 42"}
    if required:
        body["evidence_required_for_approval"] = True
    if ttl is not None:
        body["evidence_ttl_seconds"] = ttl
    request = await svc.create_request(RequestCreate(**body), ACTOR)
    await svc.submit_request(request.id, ACTOR)
    await session.commit()
    return request


async def _link_pdf(session, store, queue, clock, request_id, name="evidence.pdf"):
    evidence = (
        await EvidenceService(session, TENANT, store=store, queue=queue).upload(
            filename=name, content_type="application/pdf", data=PDF_BYTES, actor_id=ACTOR
        )
    ).evidence
    await EvidenceLinkService(session, TENANT, clock=clock).link(request_id, evidence.id, ACTOR)
    await session.commit()
    return evidence


async def _approval_events(session, request_id) -> list[AuditLogEntry]:
    entries = await AuditRepository(session, TENANT).list_for_entity("request", request_id)
    return [e for e in entries if e.event_name.startswith("approval.")]


async def _status(session, request_id) -> ApprovalRequest:
    return await RequestRepository(session, TENANT).reload(request_id)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

async def test_fresh_pdf_evidence_approves(session, store, queue, clock) -> None:
    request = await _submitted(session, required=True, ttl=3600)
    await _link_pdf(session, store, queue, clock, request.id)
    clock.advance(600)

    approved = await ApprovalService(session, TENANT, clock=clock).approve(
        request.id, APPROVER, "trace-ok"
    )

    assert approved.status == RequestStatus.APPROVED.value
    assert approved.approved_by == APPROVER
    events = await _approval_events(session, request.id)
    assert [e.event_name for e in events] == ["approval.attempted", "approval.succeeded"]
    assert all(e.trace_id == "trace-ok" for e in events)
    succeeded = events[1].event_data
    assert succeeded["approvedAt"] == (T0 + timedelta(seconds=600)).isoformat()
    assert succeeded["approvedBy"] == APPROVER
    assert succeeded["ageSeconds"] == 600
    assert succeeded["isFresh"] is True
    assert succeeded["policy"] == {"evidenceRequiredForApproval": True, "evidenceTtlSeconds": 3600}


async def test_no_policy_approves_without_evidence(session, clock) -> None:
    request = await _submitted(session)
    approved = await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)

    assert approved.status == RequestStatus.APPROVED.value
    events = await _approval_events(session, request.id)
    assert events[-1].event_data["hasEvidence"] is False
    assert events[-1].event_data["isFresh"] is None


async def test_attempted_event_captures_policy_snapshot(session, clock) -> None:
    request = await _submitted(session, ttl=90)
    await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)

    attempted = (await _approval_events(session, request.id))[0]
    assert attempted.event_name == "approval.attempted"
    assert attempted.actor_id == APPROVER
    assert attempted.event_data == {
        "requestId": request.id,
        "status": RequestStatus.SUBMITTED.value,
        "policy": {"evidenceRequiredForApproval": False, "evidenceTtlSeconds": 90},
    }


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

async def test_required_evidence_missing_blocks_without_mutation(session, clock) -> None:
    request = await _submitted(session, required=True, ttl=3600)

    with pytest.raises(EvidenceRequiredError) as exc_info:
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"required": True, "hasEvidence": False, "evidenceTtl": 3600}
    current = await _status(session, request.id)
    assert current.status == RequestStatus.SUBMITTED.value
    assert current.approved_at is None
    assert current.approved_by is None
    events = await _approval_events(session, request.id)
    assert [e.event_name for e in events] == [
        "approval.attempted",
        "approval.blocked.evidence_required",
    ]


async def test_ttl_boundary_exactly_equal_is_fresh(session, store, queue, clock) -> None:
    request = await _submitted(session, required=True, ttl=3600)
    await _link_pdf(session, store, queue, clock, request.id)
    clock.advance(3600)

    approved = await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)
    assert approved.status == RequestStatus.APPROVED.value


async def test_ttl_boundary_one_second_over_is_stale(session, store, queue, clock) -> None:
    request = await _submitted(session, required=True, ttl=3600)
    await _link_pdf(session, store, queue, clock, request.id)
    clock.advance(3601)

    with pytest.raises(EvidenceStaleError):
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)
    assert (await _status(session, request.id)).status == RequestStatus.SUBMITTED.value


async def test_two_hour_old_evidence_against_one_hour_ttl(session, store, queue, clock) -> None:
    request = await _submitted(session, required=True, ttl=3600)
    await _link_pdf(session, store, queue, clock, request.id)
    clock.advance(7200)

    with pytest.raises(EvidenceStaleError) as exc_info:
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)

    assert exc_info.value.code == "EVIDENCE_STALE"
    assert exc_info.value.details == {
        "hasEvidence": True,
        "ageSeconds": 7200,
        "evidenceTtl": 3600,
        "latestEvidenceAt": T0.isoformat(),
    }
    events = await _approval_events(session, request.id)
    assert [e.event_name for e in events] == [
        "approval.attempted",
        "approval.blocked.evidence_stale",
    ]
    assert events[1].event_data["ageSeconds"] == 7200


async def test_staleness_applies_even_when_evidence_not_required(
    session, store, queue, clock
) -> None:
    request = await _submitted(session, required=False, ttl=60)
    await _link_pdf(session, store, queue, clock, request.id)
    clock.advance(61)

    with pytest.raises(EvidenceStaleError):
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)


async def test_blocked_events_survive_caller_rollback(session, clock) -> None:
    request = await _submitted(session, required=True)

    with pytest.raises(EvidenceRequiredError):
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)
    await session.rollback()

    events = await _approval_events(session, request.id)
    assert [e.event_name for e in events] == [
        "approval.attempted",
        "approval.blocked.evidence_required",
    ]


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------

async def test_second_approval_conflicts_with_single_success(session, clock) -> None:
    request = await _submitted(session)
    svc = ApprovalService(session, TENANT, clock=clock)
    first = await svc.approve(request.id, APPROVER)

    clock.advance(30)
    with pytest.raises(ConflictError):
        await svc.approve(request.id, "approver-2")

    current = await _status(session, request.id)
    assert current.approved_by == APPROVER
    assert current.approved_at == first.approved_at
    names = [e.event_name for e in await _approval_events(session, request.id)]
    assert names.count("approval.succeeded") == 1
    assert names[-1] == "approval.blocked.status_conflict"


async def test_draft_request_cannot_be_approved(session, clock) -> None:
    request = await RequestService(session, TENANT).create_request(
        RequestCreate(title="Draft only"), ACTOR
    )
    await session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)
    assert exc_info.value.details == {"status": RequestStatus.DRAFT.value}


class _RacingLinks:
    """Commits a competing approval while the guard is evaluating evidence."""

    def __init__(self, session):
        self._session = session

    async def check_freshness(self, request_id, ttl_seconds):
        await RequestRepository(self._session, TENANT).transition(
            request_id,
            from_statuses=(RequestStatus.SUBMITTED.value,),
            to_status=RequestStatus.APPROVED.value,
            approved_at=T0,
            approved_by="racer",
        )
        return evaluate_freshness(None, ttl_seconds, T0)


async def test_lost_compare_and_swap_is_a_conflict(session, clock) -> None:
    request = await _submitted(session)
    svc = ApprovalService(session, TENANT, clock=clock, links=_RacingLinks(session))

    with pytest.raises(ConflictError):
        await svc.approve(request.id, APPROVER)

    current = await _status(session, request.id)
    assert current.approved_by == "racer"
    names = [e.event_name for e in await _approval_events(session, request.id)]
    assert names == ["approval.attempted", "approval.blocked.status_conflict"]


async def test_unknown_request_is_not_found_and_unaudited(session, clock) -> None:
    with pytest.raises(NotFoundError):
        await ApprovalService(session, TENANT, clock=clock).approve("missing", APPROVER)
    entries = (await session.execute(select(AuditLogEntry))).scalars().all()
    assert entries == []


async def test_other_tenant_cannot_approve(session, clock) -> None:
    request = await _submitted(session)
    with pytest.raises(NotFoundError):
        await ApprovalService(session, OTHER_TENANT, clock=clock).approve(request.id, APPROVER)
    assert (await _status(session, request.id)).status == RequestStatus.SUBMITTED.value


async def test_audit_failure_aborts_approval(session, clock, monkeypatch) -> None:
    request = await _submitted(session)

    async def _broken_create(self, **kwargs):
        raise OperationalError("INSERT INTO audit_log", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AuditRepository, "create", _broken_create)

    with pytest.raises(AuditWriteError):
        await ApprovalService(session, TENANT, clock=clock).approve(request.id, APPROVER)
    monkeypatch.undo()

    assert (await _status(session, request.id)).status == RequestStatus.SUBMITTED.value


# ---------------------------------------------------------------------------
# Rejection
# ---------------------------------------------------------------------------

async def test_reject_submitted_request(session, clock) -> None:
    request = await _submitted(session)
    rejected = await ApprovalService(session, TENANT, clock=clock).reject(
        request.id, APPROVER, reason="Missing signature"
    )

    assert rejected.status == RequestStatus.REJECTED.value
    assert rejected.rejected_by == APPROVER
    assert rejected.rejection_reason == "Missing signature"
    entries = await AuditRepository(session, TENANT).list_for_entity("request", request.id)
    assert entries[-1].event_name == "request.rejected"
    assert entries[-1].event_data["reason"] == "Missing signature"


async def test_rejected_request_cannot_be_approved(session, clock) -> None:
    request = await _submitted(session)
    svc = ApprovalService(session, TENANT, clock=clock)
    await svc.reject(request.id, APPROVER)
    await session.commit()

    with pytest.raises(ConflictError):
        await svc.approve(request.id, APPROVER)
    with pytest.raises(ConflictError):
        await svc.reject(request.id, APPROVER)
