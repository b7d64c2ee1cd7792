"""Approval guard — the only path that moves a request to APPROVED or REJECTED.

Sequence for ``approve``:
  1. load the request (tenant-scoped) and snapshot its evidence policy
  2. record ``approval.attempted`` and commit it before any decision is made
  3. ask the link registry how fresh the request's evidence is
  4. Guard A (evidence required) then Guard B (evidence stale); a blocked
     attempt is recorded and committed before the error is raised
  5. compare-and-swap SUBMITTED -> APPROVED, re-read the stored row, and
     record ``approval.succeeded`` with the persisted ``approved_at``.
     Status change and success event commit together, so neither can be
     observed without the other.
"""


import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, ensure_utc, utcnow
from app.core.exceptions import (
    AuditWriteError,
    ConflictError,
    EvidenceRequiredError,
    EvidenceStaleError,
    NotFoundError,
)
from app.domain.request import DECIDABLE_STATUSES, ApprovalRequest, RequestStatus
from app.repositories.request import RequestRepository
from app.services.audit import (
    APPROVAL_ATTEMPTED,
    APPROVAL_BLOCKED_EVIDENCE_REQUIRED,
    APPROVAL_BLOCKED_EVIDENCE_STALE,
    APPROVAL_BLOCKED_STATUS_CONFLICT,
    APPROVAL_SUCCEEDED,
    REQUEST_REJECTED,
    AuditService,
)
from app.services.evidence_links import EvidenceLinkService

logger = logging.getLogger(__name__)


def _policy_snapshot(request: ApprovalRequest) -> dict[str, Any]:
    return {
        "evidenceRequiredForApproval": bool(request.evidence_required_for_approval),
        "evidenceTtlSeconds": request.evidence_ttl_seconds,
    }


class ApprovalService:
    def __init__(
        self,
        session: AsyncSession,
        tenant_id: str,
        *,
        clock: Clock = utcnow,
        links: EvidenceLinkService | None = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._requests = RequestRepository(session, tenant_id)
        self._audit = AuditService(session, tenant_id)
        self._links = links or EvidenceLinkService(session, tenant_id, clock=clock)
        self._clock = clock

    async def _record_and_commit(
        self, event_name: str, actor_id: str, trace_id: str | None, data: dict[str, Any]
    ) -> None:
        """Append one event and make it durable now, even if the caller is about to raise."""
        await self._audit.append(
            actor_id=actor_id,
            trace_id=trace_id,
            event_name=event_name,
            event_data=data,
            entity_type="request",
            entity_id=data["requestId"],
        )
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Commit of %s failed for request %s: %s", event_name, data["requestId"], exc)
            raise AuditWriteError(event_name) from exc

    async def approve(
        self, request_id: str, actor_id: str, trace_id: str | None = None
    ) -> ApprovalRequest:
        request = await self._requests.get_by_id(request_id)
        if not request:
            raise NotFoundError("Request", request_id)

        policy = _policy_snapshot(request)
        required = policy["evidenceRequiredForApproval"]
        ttl = policy["evidenceTtlSeconds"]

        await self._record_and_commit(
            APPROVAL_ATTEMPTED,
            actor_id,
            trace_id,
            {"requestId": request_id, "status": request.status, "policy": policy},
        )

        if request.status not in DECIDABLE_STATUSES:
            await self._block_on_status(request_id, request.status, actor_id, trace_id)

        freshness = await self._links.check_freshness(request_id, ttl)

        # Guard A
        if required and not freshness.has_evidence:
            details = {"required": True, "hasEvidence": False, "evidenceTtl": ttl}
            await self._record_and_commit(
                APPROVAL_BLOCKED_EVIDENCE_REQUIRED,
                actor_id,
                trace_id,
                {"requestId": request_id, "policy": policy, **details},
            )
            logger.info("Approval of %s blocked: evidence required (trace=%s)", request_id, trace_id)
            raise EvidenceRequiredError(request_id, details)

        # Guard B
        if freshness.is_fresh is False:
            details = {
                "hasEvidence": True,
                "ageSeconds": freshness.age_seconds,
                "evidenceTtl": ttl,
                "latestEvidenceAt": freshness.as_event_data()["latestEvidenceAt"],
            }
            await self._record_and_commit(
                APPROVAL_BLOCKED_EVIDENCE_STALE,
                actor_id,
                trace_id,
                {"requestId": request_id, "policy": policy, **details},
            )
            logger.info(
                "Approval of %s blocked: evidence %ss old exceeds ttl %ss (trace=%s)",
                request_id, freshness.age_seconds, ttl, trace_id,
            )
            raise EvidenceStaleError(request_id, details)

        swapped = await self._requests.transition(
            request_id,
            from_statuses=DECIDABLE_STATUSES,
            to_status=RequestStatus.APPROVED.value,
            approved_at=self._clock(),
            approved_by=actor_id,
        )
        if not swapped:
            # Another approver (or a rejection) committed first
            current = await self._requests.reload(request_id)
            await self._block_on_status(
                request_id, current.status if current else None, actor_id, trace_id
            )

        approved = await self._requests.reload(request_id)
        approved_at = ensure_utc(approved.approved_at)
        await self._record_and_commit(
            APPROVAL_SUCCEEDED,
            actor_id,
            trace_id,
            {
                "requestId": request_id,
                "approvedAt": approved_at.isoformat(),
                "approvedBy": approved.approved_by,
                "policy": policy,
                **freshness.as_event_data(),
            },
        )
        logger.info("Request %s approved by %s (trace=%s)", request_id, actor_id, trace_id)
        return approved

    async def _block_on_status(
        self, request_id: str, status: str | None, actor_id: str, trace_id: str | None
    ) -> None:
        await self._record_and_commit(
            APPROVAL_BLOCKED_STATUS_CONFLICT,
            actor_id,
            trace_id,
            {"requestId": request_id, "status": status, "expected": list(DECIDABLE_STATUSES)},
        )
        raise ConflictError(
            f"Request '{request_id}' cannot be approved from status {status}",
            details={"status": status},
        )

    async def reject(
        self,
        request_id: str,
        actor_id: str,
        trace_id: str | None = None,
        reason: str | None = None,
    ) -> ApprovalRequest:
        request = await self._requests.get_by_id(request_id)
        if not request:
            raise NotFoundError("Request", request_id)

        swapped = await self._requests.transition(
            request_id,
            from_statuses=DECIDABLE_STATUSES,
            to_status=RequestStatus.REJECTED.value,
            rejected_at=self._clock(),
            rejected_by=actor_id,
            rejection_reason=reason,
        )
        if not swapped:
            raise ConflictError(
                f"Request '{request_id}' cannot be rejected from status {request.status}",
                details={"status": request.status},
            )

        rejected = await self._requests.reload(request_id)
        await self._audit.append(
            actor_id=actor_id,
            trace_id=trace_id,
            event_name=REQUEST_REJECTED,
            event_data={
                "requestId": request_id,
                "rejectedAt": ensure_utc(rejected.rejected_at).isoformat(),
                "reason": reason,
            },
            entity_type="request",
            entity_id=request_id,
        )
        return rejected
