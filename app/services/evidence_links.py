"""Evidence link registry — attaches evidence to requests and answers freshness queries."""


import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, ensure_utc, utcnow
from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError
from app.domain.evidence import EvidenceFile, RequestEvidenceLink
from app.repositories.evidence import EvidenceFileRepository, EvidenceLinkRepository
from app.repositories.request import RequestRepository
from app.services.audit import REQUEST_EVIDENCE_LINKED, AuditService

logger = logging.getLogger(__name__)


def view_endpoint(evidence_file_id: str) -> str:
    return f"/api/v1/evidence/{evidence_file_id}/view"


@dataclass(frozen=True)
class EvidenceFreshness:
    has_evidence: bool
    # None = not evaluated (no evidence)
    is_fresh: bool | None
    age_seconds: int | None
    latest_evidence_at: datetime | None

    def as_event_data(self) -> dict[str, Any]:
        return {
            "hasEvidence": self.has_evidence,
            "isFresh": self.is_fresh,
            "ageSeconds": self.age_seconds,
            "latestEvidenceAt": (
                self.latest_evidence_at.isoformat() if self.latest_evidence_at else None
            ),
        }


def evaluate_freshness(
    latest_evidence_at: datetime | None, ttl_seconds: int | None, now: datetime
) -> EvidenceFreshness:
    """Pure freshness rule: age is whole seconds since the latest link, fresh iff age <= ttl."""
    if latest_evidence_at is None:
        return EvidenceFreshness(
            has_evidence=False, is_fresh=None, age_seconds=None, latest_evidence_at=None
        )
    latest = ensure_utc(latest_evidence_at)
    age_seconds = max(0, math.floor((ensure_utc(now) - latest).total_seconds()))
    is_fresh = True if ttl_seconds is None else age_seconds <= ttl_seconds
    return EvidenceFreshness(
        has_evidence=True,
        is_fresh=is_fresh,
        age_seconds=age_seconds,
        latest_evidence_at=latest,
    )


@dataclass(frozen=True)
class LinkedEvidence:
    link: RequestEvidenceLink
    evidence: EvidenceFile

    @property
    def view_endpoint(self) -> str:
        return view_endpoint(self.evidence.id)


class EvidenceLinkService:
    def __init__(
        self,
        session: AsyncSession,
        tenant_id: str,
        *,
        clock: Clock = utcnow,
        ready_only: bool | None = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._links = EvidenceLinkRepository(session, tenant_id)
        self._files = EvidenceFileRepository(session, tenant_id)
        self._requests = RequestRepository(session, tenant_id)
        self._audit = AuditService(session, tenant_id)
        self._clock = clock
        self._ready_only = (
            settings.approval_requires_ready_evidence if ready_only is None else ready_only
        )

    async def _require_request(self, request_id: str) -> None:
        if not await self._requests.get_by_id(request_id):
            raise NotFoundError("Request", request_id)

    async def link(
        self,
        request_id: str,
        evidence_file_id: str,
        actor_id: str | None,
        trace_id: str | None = None,
    ) -> RequestEvidenceLink:
        await self._require_request(request_id)
        if not await self._files.get_by_id(evidence_file_id):
            raise NotFoundError("Evidence file", evidence_file_id)

        if await self._links.find_link(request_id, evidence_file_id):
            raise ConflictError("Evidence is already linked to this request")

        linked_by = actor_id or "anonymous"
        try:
            link = await self._links.create(
                request_id=request_id,
                evidence_file_id=evidence_file_id,
                linked_by=linked_by,
                created_at=self._clock(),
            )
        except IntegrityError as exc:
            # A concurrent linker won the unique constraint
            await self._session.rollback()
            raise ConflictError("Evidence is already linked to this request") from exc

        await self._audit.append(
            actor_id=linked_by,
            trace_id=trace_id,
            event_name=REQUEST_EVIDENCE_LINKED,
            event_data={
                "requestId": request_id,
                "evidenceFileId": evidence_file_id,
                "linkId": link.id,
            },
            entity_type="request",
            entity_id=request_id,
        )
        logger.info(
            "Linked evidence %s to request %s (link=%s tenant=%s trace=%s)",
            evidence_file_id, request_id, link.id, self._tenant_id, trace_id,
        )
        return link

    async def list_by_request(self, request_id: str) -> list[LinkedEvidence]:
        await self._require_request(request_id)
        rows = await self._links.list_with_files(request_id)
        return [LinkedEvidence(link=link, evidence=evidence) for link, evidence in rows]

    async def check_freshness(self, request_id: str, ttl_seconds: int | None) -> EvidenceFreshness:
        latest = await self._links.latest_link_at(request_id, ready_only=self._ready_only)
        return evaluate_freshness(latest, ttl_seconds, self._clock())
