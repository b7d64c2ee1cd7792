"""Audit trail service — the single way events enter the audit log."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuditWriteError
from app.domain.audit import AuditLogEntry
from app.repositories.audit import AuditRepository

logger = logging.getLogger(__name__)

# Event names
APPROVAL_ATTEMPTED = "approval.attempted"
APPROVAL_BLOCKED_EVIDENCE_REQUIRED = "approval.blocked.evidence_required"
APPROVAL_BLOCKED_EVIDENCE_STALE = "approval.blocked.evidence_stale"
APPROVAL_BLOCKED_STATUS_CONFLICT = "approval.blocked.status_conflict"
APPROVAL_SUCCEEDED = "approval.succeeded"
REQUEST_CREATED = "request.created"
REQUEST_SUBMITTED = "request.submitted"
REQUEST_REJECTED = "request.rejected"
REQUEST_EVIDENCE_LINKED = "request.evidence.linked"
TEMPLATE_CREATED = "template.created"


class AuditService:
    def __init__(self, session: AsyncSession, tenant_id: str):
        self._repo = AuditRepository(session, tenant_id)
        self._tenant_id = tenant_id

    async def append(
        self,
        *,
        actor_id: str,
        trace_id: str | None,
        event_name: str,
        event_data: dict[str, Any],
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> AuditLogEntry:
        """Insert one immutable row and flush it.

        Any database failure is raised as :class:`AuditWriteError`; callers
        must let it abort the enclosing operation.
        """
        try:
            entry = await self._repo.create(
                actor_id=actor_id,
                trace_id=trace_id,
                event_name=event_name,
                event_data=event_data,
                entity_type=entity_type,
                entity_id=entity_id,
            )
        except SQLAlchemyError as exc:
            logger.error(
                "Audit append failed tenant=%s event=%s: %s", self._tenant_id, event_name, exc
            )
            raise AuditWriteError(event_name) from exc
        logger.debug("audit %s tenant=%s entity=%s", event_name, self._tenant_id, entity_id)
        return entry

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AuditLogEntry]:
        return await self._repo.list_for_entity(entity_type, entity_id)
