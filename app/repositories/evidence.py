"""Evidence file and request-evidence link repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update

from app.core.clock import utcnow
from app.domain.evidence import EvidenceFile, EvidenceStatus, RequestEvidenceLink
from app.repositories.base import BaseRepository


class EvidenceFileRepository(BaseRepository[EvidenceFile]):
    model = EvidenceFile

    async def set_status(
        self,
        evidence_file_id: str,
        status: EvidenceStatus,
        *,
        expected: EvidenceStatus | None = None,
        **values: Any,
    ) -> bool:
        """Update status (and e.g. view_key), optionally only from an *expected* status."""
        stmt = (
            update(EvidenceFile)
            .where(EvidenceFile.id == evidence_file_id)
            .where(EvidenceFile.tenant_id == self._tenant_id)
        )
        if expected is not None:
            stmt = stmt.where(EvidenceFile.status == expected.value)
        values.setdefault("updated_at", utcnow())
        result = await self._session.execute(
            stmt.values(status=status.value, **values).execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return result.rowcount == 1


class EvidenceLinkRepository(BaseRepository[RequestEvidenceLink]):
    model = RequestEvidenceLink

    async def find_link(self, request_id: str, evidence_file_id: str) -> RequestEvidenceLink | None:
        result = await self._session.execute(
            self._base_query()
            .where(RequestEvidenceLink.request_id == request_id)
            .where(RequestEvidenceLink.evidence_file_id == evidence_file_id)
            .limit(1)
        )
        return result.scalars().first()

    async def list_with_files(
        self, request_id: str
    ) -> list[tuple[RequestEvidenceLink, EvidenceFile]]:
        """All links for a request joined with their evidence file, oldest link first."""
        result = await self._session.execute(
            select(RequestEvidenceLink, EvidenceFile)
            .join(EvidenceFile, RequestEvidenceLink.evidence_file_id == EvidenceFile.id)
            .where(RequestEvidenceLink.tenant_id == self._tenant_id)
            .where(EvidenceFile.tenant_id == self._tenant_id)
            .where(RequestEvidenceLink.request_id == request_id)
            .order_by(RequestEvidenceLink.created_at.asc(), RequestEvidenceLink.id.asc())
        )
        return [(link, ev) for link, ev in result.all()]

    async def latest_link_at(self, request_id: str, *, ready_only: bool = False) -> datetime | None:
        """Creation time of the most recent link for *request_id*, or None when unlinked."""
        q = (
            select(func.max(RequestEvidenceLink.created_at))
            .where(RequestEvidenceLink.tenant_id == self._tenant_id)
            .where(RequestEvidenceLink.request_id == request_id)
        )
        if ready_only:
            q = q.join(
                EvidenceFile, RequestEvidenceLink.evidence_file_id == EvidenceFile.id
            ).where(
                EvidenceFile.tenant_id == self._tenant_id,
                EvidenceFile.status == EvidenceStatus.READY.value,
            )
        return (await self._session.execute(q)).scalar_one_or_none()
