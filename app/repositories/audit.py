"""Audit log repository — insert and read only."""

from __future__ import annotations

from app.domain.audit import AuditLogEntry
from app.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLogEntry]):
    """Append-only: no update or delete methods."""

    model = AuditLogEntry

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AuditLogEntry]:
        result = await self._session.execute(
            self._base_query()
            .where(AuditLogEntry.entity_type == entity_type)
            .where(AuditLogEntry.entity_id == entity_id)
            .order_by(AuditLogEntry.created_at.asc(), AuditLogEntry.id.asc())
        )
        return list(result.scalars().all())
