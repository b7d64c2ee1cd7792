"""Request and template repositories."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import update

from app.core.clock import utcnow
from app.domain.request import ApprovalRequest, RequestTemplate
from app.repositories.base import BaseRepository


class RequestRepository(BaseRepository[ApprovalRequest]):
    model = ApprovalRequest

    async def transition(
        self,
        request_id: str,
        *,
        from_statuses: Sequence[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """Compare-and-swap status change.

        The row is only updated while its status is still one of
        *from_statuses*; returns False when zero rows matched, which callers
        treat as a lost race.
        """
        values.setdefault("updated_at", utcnow())
        result = await self._session.execute(
            update(ApprovalRequest)
            .where(ApprovalRequest.id == request_id)
            .where(ApprovalRequest.tenant_id == self._tenant_id)
            .where(ApprovalRequest.status.in_(list(from_statuses)))
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return result.rowcount == 1


class TemplateRepository(BaseRepository[RequestTemplate]):
    model = RequestTemplate
