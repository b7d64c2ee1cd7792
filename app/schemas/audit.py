"""Audit log response schema."""


from datetime import datetime
from typing import Any

from app.schemas.common import CamelModel

class AuditEntryOut(CamelModel):
    id: int
    tenant_id: str
    actor_id: str
    trace_id: str | None = None
    event_name: str
    entity_type: str | None = None
    entity_id: str | None = None
    event_data: dict[str, Any]
    created_at: datetime
