"""Per-request caller context: tenant, actor and trace id taken from headers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import Header, Request

from app.core.exceptions import InvalidInputError

ANONYMOUS_ACTOR = "anonymous"

# Matches the String(100) tenant, actor and trace columns.
MAX_HEADER_LENGTH = 100


@dataclass(frozen=True)
class RequestContext:
    tenant_id: str
    actor_id: str
    trace_id: str


async def get_request_context(
    request: Request,
    x_tenant_id: str | None = Header(default=None),
    x_actor_id: str | None = Header(default=None),
) -> RequestContext:
    """FastAPI dependency. Authentication is upstream; we only need to know who and where.

    The trace id is assigned by :class:`RequestContextMiddleware` (falls back to a
    fresh uuid when the middleware is not installed, e.g. in narrow tests).
    """
    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        raise InvalidInputError("X-Tenant-ID header is required")
    actor_id = (x_actor_id or "").strip() or ANONYMOUS_ACTOR
    for header, value in (("X-Tenant-ID", tenant_id), ("X-Actor-ID", actor_id)):
        if len(value) > MAX_HEADER_LENGTH:
            raise InvalidInputError(
                f"{header} header must be at most {MAX_HEADER_LENGTH} characters"
            )
    trace_id = getattr(request.state, "trace_id", None) or str(uuid.uuid4())
    return RequestContext(
        tenant_id=tenant_id,
        actor_id=actor_id,
        trace_id=trace_id,
    )
