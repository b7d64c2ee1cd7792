"""Request context middleware — assigns a trace id and logs every request."""


import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import MAX_HEADER_LENGTH

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-ID"

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Propagates ``X-Trace-ID`` and logs method, path, status and duration.

    The trace id is stored on ``request.state`` so services can stamp it on
    audit events, and echoed on the response so clients can correlate.
    Domain audit events are written by the services themselves, never here.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = request.headers.get(TRACE_HEADER, "").strip()
        if not trace_id or len(trace_id) > MAX_HEADER_LENGTH:
            trace_id = str(uuid.uuid4())
        request.state.trace_id = trace_id

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        response.headers[TRACE_HEADER] = trace_id
        logger.info(
            "%s %s -> %s (%dms) trace=%s",
            request.method, request.url.path, response.status_code, duration_ms, trace_id,
        )
        return response
