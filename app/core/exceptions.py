"""Application-level exceptions and FastAPI exception handlers."""


from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(message)

class InvalidInputError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=400, code="INVALID_INPUT")

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None):
        msg = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")

class ConflictError(AppException):
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, status_code=409, code="CONFLICT", details=details)

class PayloadTooLargeError(AppException):
    def __init__(self, limit_bytes: int):
        super().__init__(
            f"File size exceeds the {limit_bytes} byte limit.",
            status_code=413,
            code="PAYLOAD_TOO_LARGE",
            details={"limitBytes": limit_bytes},
        )

class UnsupportedMediaTypeError(AppException):
    def __init__(self, mime_type: str, accepted: list[str]):
        super().__init__(
            f"File type {mime_type} is not supported. Accepted: {', '.join(accepted)}",
            status_code=415,
            code="UNSUPPORTED_MEDIA_TYPE",
            details={"mimeType": mime_type, "accepted": accepted},
        )

class EvidenceRequiredError(AppException):
    """Approval blocked: the policy requires evidence and none is linked."""

    def __init__(self, request_id: str, details: dict[str, Any]):
        super().__init__(
            f"Request '{request_id}' requires evidence before approval",
            status_code=409,
            code="EVIDENCE_REQUIRED",
            details=details,
        )

class EvidenceStaleError(AppException):
    """Approval blocked: the most recent evidence is older than the policy TTL."""

    def __init__(self, request_id: str, details: dict[str, Any]):
        super().__init__(
            f"Evidence for request '{request_id}' is older than the allowed TTL",
            status_code=409,
            code="EVIDENCE_STALE",
            details=details,
        )

class StorageError(AppException):
    """Raised when the object store rejects a read or write."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502, code="STORAGE_ERROR")

class JobQueueError(AppException):
    """Raised when a background job cannot be enqueued."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502, code="JOB_QUEUE_ERROR")

class AuditWriteError(AppException):
    """Raised when an audit event cannot be persisted; aborts the caller's operation."""

    def __init__(self, event_name: str):
        super().__init__(
            f"Failed to record audit event '{event_name}'",
            status_code=500,
            code="AUDIT_WRITE_FAILED",
        )

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
