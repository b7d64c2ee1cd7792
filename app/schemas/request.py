"""Request and template Pydantic schemas (request DTOs and response models)."""


from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel

class TemplateCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    evidence_required_for_approval: bool = False
    evidence_ttl_seconds: int | None = Field(default=None, ge=0)

class TemplateOut(CamelModel):
    id: str
    tenant_id: str
    name: str
    description: str | None = None
    evidence_required_for_approval: bool
    evidence_ttl_seconds: int | None = None
    created_by: str | None = None
    created_at: datetime

class RequestCreate(CamelModel):
    """Policy fields left unset inherit from the template (or the defaults)."""

    title: str = Field(min_length=1, max_length=255)
    requester_id: str | None = Field(default=None, max_length=100)
    template_id: str | None = Field(default=None, max_length=36)
    evidence_required_for_approval: bool | None = None
    evidence_ttl_seconds: int | None = Field(default=None, ge=0)

class RequestReject(CamelModel):
    reason: str | None = None

class RequestOut(CamelModel):
    id: str
    tenant_id: str
    title: str
    requester_id: str
    template_id: str | None = None
    status: str
    evidence_required_for_approval: bool
    evidence_ttl_seconds: int | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

class ApprovalOut(CamelModel):
    request_id: str
    status: str
    approved_at: datetime
    approved_by: str
