"""Evidence Pydantic schemas (upload results, links, listings, view URLs)."""


from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel

class EvidenceUploadOut(CamelModel):
    id: str
    status: str  # READY | CONVERT_PENDING
    mime_type: str
    original_name: str
    size_bytes: int

class EvidenceLinkCreate(CamelModel):
    evidence_file_id: str = Field(min_length=1, max_length=36)

class EvidenceLinkOut(CamelModel):
    link_id: str
    request_id: str
    evidence_file_id: str
    linked_by: str
    created_at: datetime

class LinkedEvidenceOut(CamelModel):
    evidence_file_id: str
    original_name: str
    mime_type: str
    size_bytes: int
    status: str
    linked_at: datetime
    linked_by: str
    view_endpoint: str

class RequestEvidenceListOut(CamelModel):
    request_id: str
    evidence: list[LinkedEvidenceOut]

class EvidenceViewOut(CamelModel):
    evidence_file_id: str
    url: str
    expires_at: datetime
