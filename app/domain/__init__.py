"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  request.py   — Approvable requests and the templates that seed their evidence policy
  evidence.py  — Uploaded evidence files and request ↔ evidence links
  audit.py     — Append-only audit log (never updated or deleted)
  mixins.py    — Shared TimestampMixin, TenantMixin
"""

from app.domain.audit import AuditLogEntry
from app.domain.evidence import EvidenceFile, EvidenceStatus, RequestEvidenceLink
from app.domain.request import ApprovalRequest, RequestStatus, RequestTemplate

__all__ = [
    "ApprovalRequest",
    "AuditLogEntry",
    "EvidenceFile",
    "EvidenceStatus",
    "RequestEvidenceLink",
    "RequestStatus",
    "RequestTemplate",
]
