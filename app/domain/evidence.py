"""SQLAlchemy ORM models for uploaded evidence files and their links to requests."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.db.base import Base
from app.domain.mixins import TenantMixin, TimestampMixin


class EvidenceStatus(str, enum.Enum):
    READY = "READY"
    CONVERT_PENDING = "CONVERT_PENDING"
    CONVERT_FAILED = "CONVERT_FAILED"
    REJECTED_UNSUPPORTED = "REJECTED_UNSUPPORTED"


class EvidenceFile(Base, TenantMixin, TimestampMixin):
    """One uploaded artifact.

    ``view_key`` points at a directly viewable rendition and is only set once
    the file is READY; ``source_key`` holds the original of a converted upload.
    """

    __tablename__ = "evidence_files"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # Object store keys
    source_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    view_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    uploaded_by: Mapped[str] = mapped_column(String(100), nullable=False)


class RequestEvidenceLink(Base, TenantMixin):
    """Join row between a request and an evidence file. Never updated or deleted."""

    __tablename__ = "request_evidence_links"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "request_id", "evidence_file_id",
            name="uq_request_evidence_links_pair",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("requests.id"), nullable=False, index=True
    )
    evidence_file_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("evidence_files.id"), nullable=False, index=True
    )
    linked_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
