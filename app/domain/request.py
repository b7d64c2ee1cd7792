"""SQLAlchemy ORM models for approvable requests and the templates they are created from."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.domain.mixins import TenantMixin, TimestampMixin


class RequestStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Only a submitted request may be approved or rejected.
DECIDABLE_STATUSES: tuple[str, ...] = (RequestStatus.SUBMITTED.value,)


class ApprovalRequest(Base, TenantMixin, TimestampMixin):
    """A business document moving DRAFT -> SUBMITTED -> APPROVED | REJECTED.

    The evidence policy is copied onto the row at creation time so later
    template edits never change the rules of an in-flight request.
    """

    __tablename__ = "requests"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_id: Mapped[str] = mapped_column(String(100), nullable=False)
    # Plain reference: templates may be archived independently
    template_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.DRAFT.value, nullable=False, index=True
    )

    # Evidence policy
    evidence_required_for_approval: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    evidence_ttl_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Decision
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class RequestTemplate(Base, TenantMixin, TimestampMixin):
    __tablename__ = "request_templates"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    evidence_required_for_approval: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    evidence_ttl_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
