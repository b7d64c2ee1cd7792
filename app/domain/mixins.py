"""Reusable SQLAlchemy column mixins."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow


class TimestampMixin:
    """Adds created_at, updated_at columns. Nothing in this service is ever deleted."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class TenantMixin:
    """Adds tenant_id column for multi-tenancy."""

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
