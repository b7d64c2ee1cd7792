"""initial evidence approval schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "request_templates",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("evidence_required_for_approval", sa.Boolean(), nullable=False),
        sa.Column("evidence_ttl_seconds", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_request_templates_tenant_id", "request_templates", ["tenant_id"])
    op.create_index("ix_request_templates_name", "request_templates", ["name"])

    op.create_table(
        "requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("requester_id", sa.String(100), nullable=False),
        sa.Column("template_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("evidence_required_for_approval", sa.Boolean(), nullable=False),
        sa.Column("evidence_ttl_seconds", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(100), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(100), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_requests_tenant_id", "requests", ["tenant_id"])
    op.create_index("ix_requests_template_id", "requests", ["template_id"])
    op.create_index("ix_requests_status", "requests", ["status"])

    op.create_table(
        "evidence_files",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("source_key", sa.String(500), nullable=True),
        sa.Column("view_key", sa.String(500), nullable=True),
        sa.Column("uploaded_by", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_evidence_files_tenant_id", "evidence_files", ["tenant_id"])
    op.create_index("ix_evidence_files_status", "evidence_files", ["status"])

    op.create_table(
        "request_evidence_links",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("request_id", sa.String(36), nullable=False),
        sa.Column("evidence_file_id", sa.String(36), nullable=False),
        sa.Column("linked_by", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["request_id"], ["requests.id"]),
        sa.ForeignKeyConstraint(["evidence_file_id"], ["evidence_files.id"]),
        sa.UniqueConstraint(
            "tenant_id", "request_id", "evidence_file_id", name="uq_request_evidence_links_pair"
        ),
    )
    op.create_index("ix_request_evidence_links_tenant_id", "request_evidence_links", ["tenant_id"])
    op.create_index("ix_request_evidence_links_request_id", "request_evidence_links", ["request_id"])
    op.create_index(
        "ix_request_evidence_links_evidence_file_id", "request_evidence_links", ["evidence_file_id"]
    )
    op.create_index("ix_request_evidence_links_created_at", "request_evidence_links", ["created_at"])

    op.create_table(
        "audit_log",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("actor_id", sa.String(100), nullable=False),
        sa.Column("trace_id", sa.String(100), nullable=True),
        sa.Column("event_name", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_log_tenant_id", "audit_log", ["tenant_id"])
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_trace_id", "audit_log", ["trace_id"])
    op.create_index("ix_audit_log_event_name", "audit_log", ["event_name"])
    op.create_index("ix_audit_log_entity_id", "audit_log", ["entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("request_evidence_links")
    op.drop_table("evidence_files")
    op.drop_table("requests")
    op.drop_table("request_templates")
