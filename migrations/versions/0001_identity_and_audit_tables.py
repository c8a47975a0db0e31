"""Create identity, role, profile and audit log tables.

Revision ID: 0001_identity_audit
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_identity_audit"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table: str) -> bool:
    bind = op.get_bind()
    return sa.inspect(bind).has_table(table)


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("email_confirmed_at", sa.DateTime(timezone=False), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        )
    if not _has_table("user_roles"):
        op.create_table(
            "user_roles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
            sa.Column("role", sa.String(64), nullable=False),
            sa.Column("territory", sa.String(128), nullable=True),
        )
    if not _has_table("profiles"):
        op.create_table(
            "profiles",
            sa.Column("id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("email", sa.String(320), nullable=True),
            sa.Column("full_name", sa.String(255), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        )
    if not _has_table("audit_logs"):
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("user_id", sa.String(36), nullable=True),
            sa.Column("user_email", sa.String(320), nullable=False),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=False),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("details_json", sa.Text(), nullable=True),
            sa.Column("ip_address", sa.String(45), nullable=True),
        )
        op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
        op.create_index("ix_audit_logs_action", "audit_logs", ["action"])


def downgrade() -> None:
    if _has_table("audit_logs"):
        op.drop_index("ix_audit_logs_action", table_name="audit_logs")
        op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
        op.drop_table("audit_logs")
    for table in ("profiles", "user_roles", "users"):
        if _has_table(table):
            op.drop_table(table)
