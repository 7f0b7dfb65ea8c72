"""request attachments

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "request_attachments",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("purchase_request_id", sa.Integer(), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=512), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_request_attachments"),
        sa.ForeignKeyConstraint(
            ["purchase_request_id"],
            ["purchase_requests.id"],
            name="fk_request_attachments_purchase_request_id_purchase_requests",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["uploaded_by"], ["users.id"], name="fk_request_attachments_uploaded_by_users", ondelete="RESTRICT"
        ),
    )
    op.create_index(
        "ix_request_attachments_purchase_request_id", "request_attachments", ["purchase_request_id"], unique=False
    )
    op.create_index("ix_request_attachments_deleted_at", "request_attachments", ["deleted_at"], unique=False)


def downgrade():
    op.drop_index("ix_request_attachments_deleted_at", table_name="request_attachments")
    op.drop_index("ix_request_attachments_purchase_request_id", table_name="request_attachments")
    op.drop_table("request_attachments")
