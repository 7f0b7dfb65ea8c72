"""initial schema: sectors, users, suppliers, products, purchase requests, items, receipts, budgets

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _index_deleted_at(table: str):
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"], unique=False)


def upgrade():
    op.create_table(
        "sectors",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_sectors"),
    )
    op.create_index("ix_sectors_name", "sectors", ["name"], unique=True)
    _index_deleted_at("sectors")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="requester"),
        sa.Column("sector_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.ForeignKeyConstraint(["sector_id"], ["sectors.id"], name="fk_users_sector_id_sectors", ondelete="RESTRICT"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_sector_id", "users", ["sector_id"], unique=False)
    _index_deleted_at("users")

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("cnpj", sa.String(length=20), nullable=True),
        sa.Column("contact", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_suppliers"),
    )
    op.create_index("ix_suppliers_name", "suppliers", ["name"], unique=False)
    _index_deleted_at("suppliers")

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("sector_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
        sa.ForeignKeyConstraint(["sector_id"], ["sectors.id"], name="fk_products_sector_id_sectors", ondelete="RESTRICT"),
    )
    op.create_index("ix_products_name", "products", ["name"], unique=False)
    op.create_index("ix_products_sector_id", "products", ["sector_id"], unique=False)
    _index_deleted_at("products")

    op.create_table(
        "purchase_requests",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("requester_id", sa.Integer(), nullable=False),
        sa.Column("sector_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_notes", sa.Text(), nullable=True),
        sa.Column("completed_by", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("priority_by", sa.Integer(), nullable=True),
        sa.Column("priority_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_purchase_requests"),
        sa.ForeignKeyConstraint(
            ["requester_id"], ["users.id"], name="fk_purchase_requests_requester_id_users", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["sector_id"], ["sectors.id"], name="fk_purchase_requests_sector_id_sectors", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["reviewed_by"], ["users.id"], name="fk_purchase_requests_reviewed_by_users", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["completed_by"], ["users.id"], name="fk_purchase_requests_completed_by_users", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["priority_by"], ["users.id"], name="fk_purchase_requests_priority_by_users", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_purchase_requests_requester_id", "purchase_requests", ["requester_id"], unique=False)
    op.create_index("ix_purchase_requests_sector_id", "purchase_requests", ["sector_id"], unique=False)
    op.create_index("ix_purchase_requests_status", "purchase_requests", ["status"], unique=False)
    op.create_index("ix_purchase_requests_priority", "purchase_requests", ["priority"], unique=False)
    _index_deleted_at("purchase_requests")

    op.create_table(
        "request_items",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("purchase_request_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("suspension_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_request_items"),
        sa.CheckConstraint("quantity > 0", name="ck_request_items_quantity_positive"),
        sa.ForeignKeyConstraint(
            ["purchase_request_id"],
            ["purchase_requests.id"],
            name="fk_request_items_purchase_request_id_purchase_requests",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], name="fk_request_items_product_id_products", ondelete="RESTRICT"
        ),
    )
    op.create_index("ix_request_items_purchase_request_id", "request_items", ["purchase_request_id"], unique=False)
    op.create_index("ix_request_items_product_id", "request_items", ["product_id"], unique=False)
    op.create_index("ix_request_items_status", "request_items", ["status"], unique=False)
    _index_deleted_at("request_items")

    op.create_table(
        "item_receipts",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("request_item_id", sa.Integer(), nullable=False),
        sa.Column("quantity_received", sa.Integer(), nullable=False),
        sa.Column("rejected_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("received_by", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(length=100), nullable=False),
        sa.Column("invoice_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lot_number", sa.String(length=100), nullable=True),
        sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("supplier_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("attachment_path", sa.String(length=512), nullable=True),
        sa.Column("receipt_condition", sa.String(length=50), nullable=False, server_default="good"),
        sa.Column("quality_checked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("quality_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_item_receipts"),
        sa.CheckConstraint("quantity_received > 0", name="ck_item_receipts_quantity_received_positive"),
        sa.CheckConstraint("rejected_quantity >= 0", name="ck_item_receipts_rejected_quantity_non_negative"),
        sa.CheckConstraint("rejected_quantity <= quantity_received", name="ck_item_receipts_rejected_within_received"),
        sa.ForeignKeyConstraint(
            ["request_item_id"],
            ["request_items.id"],
            name="fk_item_receipts_request_item_id_request_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["received_by"], ["users.id"], name="fk_item_receipts_received_by_users", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["supplier_id"], ["suppliers.id"], name="fk_item_receipts_supplier_id_suppliers", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_item_receipts_request_item_id", "item_receipts", ["request_item_id"], unique=False)
    op.create_index("ix_item_receipts_supplier_id", "item_receipts", ["supplier_id"], unique=False)
    _index_deleted_at("item_receipts")

    op.create_table(
        "item_budgets",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("purchase_request_id", sa.Integer(), nullable=False),
        sa.Column("request_item_id", sa.Integer(), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_item_budgets"),
        sa.CheckConstraint("unit_price > 0", name="ck_item_budgets_unit_price_positive"),
        sa.ForeignKeyConstraint(
            ["purchase_request_id"],
            ["purchase_requests.id"],
            name="fk_item_budgets_purchase_request_id_purchase_requests",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["request_item_id"],
            ["request_items.id"],
            name="fk_item_budgets_request_item_id_request_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["supplier_id"], ["suppliers.id"], name="fk_item_budgets_supplier_id_suppliers", ondelete="RESTRICT"
        ),
    )
    op.create_index("ix_item_budgets_purchase_request_id", "item_budgets", ["purchase_request_id"], unique=False)
    op.create_index("ix_item_budgets_request_item_id", "item_budgets", ["request_item_id"], unique=False)
    op.create_index("ix_item_budgets_supplier_id", "item_budgets", ["supplier_id"], unique=False)
    _index_deleted_at("item_budgets")


def downgrade():
    for table in (
        "item_budgets",
        "item_receipts",
        "request_items",
        "purchase_requests",
        "products",
        "suppliers",
        "users",
        "sectors",
    ):
        op.drop_table(table)
