"""Create asset, waybill and site movement tables.

Revision ID: 5d1c2a7e9b30
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "5d1c2a7e9b30"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return bool(insp.has_table(table_name))


def upgrade() -> None:
    if not _table_exists("assets"):
        op.create_table(
            "assets",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("unit_of_measurement", sa.String(length=32), nullable=False, server_default="pcs"),
            sa.Column("category", sa.String(length=64), nullable=True),
            sa.Column("type", sa.String(length=32), nullable=True),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("reserved_quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("damaged_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("missing_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("site_quantities", sa.JSON(), nullable=False),
            sa.Column("available_quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("low_stock_level", sa.Integer(), nullable=False, server_default="10"),
            sa.Column("critical_stock_level", sa.Integer(), nullable=False, server_default="5"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_assets_id", "assets", ["id"])
        op.create_index("ix_assets_name", "assets", ["name"])

    if not _table_exists("waybills"):
        op.create_table(
            "waybills",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("type", sa.String(length=7), nullable=False, server_default="waybill"),
            sa.Column("siteId", sa.String(length=64), nullable=False),
            sa.Column("returnToSiteId", sa.String(length=64), nullable=True),
            sa.Column("driverName", sa.String(length=128), nullable=True),
            sa.Column("vehicle", sa.String(length=128), nullable=True),
            sa.Column("issueDate", sa.DateTime(timezone=True), nullable=False),
            sa.Column("expectedReturnDate", sa.DateTime(timezone=True), nullable=True),
            sa.Column("sent_to_site_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("purpose", sa.Text(), nullable=False, server_default=""),
            sa.Column("service", sa.String(length=64), nullable=True),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="outstanding"),
            sa.Column("items", sa.JSON(), nullable=False),
            sa.Column("createdBy", sa.String(length=128), nullable=True),
            sa.Column("createdAt", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updatedAt", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_waybills_siteId", "waybills", ["siteId"])
        op.create_index("ix_waybills_status", "waybills", ["status"])
        op.create_index("ix_waybills_site_status", "waybills", ["siteId", "status"])
        op.create_index("ix_waybills_type_status", "waybills", ["type", "status"])

    if not _table_exists("site_transactions"):
        op.create_table(
            "site_transactions",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("site_id", sa.String(length=64), nullable=False),
            sa.Column("asset_id", sa.Integer(), nullable=False),
            sa.Column("asset_name", sa.String(length=255), nullable=False),
            sa.Column("transaction_type", sa.String(length=10), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("type", sa.String(length=3), nullable=False),
            sa.Column("reference_id", sa.String(length=64), nullable=False),
            sa.Column("reference_type", sa.String(length=64), nullable=False),
            sa.Column("condition", sa.String(length=7), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_by", sa.String(length=128), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_site_transactions_id", "site_transactions", ["id"])
        op.create_index("ix_site_transactions_site_id", "site_transactions", ["site_id"])
        op.create_index("ix_site_transactions_asset_id", "site_transactions", ["asset_id"])
        op.create_index("ix_site_transactions_created_at", "site_transactions", ["created_at"])
        op.create_index("ix_site_transactions_site_time", "site_transactions", ["site_id", "created_at"])
        op.create_index(
            "ix_site_transactions_reference",
            "site_transactions",
            ["reference_type", "reference_id"],
        )


def downgrade() -> None:
    for table_name in ("site_transactions", "waybills", "assets"):
        if _table_exists(table_name):
            op.drop_table(table_name)
