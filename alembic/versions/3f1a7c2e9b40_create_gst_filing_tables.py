"""create businesses, invoices, purchases and gst_returns tables

Revision ID: 3f1a7c2e9b40
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1a7c2e9b40"
down_revision = None
branch_labels = None
depends_on = None


def _item_columns(parent_fk: str, parent_table: str) -> list:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(parent_fk, sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("item_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("hsn_code", sa.String(length=8), nullable=True),
        sa.Column("sac_code", sa.String(length=6), nullable=True),
        sa.Column("unit", sa.String(length=10), nullable=False, server_default="NOS"),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("cess_rate", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint([parent_fk], [f"{parent_table}.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("gstin", sa.String(length=15), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("state_code", sa.String(length=2), nullable=True),
        sa.Column("filing_frequency", sa.String(length=20), nullable=False, server_default="monthly"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_businesses_gstin"), "businesses", ["gstin"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("invoice_type", sa.String(length=20), nullable=False, server_default="b2b"),
        sa.Column("customer_id", sa.String(length=64), nullable=True),
        sa.Column("customer_name", sa.String(length=200), nullable=True),
        sa.Column("customer_gstin", sa.String(length=15), nullable=True),
        sa.Column("seller_state_code", sa.String(length=2), nullable=True),
        sa.Column("buyer_state_code", sa.String(length=2), nullable=True),
        sa.Column("reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("taxable_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_tax_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_invoices_business_id"), "invoices", ["business_id"], unique=False)
    op.create_index(op.f("ix_invoices_invoice_date"), "invoices", ["invoice_date"], unique=False)

    op.create_table("invoice_items", *_item_columns("invoice_id", "invoices"))
    op.create_index(op.f("ix_invoice_items_invoice_id"), "invoice_items", ["invoice_id"], unique=False)

    op.create_table(
        "purchases",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("supplier_id", sa.String(length=64), nullable=True),
        sa.Column("supplier_name", sa.String(length=200), nullable=True),
        sa.Column("supplier_gstin", sa.String(length=15), nullable=True),
        sa.Column("supplier_invoice_number", sa.String(length=50), nullable=False),
        sa.Column("supplier_invoice_date", sa.Date(), nullable=False),
        sa.Column("purchase_type", sa.String(length=20), nullable=False, server_default="goods"),
        sa.Column("supplier_state_code", sa.String(length=2), nullable=True),
        sa.Column("buyer_state_code", sa.String(length=2), nullable=True),
        sa.Column("reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("itc_eligible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_purchases_business_id"), "purchases", ["business_id"], unique=False)
    op.create_index(
        op.f("ix_purchases_supplier_invoice_date"), "purchases", ["supplier_invoice_date"], unique=False
    )

    op.create_table(
        "purchase_items",
        *_item_columns("purchase_id", "purchases"),
        sa.Column("itc_eligible", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index(op.f("ix_purchase_items_purchase_id"), "purchase_items", ["purchase_id"], unique=False)

    op.create_table(
        "gst_returns",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("return_type", sa.String(length=10), nullable=False),
        sa.Column("filing_period", sa.String(length=7), nullable=False),
        sa.Column("financial_year", sa.String(length=7), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("total_tax_liability", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_itc", sa.Numeric(14, 2), nullable=True),
        sa.Column("net_tax_payable", sa.Numeric(14, 2), nullable=True),
        sa.Column("late_fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="generated"),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("filed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "business_id", "return_type", "filing_period", name="uq_gst_returns_business_type_period"
        ),
    )
    op.create_index(op.f("ix_gst_returns_business_id"), "gst_returns", ["business_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_gst_returns_business_id"), table_name="gst_returns")
    op.drop_table("gst_returns")
    op.drop_index(op.f("ix_purchase_items_purchase_id"), table_name="purchase_items")
    op.drop_table("purchase_items")
    op.drop_index(op.f("ix_purchases_supplier_invoice_date"), table_name="purchases")
    op.drop_index(op.f("ix_purchases_business_id"), table_name="purchases")
    op.drop_table("purchases")
    op.drop_index(op.f("ix_invoice_items_invoice_id"), table_name="invoice_items")
    op.drop_table("invoice_items")
    op.drop_index(op.f("ix_invoices_invoice_date"), table_name="invoices")
    op.drop_index(op.f("ix_invoices_business_id"), table_name="invoices")
    op.drop_table("invoices")
    op.drop_index(op.f("ix_businesses_gstin"), table_name="businesses")
    op.drop_table("businesses")
