"""create invoices and line items

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f1c9a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUSES = ("draft", "pending_payment", "overdue", "paid")


def upgrade() -> None:
    op.create_table(
        "invoices",
        sa.Column(
            "invoice_number",
            sa.BigInteger().with_variant(sa.Integer, "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("customer_name", sa.Text, nullable=False),
        sa.Column("customer_email", sa.Text, nullable=False),
        sa.Column("customer_phone", sa.Text, nullable=False),
        sa.Column("customer_address", sa.Text, nullable=False),
        sa.Column("sender_name", sa.Text, nullable=False),
        sa.Column("sender_email", sa.Text, nullable=False),
        sa.Column("sender_phone", sa.Text, nullable=False),
        sa.Column("sender_address", sa.Text, nullable=False),
        sa.Column("issue_date", sa.Date, nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("subtotal", sa.BigInteger, nullable=False),
        sa.Column("discount_rate", sa.Integer, nullable=False, server_default="0"),
        sa.Column("discount", sa.BigInteger, nullable=False),
        sa.Column("total_amount", sa.BigInteger, nullable=False),
        sa.Column("billing_currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("payment_info", sa.Text, nullable=False, server_default=""),
        sa.Column("note", sa.Text, nullable=False, server_default="Thank you for your business."),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('" + "', '".join(STATUSES) + "')", name="ck_invoices_status"),
        sa.CheckConstraint("discount_rate BETWEEN 0 AND 10000", name="ck_invoices_discount_rate"),
        sa.CheckConstraint("subtotal = discount + total_amount", name="ck_invoices_amounts"),
        sa.CheckConstraint("discount >= 0 AND total_amount >= 0", name="ck_invoices_non_negative"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "line_items",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True),
        sa.Column(
            "invoice_number",
            sa.BigInteger,
            sa.ForeignKey("invoices.invoice_number", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("quantity", sa.BigInteger, nullable=False),
        sa.Column("unit_price", sa.BigInteger, nullable=False),
        sa.Column("total_price", sa.BigInteger, nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.CheckConstraint("description <> ''", name="ck_line_items_description"),
        sa.CheckConstraint("quantity > 0", name="ck_line_items_quantity"),
        sa.CheckConstraint("unit_price >= 0 AND total_price >= 0", name="ck_line_items_prices"),
        sa.CheckConstraint("total_price = unit_price * quantity", name="ck_line_items_total"),
    )
    op.create_index("ix_line_items_invoice_number_sort_order", "line_items", ["invoice_number", "sort_order"])


def downgrade() -> None:
    op.drop_index("ix_line_items_invoice_number_sort_order", table_name="line_items")
    op.drop_table("line_items")
    op.drop_table("invoices")
