"""Root conftest: in-memory SQLite engine and fixtures for the invoice schema."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from numeris.models.invoice import InvoiceDraft, InvoiceStatus, LineItemDraft

# Matches Alembic head: 3f1c9a2b7d40 (create invoices and line items)
SCHEMA_DDL = """
CREATE TABLE invoices (
    invoice_number INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_name TEXT NOT NULL,
    customer_email TEXT NOT NULL,
    customer_phone TEXT NOT NULL,
    customer_address TEXT NOT NULL,
    sender_name TEXT NOT NULL,
    sender_email TEXT NOT NULL,
    sender_phone TEXT NOT NULL,
    sender_address TEXT NOT NULL,
    issue_date DATE NOT NULL,
    due_date DATE NOT NULL,
    status VARCHAR(20) NOT NULL,
    subtotal INTEGER NOT NULL,
    discount_rate INTEGER NOT NULL DEFAULT 0,
    discount INTEGER NOT NULL,
    total_amount INTEGER NOT NULL,
    billing_currency VARCHAR(3) NOT NULL DEFAULT 'USD',
    payment_info TEXT NOT NULL DEFAULT '',
    note TEXT NOT NULL DEFAULT 'Thank you for your business.',
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT ck_invoices_status CHECK (status IN ('draft', 'pending_payment', 'overdue', 'paid')),
    CONSTRAINT ck_invoices_discount_rate CHECK (discount_rate BETWEEN 0 AND 10000),
    CONSTRAINT ck_invoices_amounts CHECK (subtotal = discount + total_amount),
    CONSTRAINT ck_invoices_non_negative CHECK (discount >= 0 AND total_amount >= 0)
);

CREATE TABLE line_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_number INTEGER NOT NULL REFERENCES invoices(invoice_number) ON DELETE CASCADE,
    description TEXT NOT NULL,
    quantity INTEGER NOT NULL,
    unit_price INTEGER NOT NULL,
    total_price INTEGER NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    CONSTRAINT ck_line_items_description CHECK (description <> ''),
    CONSTRAINT ck_line_items_quantity CHECK (quantity > 0),
    CONSTRAINT ck_line_items_prices CHECK (unit_price >= 0 AND total_price >= 0),
    CONSTRAINT ck_line_items_total CHECK (total_price = unit_price * quantity)
);

CREATE INDEX ix_line_items_invoice_number_sort_order ON line_items (invoice_number, sort_order)
"""


def create_schema(conn: Connection) -> None:
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    create_schema(conn)
    yield conn
    conn.close()


def _sample_draft(**overrides) -> InvoiceDraft:
    defaults = dict(
        customer_name="Ada Obi",
        customer_email="ada@example.com",
        customer_phone="+2348012345678",
        customer_address="12 Marina Road, Lagos",
        sender_name="Numeris Studio",
        sender_email="billing@numeris.example",
        sender_phone="+2348098765432",
        sender_address="4 Admiralty Way, Lekki",
        issue_date=date(2026, 3, 1),
        due_date=date(2026, 3, 31),
        status=InvoiceStatus.PENDING_PAYMENT,
        discount_rate="5.80",
        payment_info="Bank transfer to 0123456789",
        line_items=[
            LineItemDraft(description="Website audit", quantity=1, unit_price="100.00"),
            LineItemDraft(description="Support hours", quantity=2, unit_price="58.99"),
        ],
    )
    defaults.update(overrides)
    return InvoiceDraft(**defaults)


@pytest.fixture()
def sample_draft():
    return _sample_draft
