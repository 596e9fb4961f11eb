from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from numeris.errors import ConstraintViolation, StorageUnavailable
from numeris.models.invoice import InvoiceStatus, LineItemDraft
from numeris.repositories.sqlalchemy import SQLAlchemyInvoiceRepository


def _count(conn, table: str) -> int:
    return conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()


class TestInvoiceRepoCreate:
    def test_create_assigns_server_fields(self, invoice_repo, sample_invoice):
        created = invoice_repo.create(sample_invoice())

        assert created.invoice_number is not None
        assert created.invoice_number > 0
        assert created.billing_currency == "USD"
        assert created.note == "Thank you for your business."
        assert isinstance(created.created_at, datetime)

    def test_create_keeps_header_values(self, invoice_repo, sample_invoice):
        invoice = sample_invoice()
        created = invoice_repo.create(invoice)

        assert created.customer_name == "Ada Obi"
        assert created.sender_email == "billing@numeris.example"
        assert created.issue_date == date(2026, 3, 1)
        assert created.due_date == date(2026, 3, 31)
        assert created.status == InvoiceStatus.PENDING_PAYMENT
        assert created.subtotal == 21798
        assert created.discount_rate == 580
        assert created.discount == 1265
        assert created.total_amount == 20533
        assert created.payment_info == "Bank transfer to 0123456789"

    def test_create_propagates_invoice_number_to_items(self, invoice_repo, sample_invoice):
        created = invoice_repo.create(sample_invoice())

        assert len(created.line_items) == 2
        for item in created.line_items:
            assert item.id is not None
            assert item.invoice_number == created.invoice_number

    def test_create_returns_items_in_submission_order(self, invoice_repo, sample_invoice):
        created = invoice_repo.create(sample_invoice())

        first, second = created.line_items
        assert (first.description, first.quantity, first.unit_price, first.total_price) == (
            "Website audit",
            1,
            10000,
            10000,
        )
        assert (second.description, second.quantity, second.unit_price, second.total_price) == (
            "Support hours",
            2,
            5899,
            11798,
        )
        assert [item.sort_order for item in created.line_items] == [0, 1]

    def test_explicit_note_is_kept(self, invoice_repo, sample_invoice):
        invoice = sample_invoice()
        invoice.note = "Net 30"
        assert invoice_repo.create(invoice).note == "Net 30"

    def test_invoice_numbers_increase(self, invoice_repo, sample_invoice):
        first = invoice_repo.create(sample_invoice())
        second = invoice_repo.create(sample_invoice())
        assert second.invoice_number > first.invoice_number

    def test_create_after_read(self, invoice_repo, sample_invoice):
        # A read leaves an implicit transaction open on the connection.
        assert invoice_repo.get_by_number(1) is None
        created = invoice_repo.create(sample_invoice())
        assert invoice_repo.get_by_number(created.invoice_number) is not None


class TestInvoiceRepoAtomicity:
    def test_failed_second_item_leaves_nothing(self, invoice_repo, sample_invoice, db_connection):
        invoice = sample_invoice(
            line_items=[
                LineItemDraft(description="First", quantity=1, unit_price="1.00"),
                LineItemDraft(description="Second", quantity=1, unit_price="2.00"),
                LineItemDraft(description="Third", quantity=1, unit_price="3.00"),
            ]
        )
        original_insert = SQLAlchemyInvoiceRepository._insert_line_item
        attempted: list[int] = []

        def insert_with_dangling_reference(uow, invoice_number, item, position):
            attempted.append(invoice_number)
            if position == 1:
                invoice_number = 9999
            return original_insert(uow, invoice_number, item, position)

        with patch.object(SQLAlchemyInvoiceRepository, "_insert_line_item", side_effect=insert_with_dangling_reference):
            with pytest.raises(ConstraintViolation):
                invoice_repo.create(invoice)

        assert len(attempted) == 2
        assert invoice_repo.get_by_number(attempted[0]) is None
        assert _count(db_connection, "invoices") == 0
        assert _count(db_connection, "line_items") == 0

    def test_constraint_violation_keeps_cause(self, invoice_repo, sample_invoice):
        original_insert = SQLAlchemyInvoiceRepository._insert_line_item

        def dangling(uow, invoice_number, item, position):
            return original_insert(uow, 9999, item, position)

        with patch.object(SQLAlchemyInvoiceRepository, "_insert_line_item", side_effect=dangling):
            with pytest.raises(ConstraintViolation, match="FOREIGN KEY") as exc_info:
                invoice_repo.create(sample_invoice())
        assert exc_info.value.__cause__ is not None

    def test_storage_failure_on_header(self, invoice_repo, sample_invoice, db_connection):
        error = OperationalError("INSERT INTO invoices", {}, Exception("server closed the connection"))
        with patch.object(SQLAlchemyInvoiceRepository, "_insert_invoice", side_effect=error):
            with pytest.raises(StorageUnavailable, match="server closed the connection"):
                invoice_repo.create(sample_invoice())
        assert _count(db_connection, "invoices") == 0

    def test_cancellation_rolls_back(self, invoice_repo, sample_invoice, db_connection):
        original_insert = SQLAlchemyInvoiceRepository._insert_line_item

        def cancelled_midway(uow, invoice_number, item, position):
            if position == 1:
                raise KeyboardInterrupt
            return original_insert(uow, invoice_number, item, position)

        with patch.object(SQLAlchemyInvoiceRepository, "_insert_line_item", side_effect=cancelled_midway):
            with pytest.raises(KeyboardInterrupt):
                invoice_repo.create(sample_invoice())

        assert _count(db_connection, "invoices") == 0
        assert _count(db_connection, "line_items") == 0

    def test_connection_usable_after_failure(self, invoice_repo, sample_invoice):
        def timed_out(uow, invoice_number, item, position):
            raise OperationalError("INSERT INTO line_items", {}, Exception("timeout"))

        with patch.object(SQLAlchemyInvoiceRepository, "_insert_line_item", side_effect=timed_out):
            with pytest.raises(StorageUnavailable):
                invoice_repo.create(sample_invoice())

        created = invoice_repo.create(sample_invoice())
        assert invoice_repo.get_by_number(created.invoice_number) is not None


class TestInvoiceRepoRead:
    def test_get_by_number_not_found(self, invoice_repo):
        assert invoice_repo.get_by_number(9999) is None

    def test_round_trip(self, invoice_repo, sample_invoice):
        created = invoice_repo.create(sample_invoice())
        fetched = invoice_repo.get_by_number(created.invoice_number)

        assert fetched is not None
        assert fetched.model_dump() == created.model_dump()

    def test_many_items_keep_order(self, invoice_repo, sample_invoice):
        drafts = [
            LineItemDraft(description=f"Item {name}", quantity=index + 1, unit_price=f"{index}.25")
            for index, name in enumerate(["zulu", "alpha", "mike", "bravo", "yankee"])
        ]
        created = invoice_repo.create(sample_invoice(line_items=drafts))
        fetched = invoice_repo.get_by_number(created.invoice_number)

        assert [item.description for item in fetched.line_items] == [
            "Item zulu",
            "Item alpha",
            "Item mike",
            "Item bravo",
            "Item yankee",
        ]
        assert [item.quantity for item in fetched.line_items] == [1, 2, 3, 4, 5]
        assert [item.unit_price for item in fetched.line_items] == [25, 125, 225, 325, 425]
        assert fetched.line_items == created.line_items

    def test_single_header_per_read(self, invoice_repo, sample_invoice):
        created = invoice_repo.create(sample_invoice())
        fetched = invoice_repo.get_by_number(created.invoice_number)

        assert fetched.invoice_number == created.invoice_number
        assert len(fetched.line_items) == 2

    def test_items_of_other_invoices_excluded(self, invoice_repo, sample_invoice):
        first = invoice_repo.create(sample_invoice())
        second = invoice_repo.create(
            sample_invoice(line_items=[LineItemDraft(description="Only", quantity=3, unit_price="9.99")])
        )

        fetched_first = invoice_repo.get_by_number(first.invoice_number)
        fetched_second = invoice_repo.get_by_number(second.invoice_number)
        assert len(fetched_first.line_items) == 2
        assert [item.description for item in fetched_second.line_items] == ["Only"]
        assert fetched_second.subtotal == 2997

    def test_read_storage_failure(self):
        conn = MagicMock()
        conn.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        repo = SQLAlchemyInvoiceRepository(conn)
        with pytest.raises(StorageUnavailable, match="connection refused"):
            repo.get_by_number(1)
