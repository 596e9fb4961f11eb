from __future__ import annotations

import logging

from sqlalchemy import Connection, Date, bindparam, text
from sqlalchemy.engine import RowMapping

from numeris.errors import storage_errors
from numeris.models.invoice import Invoice, InvoiceStatus, LineItem
from numeris.repositories.base import InvoiceRepository
from numeris.repositories.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

INVOICE_COLUMNS = (
    "invoice_number",
    "customer_name",
    "customer_email",
    "customer_phone",
    "customer_address",
    "sender_name",
    "sender_email",
    "sender_phone",
    "sender_address",
    "issue_date",
    "due_date",
    "status",
    "subtotal",
    "discount_rate",
    "discount",
    "total_amount",
    "billing_currency",
    "payment_info",
    "note",
    "created_at",
)

LINE_ITEM_COLUMNS = ("id", "invoice_number", "description", "quantity", "unit_price", "total_price", "sort_order")

# Date-typed binds: SQLite gets ISO text, PostgreSQL gets DATE values.
DATE_PARAMS = (bindparam("issue_date", type_=Date), bindparam("due_date", type_=Date))

GET_INVOICE_QUERY = (
    "SELECT "
    + ", ".join(f"i.{column}" for column in INVOICE_COLUMNS)
    + ", li.id AS line_item_id, li.description AS line_item_description, li.quantity AS line_item_quantity, "
    "li.unit_price AS line_item_unit_price, li.total_price AS line_item_total_price, "
    "li.sort_order AS line_item_sort_order "
    "FROM invoices i "
    "JOIN line_items li ON li.invoice_number = i.invoice_number "
    "WHERE i.invoice_number = :invoice_number "
    "ORDER BY li.sort_order, li.id"
)


class SQLAlchemyInvoiceRepository(InvoiceRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, invoice: Invoice) -> Invoice:
        """Insert the header and every line item as one unit of work.

        Nothing is left behind when any insert fails: the whole transaction
        is rolled back and the error surfaces as ``ConstraintViolation`` or
        ``StorageUnavailable``.
        """
        with storage_errors(), UnitOfWork(self.conn) as uow:
            header = self._insert_invoice(uow, invoice)
            item_rows = [
                self._insert_line_item(uow, header["invoice_number"], item, position)
                for position, item in enumerate(invoice.line_items)
            ]
        created = self._build_invoice(header, [self._row_to_line_item(row) for row in item_rows])
        logger.info(
            "Invoice %d created with %d line items (subtotal=%d discount=%d total=%d)",
            created.invoice_number,
            len(created.line_items),
            created.subtotal,
            created.discount,
            created.total_amount,
        )
        return created

    @staticmethod
    def _insert_invoice(uow: UnitOfWork, invoice: Invoice) -> RowMapping:
        params = {
            "customer_name": invoice.customer_name,
            "customer_email": invoice.customer_email,
            "customer_phone": invoice.customer_phone,
            "customer_address": invoice.customer_address,
            "sender_name": invoice.sender_name,
            "sender_email": invoice.sender_email,
            "sender_phone": invoice.sender_phone,
            "sender_address": invoice.sender_address,
            "issue_date": invoice.issue_date,
            "due_date": invoice.due_date,
            "status": invoice.status.value,
            "subtotal": invoice.subtotal,
            "discount_rate": invoice.discount_rate,
            "discount": invoice.discount,
            "total_amount": invoice.total_amount,
            "billing_currency": invoice.billing_currency,
            "payment_info": invoice.payment_info,
        }
        # Leave note out so the column default applies.
        if invoice.note is not None:
            params["note"] = invoice.note
        columns = ", ".join(params)
        placeholders = ", ".join(f":{name}" for name in params)
        return (
            uow.execute(
                text(
                    f"INSERT INTO invoices ({columns}) VALUES ({placeholders}) "
                    f"RETURNING {', '.join(INVOICE_COLUMNS)}"
                ).bindparams(*DATE_PARAMS),
                params,
            )
            .mappings()
            .one()
        )

    @staticmethod
    def _insert_line_item(uow: UnitOfWork, invoice_number: int, item: LineItem, position: int) -> RowMapping:
        return (
            uow.execute(
                text(
                    "INSERT INTO line_items "
                    "(invoice_number, description, quantity, unit_price, total_price, sort_order) "
                    "VALUES (:invoice_number, :description, :quantity, :unit_price, :total_price, :sort_order) "
                    f"RETURNING {', '.join(LINE_ITEM_COLUMNS)}"
                ),
                {
                    "invoice_number": invoice_number,
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                    "sort_order": position,
                },
            )
            .mappings()
            .one()
        )

    @staticmethod
    def _row_to_line_item(row: RowMapping, prefix: str = "") -> LineItem:
        return LineItem(
            id=row[f"{prefix}id"],
            invoice_number=row["invoice_number"],
            description=row[f"{prefix}description"],
            quantity=row[f"{prefix}quantity"],
            unit_price=row[f"{prefix}unit_price"],
            total_price=row[f"{prefix}total_price"],
            sort_order=row[f"{prefix}sort_order"],
        )

    @staticmethod
    def _build_invoice(row: RowMapping, line_items: list[LineItem]) -> Invoice:
        return Invoice(
            invoice_number=row["invoice_number"],
            customer_name=row["customer_name"],
            customer_email=row["customer_email"],
            customer_phone=row["customer_phone"],
            customer_address=row["customer_address"],
            sender_name=row["sender_name"],
            sender_email=row["sender_email"],
            sender_phone=row["sender_phone"],
            sender_address=row["sender_address"],
            issue_date=row["issue_date"],
            due_date=row["due_date"],
            status=InvoiceStatus(row["status"]),
            subtotal=row["subtotal"],
            discount_rate=row["discount_rate"],
            discount=row["discount"],
            total_amount=row["total_amount"],
            billing_currency=row["billing_currency"],
            payment_info=row["payment_info"],
            note=row["note"],
            line_items=line_items,
            created_at=row["created_at"],
        )

    def get_by_number(self, invoice_number: int) -> Invoice | None:
        """Load the header and its ordered line items with a single join query."""
        with storage_errors():
            rows = (
                self.conn.execute(text(GET_INVOICE_QUERY), {"invoice_number": invoice_number})
                .mappings()
                .fetchall()
            )
        if not rows:
            return None
        # Header columns repeat on every row; only the first is read.
        line_items = [self._row_to_line_item(row, prefix="line_item_") for row in rows]
        return self._build_invoice(rows[0], line_items)
