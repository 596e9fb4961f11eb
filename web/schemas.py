"""Request and response bodies for the invoice HTTP API."""

from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, model_validator

from numeris.constants import MAX_BIGINT, PRICE_PATTERN
from numeris.models import format_money
from numeris.models.invoice import Invoice, InvoiceDraft, InvoiceStatus, LineItemDraft
from numeris.pricing import to_percent_text

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
# 0 up to (not including) 100 percent, any number of decimals
RATE_PATTERN = r"^(?:[0-9]|[1-9][0-9])(?:\.[0-9]+)?$"


class CreateLineItemRequest(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(gt=0, le=MAX_BIGINT)
    unit_price: str = Field(pattern=PRICE_PATTERN)


class CreateInvoiceRequest(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: str = Field(pattern=EMAIL_PATTERN)
    customer_phone: str = Field(min_length=1)
    customer_address: str = Field(min_length=1)
    sender_name: str = Field(min_length=1)
    sender_email: str = Field(pattern=EMAIL_PATTERN)
    sender_phone: str = Field(min_length=1)
    sender_address: str = Field(min_length=1)
    issue_date: date
    due_date: date
    status: InvoiceStatus
    discount_rate: str = Field(pattern=RATE_PATTERN)
    payment_info: str = Field(min_length=1)
    line_items: list[CreateLineItemRequest] = Field(min_length=1)

    @model_validator(mode="after")
    def _due_after_issue(self) -> CreateInvoiceRequest:
        if self.due_date <= self.issue_date:
            raise ValueError("due_date must be later than issue_date")
        return self

    def to_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            **self.model_dump(exclude={"line_items"}),
            line_items=[LineItemDraft(**item.model_dump()) for item in self.line_items],
        )


class CreateInvoiceResponse(BaseModel):
    invoice_number: int
    created_at: str


class InvoiceItemResponse(BaseModel):
    id: int
    invoice_number: int
    description: str
    quantity: int
    unit_price: str
    total_price: str


class InvoiceResponse(BaseModel):
    invoice_number: int
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    sender_name: str
    sender_email: str
    sender_phone: str
    sender_address: str
    issue_date: str
    due_date: str
    status: str
    subtotal: str
    discount_rate: str
    discount: str
    total_amount: str
    payment_info: str
    billing_currency: str
    note: str
    created_at: str
    items: list[InvoiceItemResponse]

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> InvoiceResponse:
        currency = invoice.billing_currency
        return cls(
            invoice_number=invoice.invoice_number,
            customer_name=invoice.customer_name,
            customer_email=invoice.customer_email,
            customer_phone=invoice.customer_phone,
            customer_address=invoice.customer_address,
            sender_name=invoice.sender_name,
            sender_email=invoice.sender_email,
            sender_phone=invoice.sender_phone,
            sender_address=invoice.sender_address,
            issue_date=invoice.issue_date.isoformat(),
            due_date=invoice.due_date.isoformat(),
            status=invoice.status.value,
            subtotal=format_money(invoice.subtotal, currency),
            discount_rate=f"{to_percent_text(invoice.discount_rate)}%",
            discount=format_money(invoice.discount, currency),
            total_amount=format_money(invoice.total_amount, currency),
            payment_info=invoice.payment_info,
            billing_currency=currency,
            note=invoice.note or "",
            created_at=rfc3339(invoice.created_at),
            items=[
                InvoiceItemResponse(
                    id=item.id,
                    invoice_number=item.invoice_number,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=format_money(item.unit_price, currency),
                    total_price=format_money(item.total_price, currency),
                )
                for item in invoice.line_items
            ],
        )


def rfc3339(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        # SQLite CURRENT_TIMESTAMP is UTC without an offset.
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")
