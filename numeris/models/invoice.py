from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, model_validator

from numeris.constants import DEFAULT_CURRENCY, MAX_BASIS_POINTS


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING_PAYMENT = "pending_payment"
    OVERDUE = "overdue"
    PAID = "paid"


class LineItemDraft(BaseModel):
    description: str
    quantity: int
    unit_price: str  # decimal text, e.g. '58.99'


class InvoiceDraft(BaseModel):
    """Validated invoice input, before pricing."""

    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    sender_name: str
    sender_email: str
    sender_phone: str
    sender_address: str
    issue_date: date
    due_date: date
    status: InvoiceStatus = InvoiceStatus.DRAFT
    discount_rate: str = "0"  # percent text, e.g. '5.80'
    payment_info: str = ""
    line_items: list[LineItemDraft]


class LineItem(BaseModel):
    id: int | None = None
    invoice_number: int | None = None
    description: str
    quantity: int
    unit_price: int  # minor units
    total_price: int  # minor units
    sort_order: int = 0

    @model_validator(mode="after")
    def _check_total(self) -> LineItem:
        if self.total_price != self.unit_price * self.quantity:
            raise ValueError(
                f"total_price {self.total_price} != unit_price {self.unit_price} * quantity {self.quantity}"
            )
        return self


class Invoice(BaseModel):
    invoice_number: int | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    sender_name: str
    sender_email: str
    sender_phone: str
    sender_address: str
    issue_date: date
    due_date: date
    status: InvoiceStatus
    subtotal: int  # minor units
    discount_rate: int  # basis points
    discount: int  # minor units
    total_amount: int  # minor units
    billing_currency: str = DEFAULT_CURRENCY
    payment_info: str = ""
    note: str | None = None
    line_items: list[LineItem] = []
    created_at: datetime | None = None

    @model_validator(mode="after")
    def _check_amounts(self) -> Invoice:
        if not 0 <= self.discount_rate <= MAX_BASIS_POINTS:
            raise ValueError(f"discount_rate {self.discount_rate} outside 0..{MAX_BASIS_POINTS} basis points")
        if self.subtotal != self.discount + self.total_amount:
            raise ValueError(
                f"subtotal {self.subtotal} != discount {self.discount} + total_amount {self.total_amount}"
            )
        return self
