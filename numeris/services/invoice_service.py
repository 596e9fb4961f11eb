from __future__ import annotations

import logging

from numeris.constants import MAX_BIGINT, DiscountRounding
from numeris.errors import InvoiceNotFound
from numeris.models.invoice import Invoice, InvoiceDraft
from numeris.pricing import allocate_discount, price_line_items, to_basis_points
from numeris.repositories.base import InvoiceRepository
from numeris.settings import settings

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        currency: str | None = None,
        rounding: DiscountRounding | None = None,
    ) -> None:
        self.invoice_repo = invoice_repo
        self.currency = (currency or settings.billing_currency).upper()
        self.rounding = rounding or settings.discount_rounding

    def price_invoice(self, draft: InvoiceDraft) -> Invoice:
        """Turn validated input into an unsaved invoice with consistent integer totals."""
        if not draft.line_items:
            raise ValueError("An invoice needs at least one line item")
        priced = price_line_items(draft.line_items)
        rate = to_basis_points(draft.discount_rate)
        discount, total_amount = allocate_discount(priced.subtotal, rate, self.rounding)
        return Invoice(
            customer_name=draft.customer_name,
            customer_email=draft.customer_email,
            customer_phone=draft.customer_phone,
            customer_address=draft.customer_address,
            sender_name=draft.sender_name,
            sender_email=draft.sender_email,
            sender_phone=draft.sender_phone,
            sender_address=draft.sender_address,
            issue_date=draft.issue_date,
            due_date=draft.due_date,
            status=draft.status,
            subtotal=priced.subtotal,
            discount_rate=rate,
            discount=discount,
            total_amount=total_amount,
            billing_currency=self.currency,
            payment_info=draft.payment_info,
            line_items=priced.items,
        )

    def create_invoice(self, draft: InvoiceDraft) -> Invoice:
        invoice = self.price_invoice(draft)
        logger.info(
            "Creating invoice for %s: %d items, subtotal=%d rate=%dbp discount=%d total=%d",
            invoice.customer_name,
            len(invoice.line_items),
            invoice.subtotal,
            invoice.discount_rate,
            invoice.discount,
            invoice.total_amount,
        )
        return self.invoice_repo.create(invoice)

    def get_invoice(self, invoice_number: int) -> Invoice:
        # Numbers outside the BIGINT key range can never have been assigned.
        invoice = None
        if 1 <= invoice_number <= MAX_BIGINT:
            invoice = self.invoice_repo.get_by_number(invoice_number)
        if invoice is None:
            logger.warning("Invoice not found: %d", invoice_number)
            raise InvoiceNotFound(invoice_number)
        return invoice
