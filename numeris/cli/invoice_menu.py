from __future__ import annotations

import re
from datetime import date

import questionary
from rich.console import Console
from rich.table import Table

from numeris.constants import MAX_BIGINT, MAX_MINOR_UNITS, PRICE_PATTERN
from numeris.errors import ConstraintViolation, InvalidDiscountRate, InvoiceNotFound, StorageUnavailable
from numeris.models import format_money
from numeris.models.invoice import Invoice, InvoiceDraft, InvoiceStatus, LineItemDraft
from numeris.pricing import price_to_minor_units, to_basis_points, to_percent_text
from numeris.services.invoice_service import InvoiceService

console = Console()

PARTY_FIELDS = [
    ("customer_name", "Customer name:"),
    ("customer_email", "Customer email:"),
    ("customer_phone", "Customer phone:"),
    ("customer_address", "Customer address:"),
    ("sender_name", "Sender name:"),
    ("sender_email", "Sender email:"),
    ("sender_phone", "Sender phone:"),
    ("sender_address", "Sender address:"),
]


def _ask_date(prompt: str, after: date | None = None) -> date:
    while True:
        raw = questionary.text(prompt).ask() or ""
        try:
            value = date.fromisoformat(raw.strip())
        except ValueError:
            console.print("[red]Invalid date. Use YYYY-MM-DD.[/red]")
            continue
        if after is not None and value <= after:
            console.print(f"[red]Must be later than {after.isoformat()}.[/red]")
            continue
        return value


def _ask_discount_rate() -> str:
    while True:
        raw = (questionary.text("Discount rate in percent (ex: 5.80):", default="0").ask() or "").strip()
        try:
            to_basis_points(raw)
        except InvalidDiscountRate as exc:
            console.print(f"[red]{exc}[/red]")
            continue
        return raw


def _parse_whole_number(raw: str | None) -> int | None:
    """Return a positive integer typed by the user, or None."""
    try:
        value = int((raw or "").strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _ask_line_item() -> LineItemDraft | None:
    description = (questionary.text("  Description:").ask() or "").strip()
    if not description:
        return None

    while True:
        quantity = _parse_whole_number(questionary.text("  Quantity:", default="1").ask())
        if quantity is not None and quantity <= MAX_BIGINT:
            break
        console.print("[red]Quantity must be a positive whole number.[/red]")

    while True:
        unit_price = (questionary.text("  Unit price (ex: 58.99):").ask() or "").strip()
        if re.fullmatch(PRICE_PATTERN, unit_price) and price_to_minor_units(unit_price) <= MAX_MINOR_UNITS:
            break
        console.print("[red]Invalid price. Use a non-negative amount with at most two decimals.[/red]")

    return LineItemDraft(description=description, quantity=quantity, unit_price=unit_price)


def show_invoice_detail(invoice: Invoice) -> None:
    currency = invoice.billing_currency
    console.print()
    console.print(
        f"[bold]Invoice #{invoice.invoice_number}[/bold] [dim]({invoice.status.value})[/dim]",
        style="cyan",
    )
    console.print(f"  From: {invoice.sender_name} <{invoice.sender_email}>")
    console.print(f"  To:   {invoice.customer_name} <{invoice.customer_email}>")
    console.print(f"  Issued {invoice.issue_date.isoformat()}, due {invoice.due_date.isoformat()}")

    table = Table()
    table.add_column("Description")
    table.add_column("Qty", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("Total", justify="right")
    for item in invoice.line_items:
        table.add_row(
            item.description,
            str(item.quantity),
            format_money(item.unit_price, currency),
            format_money(item.total_price, currency),
        )
    console.print(table)

    console.print(f"  Subtotal: {format_money(invoice.subtotal, currency)}")
    console.print(
        f"  Discount ({to_percent_text(invoice.discount_rate)}%): {format_money(invoice.discount, currency)}"
    )
    console.print(f"  [bold]Total: {format_money(invoice.total_amount, currency)}[/bold]")
    if invoice.payment_info:
        console.print(f"  Payment: {invoice.payment_info}")
    if invoice.note:
        console.print(f"  [dim]{invoice.note}[/dim]")


def create_invoice_menu(invoice_service: InvoiceService) -> Invoice | None:
    console.print()
    console.print("[bold]New Invoice[/bold]", style="cyan")

    fields: dict[str, str] = {}
    for name, prompt in PARTY_FIELDS:
        fields[name] = (questionary.text(prompt).ask() or "").strip()

    issue_date = _ask_date("Issue date (YYYY-MM-DD):")
    due_date = _ask_date("Due date (YYYY-MM-DD):", after=issue_date)
    status = questionary.select(
        "Status:",
        choices=[status.value for status in InvoiceStatus],
        default=InvoiceStatus.DRAFT.value,
    ).ask()
    discount_rate = _ask_discount_rate()
    payment_info = (questionary.text("Payment info:").ask() or "").strip()

    line_items: list[LineItemDraft] = []
    console.print()
    while True:
        item = _ask_line_item()
        if item is not None:
            line_items.append(item)
            console.print(f"  [green]Item added: {item.description}[/green]")
        if line_items and not questionary.confirm("Add another item?", default=False).ask():
            break
        if not line_items:
            console.print("[red]An invoice needs at least one line item.[/red]")

    draft = InvoiceDraft(
        **fields,
        issue_date=issue_date,
        due_date=due_date,
        status=InvoiceStatus(status or InvoiceStatus.DRAFT.value),
        discount_rate=discount_rate,
        payment_info=payment_info,
        line_items=line_items,
    )
    try:
        invoice = invoice_service.create_invoice(draft)
    except ValueError as exc:
        console.print(f"[red]Invalid invoice: {exc}[/red]")
        return None
    except ConstraintViolation as exc:
        console.print(f"[red]Invoice rejected: {exc}[/red]")
        return None
    except StorageUnavailable as exc:
        console.print(f"[red]Could not save invoice: {exc}[/red]")
        return None

    console.print(f"[green]Invoice #{invoice.invoice_number} created.[/green]")
    show_invoice_detail(invoice)
    return invoice


def show_invoice_menu(invoice_service: InvoiceService) -> Invoice | None:
    invoice_number = _parse_whole_number(questionary.text("Invoice number:").ask())
    if invoice_number is None:
        console.print("[red]Invoice number must be a positive whole number.[/red]")
        return None
    try:
        invoice = invoice_service.get_invoice(invoice_number)
    except InvoiceNotFound as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        return None
    except StorageUnavailable as exc:
        console.print(f"[red]Could not load invoice: {exc}[/red]")
        return None
    show_invoice_detail(invoice)
    return invoice
