import questionary
from rich.console import Console

from numeris.cli.invoice_menu import create_invoice_menu, show_invoice_menu
from numeris.repositories.factory import get_invoice_repository
from numeris.services.invoice_service import InvoiceService

console = Console()


def _build_service() -> InvoiceService:
    return InvoiceService(get_invoice_repository())


def main_menu() -> None:
    invoice_service = _build_service()

    console.print()
    console.print("[bold]Numeris Invoices[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select(
            "Main Menu",
            choices=[
                "Create Invoice",
                "Show Invoice",
                "Exit",
            ],
        ).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        elif choice == "Create Invoice":
            create_invoice_menu(invoice_service)
        elif choice == "Show Invoice":
            show_invoice_menu(invoice_service)
