from numeris.repositories.base import InvoiceRepository


def get_invoice_repository() -> InvoiceRepository:
    from numeris.db import get_connection
    from numeris.repositories.sqlalchemy import SQLAlchemyInvoiceRepository

    return SQLAlchemyInvoiceRepository(get_connection())
