from unittest.mock import MagicMock

import pytest
from sqlalchemy import Connection

from numeris.constants import DiscountRounding
from numeris.models.invoice import Invoice
from numeris.repositories.sqlalchemy import SQLAlchemyInvoiceRepository
from numeris.services.invoice_service import InvoiceService
from tests.conftest import _sample_draft


@pytest.fixture()
def invoice_repo(db_connection: Connection) -> SQLAlchemyInvoiceRepository:
    return SQLAlchemyInvoiceRepository(db_connection)


def _sample_invoice(**overrides) -> Invoice:
    """Price a sample draft without touching storage."""
    service = InvoiceService(MagicMock(), currency="USD", rounding=DiscountRounding.PROPORTIONAL)
    return service.price_invoice(_sample_draft(**overrides))


@pytest.fixture()
def sample_invoice():
    return _sample_invoice
