"""Web test fixtures: TestClient with shared in-memory SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from tests.conftest import create_schema


def _make_test_engine():
    """Create a fresh in-memory SQLite engine with shared connection pool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    with engine.connect() as conn:
        create_schema(conn)

    return engine


def invoice_payload(**overrides) -> dict:
    """JSON body for POST /invoices. Shared helper for web route tests."""
    payload = {
        "customer_name": "Ada Obi",
        "customer_email": "ada@example.com",
        "customer_phone": "+2348012345678",
        "customer_address": "12 Marina Road, Lagos",
        "sender_name": "Numeris Studio",
        "sender_email": "billing@numeris.example",
        "sender_phone": "+2348098765432",
        "sender_address": "4 Admiralty Way, Lekki",
        "issue_date": "2026-03-01",
        "due_date": "2026-03-31",
        "status": "pending_payment",
        "discount_rate": "5.80",
        "payment_info": "Bank transfer to 0123456789",
        "line_items": [
            {"description": "Website audit", "quantity": 1, "unit_price": "100.00"},
            {"description": "Support hours", "quantity": 2, "unit_price": "58.99"},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def web_test_db(monkeypatch):
    """Set up in-memory DB and patch the web app to use it."""
    engine = _make_test_engine()

    import web.deps as deps_module

    monkeypatch.setattr(deps_module, "get_engine", lambda: engine)

    import web.app as app_module

    monkeypatch.setattr(app_module, "initialize_db", lambda: None)

    from numeris.constants import DiscountRounding
    from numeris.services import invoice_service as service_module

    monkeypatch.setattr(service_module.settings, "billing_currency", "USD")
    monkeypatch.setattr(service_module.settings, "discount_rounding", DiscountRounding.PROPORTIONAL)

    yield engine

    engine.dispose()


@pytest.fixture()
def test_engine(web_test_db):
    """Expose the test engine for helpers that need direct DB access."""
    return web_test_db


@pytest.fixture()
def client():
    from starlette.testclient import TestClient

    from web.app import app

    return TestClient(app)
