"""
BloomFrame Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    session_factory: async sessionmaker on a fresh SQLite file, tables created
    db_session:      one session from session_factory
    sample_payload:  a complete invoice payload (dict, camelCase keys)
    view_model:      a small InvoiceViewModel for template tests
    mock_pdf/mail:   stand-ins for the PDF converter and SMTP mailer
    test_client:     HTTPX AsyncClient on the app, database and outbound
                     services overridden
    auth_headers:    bearer token accepted by the test configuration
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any bloomframe import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["API_TOKENS"] = "user1:test-token"
os.environ["INVOICE_PDF_BIN"] = "wkhtmltopdf"
os.environ["SMTP_HOST"] = "smtp.test.invalid"
os.environ["SENDER_ADDRESS"] = "studio@test.invalid"
os.environ["LOG_LEVEL"] = "WARNING"

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from bloomframe.database import Base  # noqa: E402
from bloomframe.models import customer, email_log, order  # noqa: E402,F401
from bloomframe.services.invoice_builder import InvoiceRow, InvoiceViewModel  # noqa: E402

AUTH_TOKEN = "test-token"
FAKE_PDF = b"%PDF-1.4 test invoice"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    Async session factory backed by a throwaway SQLite file.

    A file (not :memory:) so every session sees the same tables.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bloomframe-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Payloads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_payload():
    """
    One framed picture with a mount, a paperweight and a delivery charge.

    Expected invoice rows:
        Item 1  Picture, 30x40, Oak frame, Museum glass   £100.00
                Mount - Ivory - Buttonhole                £20.00
        Item 2  Paperweight - Quantity 2                  £60.00
        Other   Delivery - Qty 1                          £12.00
    """
    return {
        "emailContext": {"source": "order-page"},
        "customer": {
            "id": "cus000000000001",
            "title": "Mrs",
            "firstName": "Jane",
            "surname": "Doe",
            "email": "jane@example.com",
        },
        "order": {
            "orderId": "ord000000000001",
            "orderNo": 1042,
            "occasionDate": "2024-06-01",
            "billingAddressLine1": "1 High Street",
            "billingTown": "Bath",
            "billingPostcode": "BA1 1AA",
        },
        "orderExtras": {
            "deliveryQty": 1,
            "deliveryPrice": "12.00",
            "notes": "  Leave with the neighbour  ",
        },
        "frames": [
            {
                "size": "30x40",
                "frameType": "Oak",
                "glassType": "Museum glass",
                "inclusions": "Buttonhole",
                "mountColour": "Ivory",
                "price": 100,
                "extras": {"mountPrice": "20", "glassPrice": 0},
            }
        ],
        "paperweight": {"quantity": 2, "price": "60"},
        "totals": {"subTotal": 120, "vatRate": 0.2, "vatTotal": 24, "grandTotal": 144},
    }


@pytest.fixture
def view_model():
    return InvoiceViewModel(
        address="Mrs Jane Doe\n1 High Street",
        occasion_date="01/06/2024",
        invoice_date="05/03/2024",
        invoice_no="1042",
        rows=[InvoiceRow("Item 1", "Picture, 30x40", "£100.00")],
        notes="",
        sub_total="£100.00",
        vat_total="£20.00",
        grand_total="£120.00",
        credits="£120.00",
        balance_due="£0.00",
    )


@pytest.fixture
def temp_views(tmp_path):
    """An empty views directory for template tests."""
    views = tmp_path / "views"
    views.mkdir()
    return views


# ══════════════════════════════════════════════════════════════════════════
# Outbound services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_pdf():
    pdf = MagicMock()
    pdf.render = AsyncMock(return_value=FAKE_PDF)
    return pdf


@pytest.fixture
def mock_mail():
    mail = MagicMock()
    mail.send = AsyncMock(return_value=None)
    return mail


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {AUTH_TOKEN}"}


@pytest_asyncio.fixture
async def test_client(session_factory, mock_pdf, mock_mail):
    """
    HTTPX AsyncClient talking to the app over ASGI.

    The record store, PDF converter and mailer are overridden; templates
    render from the packaged views directory.
    """
    from bloomframe.database import get_db_session, get_session_factory
    from bloomframe.main import app
    from bloomframe.routes.email import get_mail_service, get_pdf_service

    async def override_db_session():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_pdf_service] = lambda: mock_pdf
    app.dependency_overrides[get_mail_service] = lambda: mock_mail

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

