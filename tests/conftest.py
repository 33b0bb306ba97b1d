"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test")
os.environ.setdefault("CRON_SECRET", "cron-secret-test")
os.environ.setdefault("RESEND_API_KEY", "re_test")


@pytest.fixture
def invoice_row():
    """A sent, unpaid invoice with its client embedded."""
    return {
        "id": "66666666-6666-6666-6666-666666666666",
        "owner_id": "11111111-1111-1111-1111-111111111111",
        "invoice_number": "INV-20240601-1234",
        "issue_date": "2024-06-01",
        "due_date": "2024-06-10",
        "status": "sent",
        "paid_at": None,
        "document_type": "invoice",
        "notes": "Thanks for your business",
        "subtotal": 137.5,
        "tax_rate": 0.06,
        "tax_amount": 8.25,
        "total": 145.75,
        "enable_indirect_materials": True,
        "indirect_materials_default_type": "percent",
        "indirect_materials_percent": 10,
        "indirect_materials_amount": 0,
        "clients": {
            "id": "44444444-4444-4444-4444-444444444444",
            "name": "John Doe",
            "email": "john@example.com",
            "service_address_line1": "12 Oak Ave",
            "service_city": "Grand Rapids",
            "service_state": "MI",
            "service_postal_code": "49503",
        },
    }


@pytest.fixture
def line_item_rows():
    return [
        {
            "id": "l2",
            "name": "Filter",
            "description": None,
            "quantity": 1,
            "rate": 25,
            "line_total": 25,
            "position": 2,
        },
        {
            "id": "l1",
            "name": "Furnace tune-up",
            "description": "Annual service",
            "quantity": 2,
            "rate": 50,
            "line_total": 100,
            "position": 1,
        },
    ]


@pytest.fixture
def contractor_profile():
    return {
        "company_name": "Acme Heating",
        "business_email": "office@acme.test",
        "business_phone": "616-555-0100",
    }
