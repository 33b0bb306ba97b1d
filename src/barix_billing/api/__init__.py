"""HTTP API for Barix Billing."""

from barix_billing.api.main import create_app

__all__ = ["create_app"]
