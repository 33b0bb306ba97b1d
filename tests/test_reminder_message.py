"""Tests for reminder email composition."""

from barix_billing.reminders import ReminderType
from barix_billing.reminders.message import (
    compose_reminder_message,
    format_currency,
    format_long_date,
)

APP_URL = "https://billing.example.com/"


def test_format_helpers():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(None) == "$0.00"
    assert format_long_date("2024-06-10") == "June 10, 2024"
    assert format_long_date(None) == "N/A"


class TestComposeReminderMessage:
    def test_before_due_subject_and_links(self, invoice_row, line_item_rows, contractor_profile):
        message = compose_reminder_message(
            ReminderType.BEFORE_DUE, invoice_row, line_item_rows, contractor_profile, APP_URL
        )
        invoice_id = invoice_row["id"]

        assert message.subject == "Reminder: Invoice INV-20240601-1234 from Acme Heating"
        assert "is due on June 10, 2024." in message.html
        assert f"https://billing.example.com/pay/{invoice_id}" in message.html
        assert f"https://billing.example.com/invoice/{invoice_id}" in message.html
        assert f"Pay online: https://billing.example.com/pay/{invoice_id}" in message.text

    def test_after_due_subject(self, invoice_row, line_item_rows, contractor_profile):
        message = compose_reminder_message(
            ReminderType.AFTER_DUE, invoice_row, line_item_rows, contractor_profile, APP_URL
        )

        assert message.subject == "Past Due Reminder: Invoice INV-20240601-1234 from Acme Heating"
        assert "was due on June 10, 2024." in message.html
        assert "past due" in message.html

    def test_totals_breakdown(self, invoice_row, line_item_rows, contractor_profile):
        message = compose_reminder_message(
            ReminderType.BEFORE_DUE, invoice_row, line_item_rows, contractor_profile, APP_URL
        )

        assert "Line items:</td><td>$125.00" in message.html
        assert "Indirect materials (10.0%):</td><td>$12.50" in message.html
        assert "Subtotal:</td><td>$137.50" in message.html
        assert "Tax (6%):</td><td>$8.25" in message.html
        assert "Total Due:</td><td>$145.75" in message.html
        assert "Pay $145.75 Now" in message.html
        assert "Service Address:</td><td>12 Oak Ave, Grand Rapids, MI, 49503" in message.html

    def test_default_business_name(self, invoice_row, line_item_rows):
        message = compose_reminder_message(
            ReminderType.BEFORE_DUE, invoice_row, line_item_rows, None, APP_URL
        )

        assert message.subject.endswith("from Your Service Provider")

    def test_escapes_user_content(self, invoice_row, line_item_rows, contractor_profile):
        invoice_row["notes"] = "<script>alert(1)</script>"
        invoice_row["clients"]["name"] = "Tom & Jerry"
        message = compose_reminder_message(
            ReminderType.BEFORE_DUE, invoice_row, line_item_rows, contractor_profile, APP_URL
        )

        assert "<script>" not in message.html
        assert "&lt;script&gt;" in message.html
        assert "Hi Tom &amp; Jerry," in message.html

    def test_line_items_rendered_and_escaped(self, invoice_row, line_item_rows, contractor_profile):
        line_item_rows[0]["name"] = "<b>Pipe</b>"
        message = compose_reminder_message(
            ReminderType.BEFORE_DUE, invoice_row, line_item_rows, contractor_profile, APP_URL
        )

        assert "<strong>&lt;b&gt;Pipe&lt;/b&gt;</strong>" in message.html
        assert "<br><span>Annual service</span>" in message.html
        assert "<p>Email: office@acme.test</p>" in message.html
        assert "<p>Phone: 616-555-0100</p>" in message.html
