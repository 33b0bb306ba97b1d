"""Tests for the Supabase REST client and the repositories built on it."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from barix_billing.integrations.supabase import (
    SupabaseConflictError,
    SupabaseError,
    SupabaseRestClient,
)
from barix_billing.reminders import DueWindow, ReminderConfig, ReminderType
from barix_billing.repositories import (
    RepositoryError,
    ReminderLogConflictError,
    SupabaseInvoiceRepository,
    SupabaseReminderConfigRepository,
    SupabaseReminderLogStore,
)


@pytest.fixture
def client():
    """Create a SupabaseRestClient instance."""
    return SupabaseRestClient(
        base_url="http://localhost:54321/",
        service_role_key="service-key",
        max_retries=2,
    )


def _response(status_code: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.content = b"content" if payload is not None else b""
    response.text = "content" if payload is not None else ""
    return response


class TestSupabaseRestClient:
    def test_init_strips_trailing_slash(self, client):
        assert client.base_url == "http://localhost:54321"

    def test_headers_use_service_role_key(self, client):
        headers = client._get_headers(prefer="return=representation")

        assert headers["apikey"] == "service-key"
        assert headers["Authorization"] == "Bearer service-key"
        assert headers["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_select(self, client):
        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(return_value=_response(200, [{"id": "a"}]))
            mock_get.return_value = mock_http

            rows = await client.select("invoices", [("select", "id")])

            assert rows == [{"id": "a"}]
            kwargs = mock_http.request.call_args.kwargs
            assert kwargs["method"] == "GET"
            assert kwargs["url"] == "/rest/v1/invoices"

    @pytest.mark.asyncio
    async def test_select_one_adds_limit(self, client):
        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(return_value=_response(200, []))
            mock_get.return_value = mock_http

            row = await client.select_one("invoices", {"id": "eq.1"})

            assert row is None
            assert mock_http.request.call_args.kwargs["params"] == [("id", "eq.1"), ("limit", 1)]

    @pytest.mark.asyncio
    async def test_conflict_raises_conflict_error(self, client):
        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(
                return_value=_response(409, {"message": "duplicate key value"})
            )
            mock_get.return_value = mock_http

            with pytest.raises(SupabaseConflictError) as exc_info:
                await client.insert("invoice_reminder_logs", [{"invoice_id": "1"}])

            assert exc_info.value.status_code == 409
            assert "duplicate key value" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_error_status_raises(self, client):
        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(return_value=_response(500, None))
            mock_get.return_value = mock_http

            with pytest.raises(SupabaseError) as exc_info:
                await client.select("invoices")

            assert exc_info.value.status_code == 500
            assert not isinstance(exc_info.value, SupabaseConflictError)

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self, client):
        with (
            patch.object(client, "_get_client") as mock_get,
            patch("barix_billing.integrations.supabase.asyncio.sleep", new=AsyncMock()),
        ):
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(
                side_effect=[httpx.ConnectError("refused"), _response(200, [{"id": "a"}])]
            )
            mock_get.return_value = mock_http

            rows = await client.select("invoices")

            assert rows == [{"id": "a"}]
            assert mock_http.request.call_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, client):
        with (
            patch.object(client, "_get_client") as mock_get,
            patch("barix_billing.integrations.supabase.asyncio.sleep", new=AsyncMock()),
        ):
            mock_http = AsyncMock()
            mock_http.request = AsyncMock(side_effect=httpx.ConnectError("refused"))
            mock_get.return_value = mock_http

            with pytest.raises(SupabaseError, match="Request failed"):
                await client.select("invoices")

            assert mock_http.request.call_count == 3


class TestSupabaseRepositories:
    @pytest.mark.asyncio
    async def test_log_store_exists_for(self):
        rest = AsyncMock()
        rest.select_one.return_value = {"id": "log-1"}
        store = SupabaseReminderLogStore(rest)

        assert await store.exists_for("inv-1", ReminderType.AFTER_DUE) is True
        params = rest.select_one.call_args.args[1]
        assert ("reminder_type", "eq.after_due") in params

    @pytest.mark.asyncio
    async def test_log_store_maps_conflict(self):
        rest = AsyncMock()
        rest.insert.side_effect = SupabaseConflictError("duplicate", status_code=409)
        store = SupabaseReminderLogStore(rest)

        with pytest.raises(ReminderLogConflictError):
            await store.insert("inv-1", ReminderType.BEFORE_DUE)

    @pytest.mark.asyncio
    async def test_log_store_maps_other_errors(self):
        rest = AsyncMock()
        rest.insert.side_effect = SupabaseError("boom", status_code=500)
        store = SupabaseReminderLogStore(rest)

        with pytest.raises(RepositoryError) as exc_info:
            await store.insert("inv-1", ReminderType.BEFORE_DUE)

        assert not isinstance(exc_info.value, ReminderLogConflictError)

    @pytest.mark.asyncio
    async def test_config_repository_applies_default(self):
        rest = AsyncMock()
        rest.select.return_value = [
            {"contractor_id": "o1", "reminders_enabled": False},
            {"contractor_id": "o2", "reminder_days_before_due": 5},
            {"contractor_id": None},
        ]
        default = ReminderConfig(days_before_due=3, days_after_due=2)
        repository = SupabaseReminderConfigRepository(rest, default)

        configs = await repository.load_reminder_configs()

        assert set(configs) == {"o1", "o2"}
        assert configs["o1"].enabled is False
        assert configs["o2"] == ReminderConfig(days_before_due=5, days_after_due=2)

    @pytest.mark.asyncio
    async def test_candidate_query_filters(self):
        rest = AsyncMock()
        rest.select.return_value = [
            {"id": "inv-1", "owner_id": "o1", "due_date": "2024-06-10", "status": "sent"}
        ]
        repository = SupabaseInvoiceRepository(rest)

        candidates = await repository.list_reminder_candidates(
            DueWindow(start=date(2024, 6, 6), end=date(2024, 6, 10))
        )

        params = rest.select.call_args.args[1]
        assert ("paid_at", "is.null") in params
        assert ("status", "in.(sent)") in params
        assert ("or", "(document_type.is.null,document_type.neq.estimate)") in params
        assert ("due_date", "gte.2024-06-06") in params
        assert ("due_date", "lte.2024-06-10") in params
        assert candidates[0].invoice_id == "inv-1"

    @pytest.mark.asyncio
    async def test_candidate_query_failure(self):
        rest = AsyncMock()
        rest.select.side_effect = SupabaseError("timeout")
        repository = SupabaseInvoiceRepository(rest)

        with pytest.raises(RepositoryError, match="Failed to load invoices"):
            await repository.list_reminder_candidates(
                DueWindow(start=date(2024, 6, 6), end=date(2024, 6, 10))
            )
