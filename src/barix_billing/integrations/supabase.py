"""Supabase PostgREST client authenticated with the service-role key."""

import asyncio
from typing import Any

import httpx
import structlog

from barix_billing.config import get_settings

logger = structlog.get_logger(__name__)

QueryParams = dict[str, Any] | list[tuple[str, Any]]


class SupabaseError(Exception):
    """Base exception for Supabase REST errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class SupabaseConflictError(SupabaseError):
    """Unique constraint violation (HTTP 409)."""

    pass


class SupabaseRestClient:
    """Async client for the PostgREST API exposed by Supabase."""

    def __init__(
        self,
        base_url: str | None = None,
        service_role_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self._key = service_role_key or settings.supabase_service_role_key.get_secret_value()
        self._timeout = timeout or settings.supabase_timeout
        self._max_retries = (
            settings.supabase_max_retries if max_retries is None else max_retries
        )
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SupabaseRestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: QueryParams | None = None,
        json: Any = None,
        prefer: str | None = None,
        retry_count: int = 0,
    ) -> Any:
        """Make a request against ``/rest/v1/<table>`` with retry on transport errors."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=f"/rest/v1/{table}",
                params=params,
                json=json,
                headers=self._get_headers(prefer),
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                logger.warning(
                    "supabase_request_retry",
                    table=table,
                    attempt=retry_count + 1,
                    error=str(e),
                )
                await asyncio.sleep(2**retry_count)
                return await self._request(
                    method, table, params, json, prefer, retry_count + 1
                )
            raise SupabaseError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            message = (
                error_detail.get("message")
                if isinstance(error_detail, dict) and error_detail.get("message")
                else f"Supabase error: {response.status_code}"
            )
            error_cls = (
                SupabaseConflictError if response.status_code == 409 else SupabaseError
            )
            raise error_cls(
                message, status_code=response.status_code, details=error_detail
            )

        return response.json() if response.content else []

    @staticmethod
    def _extract_rows(result: Any) -> list[dict[str, Any]]:
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            return [result]
        return []

    async def select(
        self, table: str, params: QueryParams | None = None
    ) -> list[dict[str, Any]]:
        """Select rows using PostgREST filter params."""
        result = await self._request("GET", table, params=params)
        return self._extract_rows(result)

    async def select_one(
        self, table: str, params: QueryParams | None = None
    ) -> dict[str, Any] | None:
        """Select at most one row."""
        if isinstance(params, dict):
            params = list(params.items())
        rows = await self.select(table, params=[*(params or []), ("limit", 1)])
        return rows[0] if rows else None

    async def insert(
        self, table: str, rows: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Insert rows and return them as stored."""
        result = await self._request(
            "POST", table, json=rows, prefer="return=representation"
        )
        return self._extract_rows(result)
