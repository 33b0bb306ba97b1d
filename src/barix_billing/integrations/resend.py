"""Resend transactional email client."""

from typing import Any

import httpx
import structlog

from barix_billing.config import get_settings

logger = structlog.get_logger(__name__)


class ResendError(Exception):
    """Email delivery failed."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ResendClient:
    """Async client for the Resend ``/emails`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        from_email: str | None = None,
        timeout: float = 15.0,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.resend_api_url).rstrip("/")
        self._api_key = api_key or settings.resend_api_key.get_secret_value()
        self.from_email = from_email or settings.resend_from_email
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> dict[str, Any]:
        """Send one email and return the provider response (contains ``id``)."""
        client = await self._get_client()
        payload: dict[str, Any] = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            response = await client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.RequestError as e:
            raise ResendError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                details = response.json() if response.content else {}
            except ValueError:
                details = {"raw": response.text[:500]}
            message = (
                details.get("message")
                if isinstance(details, dict) and details.get("message")
                else f"Resend error: {response.status_code}"
            )
            raise ResendError(message, status_code=response.status_code, details=details)

        data = response.json() if response.content else {}
        logger.info("email_sent", email_id=data.get("id"), subject=subject)
        return data
