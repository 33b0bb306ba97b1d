"""Tests for the Resend email client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from barix_billing.integrations.resend import ResendClient, ResendError


@pytest.fixture
def client():
    return ResendClient(
        api_key="re_key",
        base_url="https://api.resend.test/",
        from_email="Billing <billing@example.com>",
    )


class TestResendClient:
    """Tests for ResendClient.send_email."""

    @pytest.mark.asyncio
    async def test_send_email(self, client):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.content = b"content"
        mock_response.json.return_value = {"id": "email-1"}

        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.post = AsyncMock(return_value=mock_response)
            mock_get.return_value = mock_http

            result = await client.send_email(
                to="john@example.com", subject="Hi", html="<p>Hi</p>", text="Hi"
            )

            assert result == {"id": "email-1"}
            args, kwargs = mock_http.post.call_args
            assert args[0] == "/emails"
            assert kwargs["json"] == {
                "from": "Billing <billing@example.com>",
                "to": ["john@example.com"],
                "subject": "Hi",
                "html": "<p>Hi</p>",
                "text": "Hi",
            }
            assert kwargs["headers"]["Authorization"] == "Bearer re_key"

    @pytest.mark.asyncio
    async def test_error_response(self, client):
        mock_response = MagicMock()
        mock_response.status_code = 422
        mock_response.content = b"content"
        mock_response.json.return_value = {"message": "Invalid `to` field"}

        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.post = AsyncMock(return_value=mock_response)
            mock_get.return_value = mock_http

            with pytest.raises(ResendError) as exc_info:
                await client.send_email(to="bad", subject="Hi", html="<p>Hi</p>")

            assert exc_info.value.status_code == 422
            assert "Invalid `to` field" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, client):
        with patch.object(client, "_get_client") as mock_get:
            mock_http = AsyncMock()
            mock_http.post = AsyncMock(side_effect=httpx.ConnectError("refused"))
            mock_get.return_value = mock_http

            with pytest.raises(ResendError, match="Request failed"):
                await client.send_email(to="a@b.c", subject="Hi", html="<p>Hi</p>")
