"""Tests for the Resend email client."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.core.config import Settings
from app.core.exceptions import EmailDeliveryError
from app.services.email_service import RESEND_API_URL, EmailService


@pytest.fixture
def mock_http() -> Generator[AsyncMock, None, None]:
    """Patch httpx.AsyncClient used by the email service and yield the inner client."""
    with patch("app.services.email_service.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client
        yield mock_client


def _service(api_key: str = "re_key") -> EmailService:
    return EmailService(api_key=api_key, from_address="shop@example.com", from_name="Shop", timeout=5)


class TestSendRecoveryEmail:
    @pytest.mark.asyncio
    async def test_success_returns_id(self, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(200, json={"id": "em_123"})

        email_id = await _service().send_recovery_email(
            to_email="jane@example.com",
            subject="You left something",
            html_content="<p>hi</p>",
            tags=[{"name": "type", "value": "cart_recovery"}],
        )

        assert email_id == "em_123"
        args, kwargs = mock_http.post.call_args
        assert args[0] == RESEND_API_URL
        assert kwargs["headers"]["Authorization"] == "Bearer re_key"
        payload = kwargs["json"]
        assert payload["from"] == "Shop <shop@example.com>"
        assert payload["to"] == ["jane@example.com"]
        assert payload["subject"] == "You left something"
        assert payload["tags"] == [{"name": "type", "value": "cart_recovery"}]

    @pytest.mark.asyncio
    async def test_non_2xx_raises_without_body_in_message(self, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(
            422, json={"message": "jane@example.com is invalid"}
        )

        with pytest.raises(EmailDeliveryError) as exc_info:
            await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>")

        assert str(exc_info.value) == "Email provider returned HTTP 422"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, mock_http: AsyncMock) -> None:
        mock_http.post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(EmailDeliveryError, match="timed out after 5s"):
            await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, mock_http: AsyncMock) -> None:
        mock_http.post.side_effect = httpx.ConnectError("refused")

        with pytest.raises(EmailDeliveryError, match="ConnectError"):
            await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>")

    @pytest.mark.asyncio
    async def test_unconfigured_never_calls_provider(self, mock_http: AsyncMock) -> None:
        service = _service(api_key="")

        with pytest.raises(EmailDeliveryError, match="not configured"):
            await service.send_recovery_email("jane@example.com", "s", "<p>x</p>")

        mock_http.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_accepted_without_json_returns_none(self, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(202, text="Accepted")

        assert await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>") is None

    @pytest.mark.asyncio
    async def test_non_object_json_returns_none(self, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(200, json=["em_1"])

        assert await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>") is None

    @pytest.mark.asyncio
    async def test_missing_id_returns_none(self, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(200, json={})

        assert await _service().send_recovery_email("jane@example.com", "s", "<p>x</p>") is None


def test_from_settings() -> None:
    settings = Settings(
        resend_api_key="re_abc",
        email_from_address="noreply@shop.com",
        email_from_name="Shop",
        email_send_timeout_seconds=7.5,
    )

    service = EmailService.from_settings(settings)

    assert service.is_configured
    assert service.from_address == "noreply@shop.com"
    assert service.timeout == 7.5
    assert not EmailService.from_settings(Settings(resend_api_key="")).is_configured


def test_settings_reject_inverted_window() -> None:
    with pytest.raises(ValueError, match="recovery_min_age_minutes"):
        Settings(recovery_min_age_minutes=600, recovery_max_age_minutes=60)
    with pytest.raises(ValueError, match="positive"):
        Settings(recovery_min_age_minutes=0)
    with pytest.raises(ValueError, match="recovery_concurrency"):
        Settings(recovery_concurrency=0)
