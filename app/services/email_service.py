"""Email delivery service using Resend API."""

import logging
from typing import Any

import httpx

from app.core.config import Settings
from app.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailService:
    """Sends transactional emails via the Resend API."""

    def __init__(
        self,
        api_key: str,
        from_address: str,
        from_name: str,
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            timeout=settings.email_send_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send_recovery_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        tags: list[dict[str, str]] | None = None,
    ) -> str | None:
        """Send a cart recovery email.

        Returns the Resend email ID. Raises EmailDeliveryError on any failure,
        including a timeout; the message never includes the recipient address.
        """
        payload: dict[str, Any] = {
            "from": f"{self.from_name} <{self.from_address}>",
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if tags:
            payload["tags"] = tags

        if not self.is_configured:
            raise EmailDeliveryError("Email provider not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            raise EmailDeliveryError(f"Email provider timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Email provider request failed: {type(exc).__name__}") from exc

        if not response.is_success:
            # Provider bodies may echo the recipient address; log the status only
            logger.error("Resend rejected recovery email: status=%s", response.status_code)
            raise EmailDeliveryError(f"Email provider returned HTTP {response.status_code}")

        # Accepted; a missing or unreadable id does not make the send a failure
        try:
            body = response.json()
        except ValueError:
            logger.warning("Resend accepted recovery email without a JSON body")
            return None
        email_id = body.get("id") if isinstance(body, dict) else None
        return str(email_id) if email_id else None
