"""Recovery token issuing and link building."""

from dataclasses import dataclass
from urllib.parse import urlencode

from app.core.security import generate_recovery_token


@dataclass(frozen=True)
class RecoveryLink:
    token: str
    url: str


def build_recovery_url(base_url: str, token: str) -> str:
    """``<base_url>/recovery?action=track&token=<token>``"""
    query = urlencode({"action": "track", "token": token})
    return f"{base_url.rstrip('/')}/recovery?{query}"


def issue_recovery_link(base_url: str, existing_token: str | None = None) -> RecoveryLink:
    """Issue a fresh token, or reuse one already stored on the cart."""
    token = existing_token or generate_recovery_token()
    return RecoveryLink(token=token, url=build_recovery_url(base_url, token))
