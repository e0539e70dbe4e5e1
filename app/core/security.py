"""Security utilities for recovery tokens and trigger authentication."""

import hmac
import secrets

RECOVERY_TOKEN_BYTES = 16  # 128 bits of entropy


def generate_recovery_token() -> str:
    """Generate an unguessable, URL-safe recovery token."""
    return secrets.token_urlsafe(RECOVERY_TOKEN_BYTES)


def verify_bearer_token(authorization: str | None, secret: str) -> bool:
    """Check an ``Authorization: Bearer <secret>`` header in constant time."""
    if not authorization:
        return False
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials:
        return False
    return hmac.compare_digest(credentials.strip().encode(), secret.encode())


def mask_email(email: str | None) -> str | None:
    """Mask an email address for reports: ``jane@example.com`` -> ``j***@example.com``."""
    if not email:
        return None
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
