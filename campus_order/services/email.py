"""
Transactional email through the Brevo HTTP API

One EmailClient is built at startup and closed on shutdown. When no API key
is configured, messages are logged and skipped.
"""

from typing import Any, Dict, Optional
import httpx
import structlog

from campus_order.core.config import Settings

logger = structlog.get_logger(__name__)


def mask_email(email: Optional[str]) -> str:
    """j***@example.com"""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects a message"""


class EmailClient:
    """Async Brevo client"""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = settings.BREVO_API_KEY
        self.sender_email = settings.BREVO_SENDER_EMAIL
        self.sender_name = settings.BREVO_SENDER_NAME
        self.base_url = settings.BREVO_BASE_URL.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.sender_email)

    async def send(
        self,
        to_email: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        to_name: Optional[str] = None
    ) -> bool:
        """Send one message; returns False when email is not configured"""
        if not self.is_configured:
            logger.warning(f"Email not configured, skipping message to {mask_email(to_email)}")
            return False

        recipient: Dict[str, Any] = {"email": to_email}
        if to_name:
            recipient["name"] = to_name
        payload: Dict[str, Any] = {
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "to": [recipient],
            "subject": subject,
            "htmlContent": html,
        }
        if text:
            payload["textContent"] = text

        response = await self._client.post(
            f"{self.base_url}/smtp/email",
            json=payload,
            headers={"api-key": self.api_key, "accept": "application/json"},
        )
        if response.status_code >= 400:
            logger.error(f"Brevo rejected email to {mask_email(to_email)}: {response.status_code}")
            raise EmailDeliveryError(f"Email provider returned {response.status_code}")

        logger.info(f"Sent email '{subject}' to {mask_email(to_email)}")
        return True

    async def send_password_reset(self, to_email: str, name: Optional[str], reset_url: str) -> bool:
        greeting = f"Hi {name}," if name else "Hi,"
        html = (
            f"<p>{greeting}</p>"
            f"<p>We received a request to reset your password. "
            f"<a href=\"{reset_url}\">Choose a new password</a>.</p>"
            f"<p>If you didn't ask for this, you can ignore this email.</p>"
        )
        text = f"{greeting}\n\nReset your password: {reset_url}\n"
        return await self.send(to_email, "Reset your password", html, text, to_name=name)

    async def aclose(self):
        await self._client.aclose()
