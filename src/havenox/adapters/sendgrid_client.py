"""SendGrid mail API client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from havenox.domain.errors import NotificationError

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class MailClient(Protocol):
    """Interface for outbound email delivery."""

    async def send_email(self, to: str, subject: str, html: str) -> None:
        """Deliver an HTML email to a single recipient."""


def is_sendgrid_configured(api_key: str | None, sender: str | None) -> bool:
    """Return true when the key looks like a SendGrid key and a sender is set."""
    return bool(api_key and api_key.startswith("SG.") and sender)


@dataclass
class HttpxSendGridClient(MailClient):
    """SendGrid client implemented with httpx."""

    api_key: str
    sender: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, sender: str) -> "HttpxSendGridClient":
        """Create a SendGrid client with a managed httpx session."""
        return cls(api_key=api_key, sender=sender, http_client=httpx.AsyncClient())

    async def send_email(self, to: str, subject: str, html: str) -> None:
        """Send a message through the v3 mail/send API."""
        payload: dict[str, object] = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        try:
            response = await self.http_client.post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=10,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationError(f"SendGrid delivery failed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
