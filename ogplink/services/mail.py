import logging
from typing import Protocol

import httpx

from ogplink.errors import MailDeliveryError

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class MailSender(Protocol):
    async def send(self, to_email: str, subject: str, body: str) -> None: ...


class LoggingMailSender:
    """Development sender: writes the message to the log instead of mailing it."""

    def __init__(self) -> None:
        self.outbox: list[tuple[str, str, str]] = []

    async def send(self, to_email: str, subject: str, body: str) -> None:
        self.outbox.append((to_email, subject, body))
        logger.info("Mail to %s: %s\n%s", to_email, subject, body)


class SendGridMailSender:
    def __init__(self, client: httpx.AsyncClient, api_key: str, from_email: str):
        self.client = client
        self.api_key = api_key
        self.from_email = from_email

    async def send(self, to_email: str, subject: str, body: str) -> None:
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        try:
            response = await self.client.post(
                SENDGRID_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise MailDeliveryError(f"Could not reach mail provider: {exc}") from exc
        if response.status_code not in (200, 202):
            raise MailDeliveryError(
                f"Mail provider rejected message ({response.status_code})"
            )
