"""
Resend Email Provider
Transactional email delivery through the Resend HTTP API
"""
import logging
from typing import List, Optional

import httpx

from cea_dashboard.domain.errors import NotificationError
from cea_dashboard.domain.interfaces.email_provider import EmailProvider, SentEmail

logger = logging.getLogger(__name__)


class ResendEmailProvider(EmailProvider):
    """
    Resend (https://resend.com) email delivery.

    Setup Required:
    - Set RESEND_API_KEY
    - Set EMAIL_FROM to an address on a verified domain
    """

    API_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        if not api_key:
            raise ValueError("RESEND_API_KEY not set")
        self._api_key = api_key
        self._from_email = from_email
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def name(self) -> str:
        return "resend"

    async def send(
        self,
        to: List[str],
        subject: str,
        html: str,
        cc: Optional[List[str]] = None,
        text: Optional[str] = None
    ) -> SentEmail:
        payload = {
            "from": self._from_email,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if cc:
            payload["cc"] = cc
        if text:
            payload["text"] = text

        try:
            response = await self._client.post(
                self.API_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed: {e}")
            raise NotificationError(f"Email provider unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            logger.error(f"Resend rejected email ({response.status_code}): {detail}")
            raise NotificationError(f"Email provider rejected the message: {detail}")

        message_id = response.json().get("id")
        if not message_id:
            raise NotificationError("Email provider returned no message id")

        logger.info(f"Email sent via Resend: {message_id}")
        return SentEmail(message_id=message_id, provider=self.name, to=to, cc=cc or [])

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
