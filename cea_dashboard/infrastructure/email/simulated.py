"""
Simulated Email Provider
Logs instead of sending when RESEND_API_KEY is not configured outside production
"""
import logging
import time
import uuid
from typing import List, Optional

from cea_dashboard.domain.interfaces.email_provider import EmailProvider, SentEmail

logger = logging.getLogger(__name__)


class SimulatedEmailProvider(EmailProvider):
    """Records sent emails in memory"""

    def __init__(self):
        self.sent: List[SentEmail] = []

    @property
    def name(self) -> str:
        return "simulated"

    async def send(
        self,
        to: List[str],
        subject: str,
        html: str,
        cc: Optional[List[str]] = None,
        text: Optional[str] = None
    ) -> SentEmail:
        message_id = f"sim_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        logger.info(f"Email simulation (no RESEND_API_KEY): to={to} cc={cc} subject={subject!r} id={message_id}")
        sent = SentEmail(message_id=message_id, provider=self.name, to=to, cc=cc or [], simulated=True)
        self.sent.append(sent)
        return sent
