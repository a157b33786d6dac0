"""
Email Provider Interface
Abstract base class for transactional email delivery
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel


class SentEmail(BaseModel):
    """Provider receipt for a delivered email"""
    message_id: str
    provider: str
    to: List[str] = []
    cc: List[str] = []
    simulated: bool = False


class EmailProvider(ABC):
    """Abstract base class for email providers"""

    @abstractmethod
    async def send(
        self,
        to: List[str],
        subject: str,
        html: str,
        cc: Optional[List[str]] = None,
        text: Optional[str] = None
    ) -> SentEmail:
        """
        Send an email.

        Raises:
            NotificationError: If the provider rejected or could not be reached
        """
        pass

    async def close(self) -> None:
        """Release resources"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass
