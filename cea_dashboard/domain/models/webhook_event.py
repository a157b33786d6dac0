"""
Webhook Event Models
Payloads delivered by the conversational-agent provider
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from enum import Enum


class WebhookEventType(str, Enum):
    """Known lifecycle events"""
    CALL_STARTED = "call_started"
    CALL_ENDED = "call_ended"
    TRANSCRIPTION_READY = "transcription_ready"


class WebhookOutcome(str, Enum):
    """What the webhook service did with an event"""
    APPLIED = "applied"
    NOOP = "noop"
    UNMATCHED = "unmatched"
    IGNORED = "ignored"
    ERROR = "error"


class WebhookEventData(BaseModel):
    """Event-specific data"""
    duration: Optional[float] = None  # seconds
    transcription: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: Optional[str] = None

    class Config:
        extra = "allow"

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_empty(cls, v):
        return {} if v is None else v


class WebhookPayload(BaseModel):
    """
    Provider payload.

    event_type is kept as a plain string so unknown events still parse
    and can be acknowledged.
    """
    event_type: str
    call_id: Optional[str] = None
    timestamp: Optional[str] = None
    data: WebhookEventData = Field(default_factory=WebhookEventData)

    class Config:
        extra = "allow"

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v):
        return {} if v is None else v

    @property
    def known_event(self) -> Optional[WebhookEventType]:
        try:
            return WebhookEventType(self.event_type)
        except ValueError:
            return None


class WebhookAck(BaseModel):
    """Acknowledgement returned to the provider"""
    success: bool = True
    event_type: Optional[str] = None
    outcome: WebhookOutcome

    class Config:
        use_enum_values = True
