"""
Scheduled Call Domain Models
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class CallStatus(str, Enum):
    """Lifecycle status of a scheduled call"""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ScheduleOutcome(str, Enum):
    """How far the scheduling operation got"""
    SCHEDULED = "scheduled"
    SCHEDULED_EMAIL_FAILED = "scheduled_email_failed"


class ScheduledCall(BaseModel):
    """Row of the scheduled_calls table"""
    id: str
    organization_id: str
    contact_id: str
    process_id: Optional[str] = None
    scheduled_date: datetime
    status: CallStatus = CallStatus.SCHEDULED
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None

    email_sent: bool = False
    email_id: Optional[str] = None

    correlation_id: Optional[str] = None
    agent_id: Optional[str] = None
    bot_connection_url: Optional[str] = None
    transcription_data: Optional[Dict[str, Any]] = None

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined from contacts on list endpoints
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    class Config:
        use_enum_values = True
        extra = "ignore"

    @property
    def transcription_id(self) -> Optional[str]:
        if not self.transcription_data:
            return None
        return self.transcription_data.get("transcription_id")


class ScheduleCallRequest(BaseModel):
    """Input of the scheduling operation"""
    contact_id: str
    scheduled_date: datetime
    process_type: str = ""
    industry: str = ""
    duration_minutes: int = Field(30, ge=1, le=240)
    objectives: List[str] = Field(default_factory=list)
    specific_questions: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    language: str = "es"
    contact_company: Optional[str] = None


class ScheduleCallResult(BaseModel):
    """Result of the scheduling operation"""
    outcome: ScheduleOutcome
    message: str
    call: ScheduledCall
    agent_link: Optional[str] = None
    email_sent: bool = False
    email_error: Optional[str] = None

    class Config:
        use_enum_values = True
