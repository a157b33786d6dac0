"""Domain models"""

# Scheduled calls
from .scheduled_call import (
    CallStatus,
    ScheduleOutcome,
    ScheduledCall,
    ScheduleCallRequest,
    ScheduleCallResult,
)

# Organizations, contacts and activities
from .contact import (
    Activity,
    Contact,
    ContactStatus,
    Organization,
)

# Processes and transcriptions
from .process import (
    Process,
    ProcessStatus,
    Transcription,
)

# Webhook events
from .webhook_event import (
    WebhookAck,
    WebhookEventType,
    WebhookOutcome,
    WebhookPayload,
)

__all__ = [
    # Scheduled calls
    "CallStatus",
    "ScheduleOutcome",
    "ScheduledCall",
    "ScheduleCallRequest",
    "ScheduleCallResult",
    # Organizations, contacts and activities
    "Activity",
    "Contact",
    "ContactStatus",
    "Organization",
    # Processes and transcriptions
    "Process",
    "ProcessStatus",
    "Transcription",
    # Webhook events
    "WebhookAck",
    "WebhookEventType",
    "WebhookOutcome",
    "WebhookPayload",
]
