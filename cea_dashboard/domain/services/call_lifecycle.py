"""
Call Lifecycle State Machine

    scheduled --call_started--> in_progress
    scheduled | in_progress --call_ended(completed)--> completed
    scheduled | in_progress --call_ended(other)--> cancelled

completed and cancelled are terminal. Events that would move a call
backwards, or out of a terminal state, resolve to None (no-op) so that
duplicated and re-ordered webhook deliveries are harmless.
"""
import math
from typing import FrozenSet, Optional, Tuple, Union

from cea_dashboard.domain.models.scheduled_call import CallStatus
from cea_dashboard.domain.models.webhook_event import WebhookEventType


TERMINAL_STATUSES: FrozenSet[CallStatus] = frozenset({
    CallStatus.COMPLETED,
    CallStatus.CANCELLED,
})

NON_TERMINAL_STATUSES: FrozenSet[CallStatus] = frozenset({
    CallStatus.SCHEDULED,
    CallStatus.IN_PROGRESS,
})

# Statuses from which each event may transition
TRANSITION_SOURCES = {
    WebhookEventType.CALL_STARTED: frozenset({CallStatus.SCHEDULED}),
    WebhookEventType.CALL_ENDED: NON_TERMINAL_STATUSES,
}

# Transcriptions are attached to any call that was not cancelled
TRANSCRIPTION_ACCEPTING_STATUSES: FrozenSet[CallStatus] = frozenset({
    CallStatus.SCHEDULED,
    CallStatus.IN_PROGRESS,
    CallStatus.COMPLETED,
})


def as_status(value: Union[str, CallStatus]) -> CallStatus:
    return value if isinstance(value, CallStatus) else CallStatus(value)


def is_terminal(status: Union[str, CallStatus]) -> bool:
    return as_status(status) in TERMINAL_STATUSES


def ended_status(provider_status: Optional[str]) -> CallStatus:
    """Map the provider's call_ended status onto our terminal statuses."""
    if provider_status == "completed":
        return CallStatus.COMPLETED
    return CallStatus.CANCELLED


def next_status(
    current: Union[str, CallStatus],
    event: WebhookEventType,
    provider_status: Optional[str] = None
) -> Optional[CallStatus]:
    """
    Resolve the status an event moves a call to.

    Args:
        current: Current status of the call
        event: Lifecycle event
        provider_status: data.status of a call_ended event

    Returns:
        The new status, or None when the event must not change the status
    """
    current = as_status(current)
    sources = TRANSITION_SOURCES.get(event)
    if not sources or current not in sources:
        return None

    if event == WebhookEventType.CALL_STARTED:
        return CallStatus.IN_PROGRESS
    return ended_status(provider_status)


def accepts_transcription(status: Union[str, CallStatus]) -> bool:
    return as_status(status) in TRANSCRIPTION_ACCEPTING_STATUSES


def seconds_to_minutes(duration_seconds: Optional[float]) -> Optional[int]:
    """
    Convert a provider duration to whole minutes, rounding half up.

    None means the provider sent no duration and the column stays untouched.
    """
    if duration_seconds is None:
        return None
    if duration_seconds < 0:
        raise ValueError(f"Negative call duration: {duration_seconds}")
    return int(math.floor(duration_seconds / 60 + 0.5))


CORRELATION_SEPARATOR = ":"


def make_correlation_id(organization_id: str, token: str) -> str:
    """Correlation ids carry the organization so webhook lookups stay tenant-scoped."""
    return f"{organization_id}{CORRELATION_SEPARATOR}{token}"


def parse_correlation_id(correlation_id: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a correlation id into (organization_id, token); None if malformed."""
    if not correlation_id or CORRELATION_SEPARATOR not in correlation_id:
        return None
    organization_id, _, token = correlation_id.partition(CORRELATION_SEPARATOR)
    if not organization_id or not token:
        return None
    return organization_id, token
