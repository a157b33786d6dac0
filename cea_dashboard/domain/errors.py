"""
Domain Errors
Error taxonomy shared by the scheduling coordinator and the webhook handlers.
"""
from typing import List, Optional


class CoordinatorError(Exception):
    """Base class for call coordination errors."""
    default_message = "Call coordination failed"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CoordinatorError):
    """Raised when a required field is missing or invalid. No side effects have happened."""
    default_message = "Invalid scheduling request"

    def __init__(self, message: Optional[str] = None, fields: Optional[List[str]] = None):
        self.fields = fields or []
        super().__init__(message)


class AgentProvisioningError(CoordinatorError):
    """Raised when the remote agent could not be created, updated or fetched in time."""
    default_message = "The interview agent could not be provisioned. Please try again."
    retryable = True


class NotificationError(CoordinatorError):
    """Raised by email providers when the notification could not be delivered."""
    default_message = "Notification email could not be sent"
    retryable = True


class WebhookAuthError(CoordinatorError):
    """Raised when a webhook signature does not match the configured secret."""
    default_message = "Invalid webhook signature"


class UnmatchedCallError(CoordinatorError):
    """Raised when a webhook references a call that cannot be resolved to exactly one row."""
    default_message = "Scheduled call not found"

    def __init__(self, call_id: Optional[str], message: Optional[str] = None):
        self.call_id = call_id
        super().__init__(message or f"Scheduled call not found for call_id: {call_id}")


class DerivationError(CoordinatorError):
    """Raised when a process could not be derived from a transcription."""
    default_message = "Process derivation failed"
    retryable = True
