"""
Webhook Service
Applies conversational-agent lifecycle events to scheduled calls.

Delivery is at-least-once with no ordering guarantee, so every handler is
idempotent: status changes are conditional updates that only match rows
still in a source status of the transition, and process derivation only
runs for calls without a linked process.
"""
import json
import logging
from datetime import datetime
from typing import Optional, Tuple, Union
from supabase import Client

from cea_dashboard.domain.errors import DerivationError, UnmatchedCallError, WebhookAuthError
from cea_dashboard.domain.models.process import Transcription
from cea_dashboard.domain.models.scheduled_call import ScheduledCall
from cea_dashboard.domain.models.webhook_event import (
    WebhookAck,
    WebhookEventType,
    WebhookOutcome,
    WebhookPayload,
)
from cea_dashboard.domain.services.call_lifecycle import (
    TRANSITION_SOURCES,
    accepts_transcription,
    next_status,
    parse_correlation_id,
    seconds_to_minutes,
)
from cea_dashboard.services.process_derivation_service import ProcessDerivationService
from cea_dashboard.utils.signature import verify_signature
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)


class WebhookService:
    """
    Webhook ingestion for the agent provider.

    Handlers:
    - call_started: scheduled -> in_progress
    - call_ended: scheduled | in_progress -> completed | cancelled (+ duration)
    - transcription_ready: store the transcription, attach it, derive the process once
    """

    def __init__(
        self,
        supabase: Client,
        derivation_service: ProcessDerivationService,
        webhook_secret: Optional[str] = None
    ):
        self.supabase = supabase
        self.derivation_service = derivation_service
        self.webhook_secret = webhook_secret

    # ------------------------------------------------------------------
    # Authentication and parsing
    # ------------------------------------------------------------------

    def verify(self, body: bytes, signature: Optional[str]) -> None:
        """
        Check the request signature when a secret is configured.

        Raises:
            WebhookAuthError: If the signature is missing or wrong
        """
        if not self.webhook_secret:
            return
        if not verify_signature(body, signature, self.webhook_secret):
            logger.warning("Rejected webhook with invalid signature")
            raise WebhookAuthError()

    @staticmethod
    def parse(body: Union[bytes, str]) -> WebhookPayload:
        """
        Parse a raw webhook body.

        Raises:
            ValueError: If the body is not a JSON object of the expected shape
        """
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("Webhook body must be a JSON object")
        return WebhookPayload.model_validate(data)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, payload: WebhookPayload) -> WebhookAck:
        """
        Route an event to its handler.

        Never raises: unknown events, unmatched calls and handler failures
        are logged and acknowledged so the provider does not retry forever.
        """
        logger.info(f"Webhook received: {payload.event_type} {payload.call_id}")

        event = payload.known_event
        if event is None:
            logger.warning(f"Unknown webhook event type: {payload.event_type}")
            return WebhookAck(event_type=payload.event_type, outcome=WebhookOutcome.IGNORED)

        handlers = {
            WebhookEventType.CALL_STARTED: self.handle_call_started,
            WebhookEventType.CALL_ENDED: self.handle_call_ended,
            WebhookEventType.TRANSCRIPTION_READY: self.handle_transcription_ready,
        }

        try:
            outcome = await handlers[event](payload)
        except UnmatchedCallError as e:
            logger.warning(f"Dropping {payload.event_type} event: {e.message}")
            outcome = WebhookOutcome.UNMATCHED
        except Exception as e:
            logger.error(f"Error handling {payload.event_type} for {payload.call_id}: {e}", exc_info=True)
            outcome = WebhookOutcome.ERROR

        return WebhookAck(event_type=payload.event_type, outcome=outcome)

    def find_call(self, call_id: Optional[str]) -> ScheduledCall:
        """
        Resolve the scheduled call for a provider correlation id.

        Raises:
            UnmatchedCallError: If the id is malformed or does not match exactly one call
        """
        parsed = parse_correlation_id(call_id)
        if parsed is None:
            raise UnmatchedCallError(call_id)
        organization_id, _ = parsed

        query = self.supabase.table("scheduled_calls").select("*").eq("correlation_id", call_id)
        response = apply_tenant_filter(query, organization_id).execute()
        rows = response.data or []
        if len(rows) != 1:
            if rows:
                raise UnmatchedCallError(call_id, f"Ambiguous call_id {call_id}: {len(rows)} scheduled calls match")
            raise UnmatchedCallError(call_id)
        return ScheduledCall.model_validate(rows[0])

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _transition(self, call: ScheduledCall, event: WebhookEventType, update: dict) -> bool:
        """Conditional status update; False if the row left the source statuses meanwhile."""
        sources = [status.value for status in TRANSITION_SOURCES[event]]
        update = {**update, "updated_at": datetime.utcnow().isoformat()}
        query = self.supabase.table("scheduled_calls").update(update).eq("id", call.id)
        query = apply_tenant_filter(query, call.organization_id).in_("status", sources)
        response = query.execute()
        return bool(response.data)

    async def handle_call_started(self, payload: WebhookPayload) -> WebhookOutcome:
        call = self.find_call(payload.call_id)

        new_status = next_status(call.status, WebhookEventType.CALL_STARTED)
        if new_status is None:
            logger.info(f"call_started ignored for call {call.id} in status {call.status}")
            return WebhookOutcome.NOOP

        if not self._transition(call, WebhookEventType.CALL_STARTED, {"status": new_status.value}):
            return WebhookOutcome.NOOP

        logger.info(f"Call started for scheduled call: {call.id}")
        return WebhookOutcome.APPLIED

    async def handle_call_ended(self, payload: WebhookPayload) -> WebhookOutcome:
        call = self.find_call(payload.call_id)

        new_status = next_status(call.status, WebhookEventType.CALL_ENDED, payload.data.status)
        if new_status is None:
            logger.info(f"call_ended ignored for call {call.id} in status {call.status}")
            return WebhookOutcome.NOOP

        update = {"status": new_status.value}
        duration_minutes = seconds_to_minutes(payload.data.duration)
        if duration_minutes is not None:
            update["duration_minutes"] = duration_minutes

        if not self._transition(call, WebhookEventType.CALL_ENDED, update):
            return WebhookOutcome.NOOP

        logger.info(f"Call ended for scheduled call: {call.id} Status: {new_status.value}")
        return WebhookOutcome.APPLIED

    async def handle_transcription_ready(self, payload: WebhookPayload) -> WebhookOutcome:
        call = self.find_call(payload.call_id)

        if not accepts_transcription(call.status):
            logger.info(f"transcription_ready ignored for call {call.id} in status {call.status}")
            return WebhookOutcome.NOOP

        if call.transcription_id:
            if call.process_id:
                logger.info(f"Duplicate transcription_ready for call {call.id}; already processed")
                return WebhookOutcome.NOOP
            # Earlier derivation failed; retry from the stored transcription
            transcription = self.derivation_service.get_transcription(call.organization_id, call.transcription_id)
            if transcription is None:
                logger.error(f"Call {call.id} references missing transcription {call.transcription_id}")
                return WebhookOutcome.ERROR
        else:
            transcription, call = self._record_transcription(call, payload)

        self._derive(call, transcription)
        return WebhookOutcome.APPLIED

    def _record_transcription(self, call: ScheduledCall, payload: WebhookPayload) -> Tuple[Transcription, ScheduledCall]:
        now = datetime.utcnow().isoformat()
        response = self.supabase.table("transcriptions").insert({
            "organization_id": call.organization_id,
            "call_id": payload.call_id,
            "content": payload.data.transcription or "",
            "metadata": payload.data.metadata or {},
            "processed": False,
            "created_at": now,
            "updated_at": now,
        }).execute()
        transcription = Transcription.model_validate(response.data[0])

        transcription_data = {
            "transcription_id": transcription.id,
            "content": payload.data.transcription,
            "processed_at": now,
        }
        query = self.supabase.table("scheduled_calls").update({
            "transcription_data": transcription_data,
            "updated_at": now,
        }).eq("id", call.id)
        query = apply_tenant_filter(query, call.organization_id).is_("transcription_data", "null")
        updated = query.execute()

        if not updated.data:
            logger.warning(f"Call {call.id} received a transcription concurrently; keeping the first one")
            self._discard_transcription(transcription)
            current = self.find_call(payload.call_id)
            winner = self.derivation_service.get_transcription(call.organization_id, current.transcription_id)
            if winner is None:
                raise DerivationError(f"Call {call.id} references missing transcription {current.transcription_id}")
            return winner, current

        logger.info(f"Transcription ready for call: {call.id} Transcription ID: {transcription.id}")
        return transcription, ScheduledCall.model_validate(updated.data[0])

    def _discard_transcription(self, transcription: Transcription) -> None:
        try:
            query = self.supabase.table("transcriptions").delete().eq("id", transcription.id)
            apply_tenant_filter(query, transcription.organization_id).execute()
        except Exception as e:
            logger.error(f"Could not remove unattached transcription {transcription.id}: {e}")

    def _derive(self, call: ScheduledCall, transcription: Transcription) -> None:
        """Derivation failures are logged; the transcription reference stays for a later retry."""
        try:
            self.derivation_service.derive_for_call(call, transcription)
        except DerivationError as e:
            logger.error(f"Process derivation failed for call {call.id}: {e.message}")
        except Exception as e:
            logger.error(f"Process derivation failed for call {call.id}: {e}", exc_info=True)
