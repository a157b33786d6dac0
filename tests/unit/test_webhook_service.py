"""
Tests for Webhook Service
Idempotent lifecycle updates, transcription ingestion and process derivation
"""
import logging

import pytest

from cea_dashboard.domain.errors import WebhookAuthError
from cea_dashboard.domain.models.scheduled_call import ScheduledCall
from cea_dashboard.domain.models.process import Transcription
from cea_dashboard.domain.models.webhook_event import WebhookOutcome, WebhookPayload
from cea_dashboard.services.process_derivation_service import ProcessDerivationService
from cea_dashboard.services.webhook_service import WebhookService
from cea_dashboard.utils.signature import compute_signature


CORRELATION_ID = "org-1:call-1-token"


@pytest.fixture
def service(fake_supabase, call_factory):
    fake_supabase.seed("scheduled_calls", call_factory("call-1"))
    return WebhookService(fake_supabase, ProcessDerivationService(fake_supabase))


def event(event_type, call_id=CORRELATION_ID, **data):
    return WebhookPayload.model_validate({
        "event_type": event_type,
        "call_id": call_id,
        "timestamp": "2025-03-04T10:30:00Z",
        "data": data,
    })


def call_row(fake_supabase, call_id="call-1"):
    return next(r for r in fake_supabase.rows("scheduled_calls") if r["id"] == call_id)


class TestCallStarted:

    @pytest.mark.asyncio
    async def test_moves_to_in_progress(self, service, fake_supabase):
        ack = await service.dispatch(event("call_started"))

        assert ack.success is True
        assert ack.outcome == WebhookOutcome.APPLIED
        assert call_row(fake_supabase)["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_duplicate_is_noop(self, service, fake_supabase):
        await service.dispatch(event("call_started"))
        ack = await service.dispatch(event("call_started"))

        assert ack.outcome == WebhookOutcome.NOOP
        assert call_row(fake_supabase)["status"] == "in_progress"


class TestCallEnded:

    @pytest.mark.asyncio
    async def test_completed_with_duration(self, service, fake_supabase):
        await service.dispatch(event("call_started"))
        ack = await service.dispatch(event("call_ended", status="completed", duration=125))

        row = call_row(fake_supabase)
        assert ack.outcome == WebhookOutcome.APPLIED
        assert row["status"] == "completed"
        assert row["duration_minutes"] == 2

    @pytest.mark.asyncio
    async def test_half_minute_rounds_up(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="completed", duration=150))
        assert call_row(fake_supabase)["duration_minutes"] == 3

    @pytest.mark.asyncio
    async def test_missing_duration_leaves_column(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="completed"))

        row = call_row(fake_supabase)
        assert row["status"] == "completed"
        assert row["duration_minutes"] == 30

    @pytest.mark.asyncio
    async def test_non_completed_status_cancels(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="failed", duration=10))
        assert call_row(fake_supabase)["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_late_call_started_does_not_reopen(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="completed", duration=60))
        ack = await service.dispatch(event("call_started"))

        assert ack.outcome == WebhookOutcome.NOOP
        assert call_row(fake_supabase)["status"] == "completed"

    @pytest.mark.asyncio
    async def test_terminal_call_ignores_second_end(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="completed", duration=60))
        ack = await service.dispatch(event("call_ended", status="failed", duration=600))

        row = call_row(fake_supabase)
        assert ack.outcome == WebhookOutcome.NOOP
        assert row["status"] == "completed"
        assert row["duration_minutes"] == 1

    @pytest.mark.asyncio
    async def test_negative_duration_is_handler_error(self, service, fake_supabase, caplog):
        ack = await service.dispatch(event("call_ended", status="completed", duration=-1))

        assert ack.success is True
        assert ack.outcome == WebhookOutcome.ERROR
        assert call_row(fake_supabase)["status"] == "scheduled"


class TestTranscriptionReady:

    @pytest.mark.asyncio
    async def test_records_transcription_and_derives_process(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="completed", duration=600))
        ack = await service.dispatch(event("transcription_ready", transcription="Primero recibimos la lectura..."))

        assert ack.outcome == WebhookOutcome.APPLIED

        transcriptions = fake_supabase.rows("transcriptions")
        assert len(transcriptions) == 1
        assert transcriptions[0]["organization_id"] == "org-1"
        assert transcriptions[0]["content"] == "Primero recibimos la lectura..."
        assert transcriptions[0]["processed"] is False

        processes = fake_supabase.rows("processes")
        assert len(processes) == 1
        process = processes[0]
        assert process["name"].startswith("Proceso mapeado - ")
        assert process["status"] == "active"
        assert process["efficiency_score"] == 75
        assert process["created_by"] == "user-1"
        assert process["transcription_id"] == transcriptions[0]["id"]
        assert len(process["diagram_data"]["nodes"]) == 3
        assert process["diagram_data"]["edges"][0] == {"from": "1", "to": "2"}

        row = call_row(fake_supabase)
        assert row["process_id"] == process["id"]
        assert row["transcription_data"]["transcription_id"] == transcriptions[0]["id"]
        assert row["status"] == "completed"

        activity_types = [a["activity_type"] for a in fake_supabase.rows("activities")]
        assert activity_types == ["process_created"]

    @pytest.mark.asyncio
    async def test_duplicate_delivery_creates_one_process(self, service, fake_supabase):
        first = await service.dispatch(event("transcription_ready", transcription="texto"))
        second = await service.dispatch(event("transcription_ready", transcription="texto"))

        assert first.outcome == WebhookOutcome.APPLIED
        assert second.outcome == WebhookOutcome.NOOP
        assert len(fake_supabase.rows("transcriptions")) == 1
        assert len(fake_supabase.rows("processes")) == 1

    @pytest.mark.asyncio
    async def test_overlapping_delivery_discards_its_transcription(self, service, fake_supabase):
        payload = event("transcription_ready", transcription="texto")
        stale = service.find_call(CORRELATION_ID)

        await service.dispatch(payload)
        transcription, current = service._record_transcription(stale, payload)

        assert len(fake_supabase.rows("transcriptions")) == 1
        assert transcription.id == fake_supabase.rows("transcriptions")[0]["id"]
        assert current.process_id == fake_supabase.rows("processes")[0]["id"]
        assert len(fake_supabase.rows("processes")) == 1

    @pytest.mark.asyncio
    async def test_cancelled_call_ignores_transcription(self, service, fake_supabase):
        await service.dispatch(event("call_ended", status="failed"))
        ack = await service.dispatch(event("transcription_ready", transcription="texto"))

        assert ack.outcome == WebhookOutcome.NOOP
        assert fake_supabase.rows("transcriptions") == []
        assert fake_supabase.rows("processes") == []

    @pytest.mark.asyncio
    async def test_derivation_failure_keeps_transcription_for_retry(self, service, fake_supabase):
        fake_supabase.fail("processes", "insert", RuntimeError("insert failed"))

        ack = await service.dispatch(event("transcription_ready", transcription="texto"))

        assert ack.outcome == WebhookOutcome.APPLIED
        row = call_row(fake_supabase)
        assert row["process_id"] is None
        assert row["transcription_data"]["transcription_id"] == fake_supabase.rows("transcriptions")[0]["id"]

        # Redelivery retries derivation from the stored transcription
        fake_supabase.failures.clear()
        retry = await service.dispatch(event("transcription_ready", transcription="texto"))

        assert retry.outcome == WebhookOutcome.APPLIED
        assert len(fake_supabase.rows("transcriptions")) == 1
        assert len(fake_supabase.rows("processes")) == 1
        assert call_row(fake_supabase)["process_id"] == fake_supabase.rows("processes")[0]["id"]


class TestProcessDerivation:

    def test_lost_link_race_discards_process(self, fake_supabase, call_factory):
        fake_supabase.seed("scheduled_calls", call_factory("call-1", process_id="process-winner"))
        fake_supabase.seed("transcriptions", {"id": "tr-1", "organization_id": "org-1", "content": "texto"})
        derivation = ProcessDerivationService(fake_supabase)

        # Stale view of the call, read before the other derivation linked its process
        stale_call = ScheduledCall.model_validate(call_factory("call-1"))
        transcription = Transcription.model_validate(fake_supabase.rows("transcriptions")[0])

        assert derivation.derive_for_call(stale_call, transcription) is None
        assert fake_supabase.rows("processes") == []
        assert call_row(fake_supabase)["process_id"] == "process-winner"

    def test_transcription_from_other_organization_rejected(self, fake_supabase, call_factory):
        from cea_dashboard.domain.errors import DerivationError

        derivation = ProcessDerivationService(fake_supabase)
        call = ScheduledCall.model_validate(call_factory("call-1"))
        foreign = Transcription(id="tr-x", organization_id="org-2", content="texto")

        with pytest.raises(DerivationError):
            derivation.derive_for_call(call, foreign)
        assert fake_supabase.rows("processes") == []

    def test_retry_without_transcription_raises(self, fake_supabase, call_factory):
        from cea_dashboard.domain.errors import DerivationError

        derivation = ProcessDerivationService(fake_supabase)
        call = ScheduledCall.model_validate(call_factory("call-1"))

        with pytest.raises(DerivationError, match="no recorded transcription"):
            derivation.derive_from_recorded_transcription(call)


class TestUnmatchedEvents:

    @pytest.mark.asyncio
    async def test_unknown_call_is_acknowledged(self, service, fake_supabase, caplog):
        with caplog.at_level(logging.WARNING):
            ack = await service.dispatch(event("call_started", call_id="org-1:nope"))

        assert ack.success is True
        assert ack.outcome == WebhookOutcome.UNMATCHED
        assert len([r for r in caplog.records if r.levelno >= logging.WARNING]) == 1
        assert call_row(fake_supabase)["status"] == "scheduled"

    @pytest.mark.asyncio
    async def test_malformed_call_id_is_unmatched(self, service):
        ack = await service.dispatch(event("call_started", call_id="call-1"))
        assert ack.outcome == WebhookOutcome.UNMATCHED

    @pytest.mark.asyncio
    async def test_missing_call_id_is_unmatched(self, service):
        ack = await service.dispatch(event("call_started", call_id=None))
        assert ack.outcome == WebhookOutcome.UNMATCHED

    @pytest.mark.asyncio
    async def test_ambiguous_call_id_changes_nothing(self, service, fake_supabase, call_factory):
        fake_supabase.seed("scheduled_calls", call_factory("call-2", correlation_id=CORRELATION_ID))

        ack = await service.dispatch(event("call_started"))

        assert ack.outcome == WebhookOutcome.UNMATCHED
        assert call_row(fake_supabase, "call-1")["status"] == "scheduled"
        assert call_row(fake_supabase, "call-2")["status"] == "scheduled"

    @pytest.mark.asyncio
    async def test_other_organization_prefix_never_matches(self, service, fake_supabase):
        ack = await service.dispatch(event("call_started", call_id="org-2:call-1-token"))

        assert ack.outcome == WebhookOutcome.UNMATCHED
        assert call_row(fake_supabase)["status"] == "scheduled"

    @pytest.mark.asyncio
    async def test_unknown_event_type_ignored(self, service, caplog):
        with caplog.at_level(logging.WARNING):
            ack = await service.dispatch(event("agent_response"))

        assert ack.outcome == WebhookOutcome.IGNORED
        assert ack.event_type == "agent_response"
        assert "Unknown webhook event type" in caplog.text

    @pytest.mark.asyncio
    async def test_store_failure_is_acknowledged(self, service, fake_supabase):
        fake_supabase.fail("scheduled_calls", "select", RuntimeError("connection reset"))

        ack = await service.dispatch(event("call_started"))

        assert ack.success is True
        assert ack.outcome == WebhookOutcome.ERROR


class TestVerifyAndParse:

    def test_verify_without_secret_accepts_anything(self, fake_supabase):
        service = WebhookService(fake_supabase, ProcessDerivationService(fake_supabase))
        service.verify(b"{}", None)

    def test_verify_with_secret(self, fake_supabase):
        service = WebhookService(fake_supabase, ProcessDerivationService(fake_supabase), webhook_secret="s3cret")
        body = b'{"event_type":"call_started"}'

        service.verify(body, compute_signature(body, "s3cret"))
        with pytest.raises(WebhookAuthError):
            service.verify(body, "deadbeef")
        with pytest.raises(WebhookAuthError):
            service.verify(body, None)

    def test_parse_valid_body(self):
        payload = WebhookService.parse(b'{"event_type":"call_ended","call_id":"org-1:x","data":{"duration":61}}')
        assert payload.event_type == "call_ended"
        assert payload.data.duration == 61

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"call_id": "x"}'])
    def test_parse_rejects_malformed_bodies(self, body):
        with pytest.raises(ValueError):
            WebhookService.parse(body)
