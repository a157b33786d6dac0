"""
Webhooks API Endpoints
Handles incoming lifecycle webhooks from the conversational-agent provider (ElevenLabs)
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Request, HTTPException, Depends

from cea_dashboard.api.v1.dependencies import get_webhook_service
from cea_dashboard.domain.errors import WebhookAuthError
from cea_dashboard.domain.models.webhook_event import WebhookAck
from cea_dashboard.services.webhook_service import WebhookService
from cea_dashboard.utils.signature import SIGNATURE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


SUPPORTED_PROVIDERS = {"elevenlabs"}


def _check_provider(provider: str) -> None:
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(status_code=404, detail=f"Unknown webhook provider: {provider}")


@router.post("/{provider}", response_model=WebhookAck)
async def receive_webhook(
    provider: str,
    request: Request,
    webhook_service: WebhookService = Depends(get_webhook_service)
):
    """
    Handle agent lifecycle webhooks.

    Events:
    - call_started: the contact joined the conversation
    - call_ended: the conversation finished (data.status, data.duration in seconds)
    - transcription_ready: the transcript is available (data.transcription)

    Responds 200 for everything that was authenticated and parsed, including
    unknown events and calls that cannot be matched, so the provider does
    not retry deliveries that can never succeed.
    """
    _check_provider(provider)

    body = await request.body()

    try:
        webhook_service.verify(body, request.headers.get(SIGNATURE_HEADER))
    except WebhookAuthError as e:
        raise HTTPException(status_code=401, detail=e.message)

    try:
        payload = webhook_service.parse(body)
    except ValueError as e:
        logger.error(f"Unparseable {provider} webhook body: {e}")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return await webhook_service.dispatch(payload)


@router.get("/{provider}")
async def webhook_health(provider: str):
    """Health check for the webhook receiver"""
    _check_provider(provider)
    return {
        "status": "ok",
        "provider": provider,
        "timestamp": datetime.utcnow().isoformat(),
    }
