"""
Scheduled Calls Endpoints
Interview scheduling and scheduled call management
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel

from cea_dashboard.api.v1.dependencies import (
    CurrentUser,
    get_derivation_service,
    get_scheduling_service,
    require_organization,
)
from cea_dashboard.domain.errors import AgentProvisioningError, DerivationError, ValidationError
from cea_dashboard.domain.models.scheduled_call import (
    CallStatus,
    ScheduleCallRequest,
    ScheduleCallResult,
    ScheduledCall,
)
from cea_dashboard.services.process_derivation_service import ProcessDerivationService
from cea_dashboard.services.scheduling_service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduled-calls", tags=["scheduled-calls"])


class DeriveProcessResponse(BaseModel):
    """Result of a derivation retry"""
    scheduled_call_id: str
    process_id: Optional[str] = None
    created: bool


@router.post("/", response_model=ScheduleCallResult, status_code=201)
async def schedule_call(
    request: ScheduleCallRequest,
    current_user: CurrentUser = Depends(require_organization),
    scheduling_service: SchedulingService = Depends(get_scheduling_service)
):
    """
    Schedule an interview call with a contact.

    Provisions a dedicated interview agent, stores the call and emails the
    agent link to the contact. An email failure does not undo the call:
    the response reports outcome "scheduled_email_failed" instead.
    """
    try:
        return await scheduling_service.schedule_call(
            organization_id=current_user.organization_id,
            request=request,
            created_by=current_user.id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except AgentProvisioningError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except Exception as e:
        logger.error(f"Error scheduling call: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to schedule call: {str(e)}"
        )


@router.get("/", response_model=List[ScheduledCall])
async def list_scheduled_calls(
    status: Optional[CallStatus] = Query(None, description="Filter by call status"),
    current_user: CurrentUser = Depends(require_organization),
    scheduling_service: SchedulingService = Depends(get_scheduling_service)
):
    """
    List the organization's scheduled calls, newest scheduled date first.

    Each call carries the contact's name, email and phone.
    """
    try:
        return scheduling_service.list_calls(current_user.organization_id, status)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch scheduled calls: {str(e)}"
        )


@router.get("/{call_id}", response_model=ScheduledCall)
async def get_scheduled_call(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    scheduling_service: SchedulingService = Depends(get_scheduling_service)
):
    call = scheduling_service.get_call(current_user.organization_id, call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Scheduled call not found")
    return call


@router.delete("/{call_id}")
async def delete_scheduled_call(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    scheduling_service: SchedulingService = Depends(get_scheduling_service)
):
    """Administrative delete of a scheduled call."""
    if not scheduling_service.delete_call(current_user.organization_id, call_id):
        raise HTTPException(status_code=404, detail="Scheduled call not found")
    return {"message": "Scheduled call deleted", "id": call_id}


@router.post("/{call_id}/derive-process", response_model=DeriveProcessResponse)
async def derive_process(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
    derivation_service: ProcessDerivationService = Depends(get_derivation_service)
):
    """
    Retry process derivation from the call's recorded transcription.

    Does nothing when the call already has a process.
    """
    call = scheduling_service.get_call(current_user.organization_id, call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Scheduled call not found")

    if call.process_id:
        return DeriveProcessResponse(scheduled_call_id=call.id, process_id=call.process_id, created=False)

    if not call.transcription_id:
        raise HTTPException(status_code=409, detail="Scheduled call has no transcription yet")

    try:
        process = derivation_service.derive_from_recorded_transcription(call)
    except DerivationError as e:
        logger.error(f"Derivation retry failed for call {call.id}: {e.message}")
        raise HTTPException(status_code=500, detail=e.message)

    if process is None:
        # Linked concurrently
        current = scheduling_service.get_call(current_user.organization_id, call_id)
        return DeriveProcessResponse(
            scheduled_call_id=call.id,
            process_id=current.process_id if current else None,
            created=False,
        )
    return DeriveProcessResponse(scheduled_call_id=call.id, process_id=process.id, created=True)
