"""
Processes Endpoints
Mapped processes derived from interview transcriptions
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from supabase import Client

from cea_dashboard.api.v1.dependencies import get_supabase, require_organization, CurrentUser
from cea_dashboard.domain.models.process import Process, ProcessStatus
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

router = APIRouter(prefix="/processes", tags=["processes"])


class ProcessUpdate(BaseModel):
    """Editable process fields"""
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProcessStatus] = None


@router.get("/", response_model=List[Process])
async def list_processes(
    status: Optional[ProcessStatus] = Query(None, description="Filter by process status"),
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """
    Get the organization's processes, most recent first.

    Used by: processes page.
    """
    try:
        query = supabase.table("processes").select("*")
        query = apply_tenant_filter(query, current_user.organization_id)
        if status:
            query = query.eq("status", ProcessStatus(status).value)

        response = query.order("created_at", desc=True).execute()
        return [Process.model_validate(row) for row in response.data or []]

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch processes: {str(e)}"
        )


@router.get("/{process_id}", response_model=Process)
async def get_process(
    process_id: str,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    query = supabase.table("processes").select("*").eq("id", process_id)
    response = apply_tenant_filter(query, current_user.organization_id).execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Process not found")

    return Process.model_validate(response.data[0])


@router.patch("/{process_id}", response_model=Process)
async def update_process(
    process_id: str,
    process: ProcessUpdate,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """Update name, description or status of a process."""
    update_data = process.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "status" in update_data:
        update_data["status"] = ProcessStatus(update_data["status"]).value
    update_data["updated_at"] = datetime.utcnow().isoformat()

    query = supabase.table("processes").update(update_data).eq("id", process_id)
    response = apply_tenant_filter(query, current_user.organization_id).execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Process not found")

    return Process.model_validate(response.data[0])
