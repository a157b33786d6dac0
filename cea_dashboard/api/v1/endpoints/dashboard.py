"""
Dashboard Endpoints
Provides aggregated metrics for the dashboard overview
"""
import math

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from supabase import Client

from cea_dashboard.api.v1.dependencies import get_supabase, require_organization, CurrentUser
from cea_dashboard.domain.models.contact import ContactStatus
from cea_dashboard.domain.services.call_lifecycle import NON_TERMINAL_STATUSES
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class DashboardStats(BaseModel):
    """Dashboard stats response"""
    total_processes: int = Field(..., alias="totalProcesses")
    scheduled_calls: int = Field(..., alias="scheduledCalls")
    total_contacts: int = Field(..., alias="totalContacts")
    avg_efficiency: int = Field(..., alias="avgEfficiency")

    class Config:
        populate_by_name = True


def average_efficiency(scores: list) -> int:
    """Mean efficiency score rounded half up; 0 without processes."""
    if not scores:
        return 0
    mean = sum(score or 0 for score in scores) / len(scores)
    return int(math.floor(mean + 0.5))


@router.get("/stats", response_model=DashboardStats, response_model_by_alias=True)
async def get_dashboard_stats(
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """
    Get aggregated dashboard metrics.

    Used by: dashboard main page overview widgets.

    Returns:
        - Total processes
        - Open scheduled calls (scheduled or in progress)
        - Active contacts
        - Average process efficiency
    """
    try:
        processes_query = supabase.table("processes").select("efficiency_score")
        processes_query = apply_tenant_filter(processes_query, current_user.organization_id)
        processes = processes_query.execute().data or []

        open_statuses = sorted(status.value for status in NON_TERMINAL_STATUSES)
        calls_query = supabase.table("scheduled_calls").select("id").in_("status", open_statuses)
        calls_query = apply_tenant_filter(calls_query, current_user.organization_id)
        open_calls = calls_query.execute().data or []

        contacts_query = supabase.table("contacts").select("id").eq("status", ContactStatus.ACTIVE.value)
        contacts_query = apply_tenant_filter(contacts_query, current_user.organization_id)
        active_contacts = contacts_query.execute().data or []

        return DashboardStats(
            total_processes=len(processes),
            scheduled_calls=len(open_calls),
            total_contacts=len(active_contacts),
            avg_efficiency=average_efficiency([p.get("efficiency_score") for p in processes]),
        )

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch dashboard stats: {str(e)}"
        )
