"""
Organization Endpoints
Settings of the caller's organization
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from supabase import Client

from cea_dashboard.api.v1.dependencies import get_supabase, require_admin, require_organization, CurrentUser
from cea_dashboard.domain.models.contact import Organization
from cea_dashboard.domain.services.email_template_manager import is_valid_email
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


class NotificationCCUpdate(BaseModel):
    """Single CC address for scheduling emails; empty clears it"""
    cc_email: Optional[str] = None


class NotificationCCResponse(BaseModel):
    success: bool = True
    notification_cc_emails: List[str]


@router.get("/current", response_model=Organization)
async def get_current_organization(
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    query = supabase.table("organizations").select("*")
    response = apply_tenant_filter(query, current_user.organization_id, column="id").execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Organization not found")

    return Organization.model_validate(response.data[0])


@router.put("/current/notification-cc", response_model=NotificationCCResponse)
async def update_notification_cc(
    update: NotificationCCUpdate,
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase)
):
    """
    Set the address copied on every scheduling email.

    The operator address is always copied in addition to this one.
    """
    cc_email = (update.cc_email or "").strip()
    if cc_email and not is_valid_email(cc_email):
        raise HTTPException(status_code=400, detail=f"Invalid email address: {cc_email}")

    emails = [cc_email] if cc_email else []

    query = supabase.table("organizations").update({"notification_cc_emails": emails})
    response = apply_tenant_filter(query, current_user.organization_id, column="id").execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Organization not found")

    logger.info(f"Notification CC updated for organization {current_user.organization_id}: {emails}")
    return NotificationCCResponse(notification_cc_emails=response.data[0].get("notification_cc_emails") or [])
