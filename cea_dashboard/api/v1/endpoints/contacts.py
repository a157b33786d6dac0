"""
Contacts Endpoints
CRUD operations for the people who can be interviewed
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, EmailStr
from supabase import Client

from cea_dashboard.api.v1.dependencies import get_supabase, require_organization, CurrentUser
from cea_dashboard.domain.models.contact import Contact, ContactStatus
from cea_dashboard.services.activity_service import ActivityRecorder, ActivityType
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


class ContactCreate(BaseModel):
    """Create contact request"""
    name: str
    email: EmailStr
    phone: Optional[str] = None
    status: ContactStatus = ContactStatus.ACTIVE
    notes: Optional[str] = None


class ContactUpdate(BaseModel):
    """Partial contact update"""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Optional[ContactStatus] = None
    notes: Optional[str] = None


@router.get("/", response_model=List[Contact])
async def list_contacts(
    status: Optional[ContactStatus] = Query(None, description="Filter by contact status"),
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """
    Get all contacts of the current organization.

    Used by: contacts page and the scheduling form.
    """
    try:
        query = supabase.table("contacts").select("*")
        query = apply_tenant_filter(query, current_user.organization_id)
        if status:
            query = query.eq("status", ContactStatus(status).value)

        response = query.order("name").execute()
        return [Contact.model_validate(row) for row in response.data or []]

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch contacts: {str(e)}"
        )


@router.post("/", response_model=Contact, status_code=201)
async def create_contact(
    contact: ContactCreate,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """
    Create a new contact.

    Records a "contact_added" activity; a failed activity write does not
    fail the request.
    """
    try:
        now = datetime.utcnow().isoformat()
        contact_data = {
            "organization_id": current_user.organization_id,
            "name": contact.name,
            "email": str(contact.email),
            "phone": contact.phone,
            "status": ContactStatus(contact.status).value,
            "notes": contact.notes,
            "created_by": current_user.id,
            "created_at": now,
            "updated_at": now,
        }

        response = supabase.table("contacts").insert(contact_data).execute()

        if not response.data:
            raise HTTPException(
                status_code=500,
                detail="Failed to create contact"
            )

        created = Contact.model_validate(response.data[0])

        ActivityRecorder(supabase).record(
            organization_id=current_user.organization_id,
            user_id=current_user.id,
            activity_type=ActivityType.CONTACT_ADDED,
            title=f"Contacto agregado: {created.name}",
            description=created.email,
            metadata={"contact_id": created.id},
        )

        logger.info(f"Contact created: {created.id}")
        return created

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create contact: {str(e)}"
        )


@router.get("/{contact_id}", response_model=Contact)
async def get_contact(
    contact_id: str,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """Get a single contact by ID."""
    query = supabase.table("contacts").select("*").eq("id", contact_id)
    response = apply_tenant_filter(query, current_user.organization_id).execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Contact not found")

    return Contact.model_validate(response.data[0])


@router.patch("/{contact_id}", response_model=Contact)
async def update_contact(
    contact_id: str,
    contact: ContactUpdate,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """Update the provided fields of a contact."""
    update_data = contact.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "email" in update_data:
        update_data["email"] = str(update_data["email"])
    if "status" in update_data:
        update_data["status"] = ContactStatus(update_data["status"]).value
    update_data["updated_at"] = datetime.utcnow().isoformat()

    try:
        query = supabase.table("contacts").update(update_data).eq("id", contact_id)
        response = apply_tenant_filter(query, current_user.organization_id).execute()
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update contact: {str(e)}"
        )

    if not response.data:
        raise HTTPException(status_code=404, detail="Contact not found")

    return Contact.model_validate(response.data[0])


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    """Delete a contact of the current organization."""
    query = supabase.table("contacts").delete().eq("id", contact_id)
    response = apply_tenant_filter(query, current_user.organization_id).execute()

    if not response.data:
        raise HTTPException(status_code=404, detail="Contact not found")

    return {"message": "Contact deleted", "id": contact_id}
