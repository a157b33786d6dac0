"""
Contact and Organization Domain Models
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ContactStatus(str, Enum):
    """Contact status"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Contact(BaseModel):
    """Tenant-scoped person who can be interviewed"""
    id: str
    organization_id: str
    name: str
    email: str
    phone: Optional[str] = None
    status: ContactStatus = ContactStatus.ACTIVE
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        extra = "ignore"

    @property
    def is_active(self) -> bool:
        return self.status == ContactStatus.ACTIVE


class Organization(BaseModel):
    """Tenant boundary"""
    id: str
    name: str
    settings: Optional[Dict[str, Any]] = None
    notification_cc_emails: List[str] = Field(default_factory=list)

    class Config:
        extra = "ignore"


class Activity(BaseModel):
    """Entry of the recent-activity feed"""
    organization_id: str
    user_id: Optional[str] = None
    activity_type: str
    title: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
