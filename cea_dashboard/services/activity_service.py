"""
Activity Service
Best-effort writes to the recent-activity feed.

Activity entries are decoration for the dashboard: a failed insert is
logged here and never reaches the operation that triggered it.
"""
import logging
from typing import Any, Dict, Optional
from supabase import Client

from cea_dashboard.domain.models.contact import Activity

logger = logging.getLogger(__name__)


class ActivityType:
    CONTACT_ADDED = "contact_added"
    CALL_SCHEDULED = "call_scheduled"
    CALL_SCHEDULED_EMAIL_FAILED = "call_scheduled_email_failed"
    PROCESS_CREATED = "process_created"


class ActivityRecorder:
    """Fire-and-forget activity logging"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record(
        self,
        organization_id: str,
        activity_type: str,
        title: str,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Insert an activity row.

        Returns:
            True if the row was written, False if the write failed
        """
        try:
            activity = Activity(
                organization_id=organization_id,
                user_id=user_id,
                activity_type=activity_type,
                title=title,
                description=description,
                metadata=metadata or {},
            )
            self.supabase.table("activities").insert(activity.model_dump()).execute()
            return True
        except Exception as e:
            logger.warning(f"Failed to record activity '{activity_type}' (non-fatal): {e}")
            return False
