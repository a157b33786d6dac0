"""
Email Service
Renders and sends scheduling notifications through the configured email provider.
"""
import logging
from typing import List, Optional
from supabase import Client

from cea_dashboard.domain.errors import NotificationError
from cea_dashboard.domain.interfaces.email_provider import EmailProvider, SentEmail
from cea_dashboard.domain.models.contact import Contact
from cea_dashboard.domain.models.scheduled_call import ScheduledCall
from cea_dashboard.domain.services.email_template_manager import (
    EmailContentValidationError,
    EmailTemplateManager,
    get_email_template_manager,
    is_valid_email,
)
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)


class EmailService:
    """
    Notification email sending.

    Responsibilities:
    - Resolve the organization's configured CC addresses
    - Always CC the operator address
    - Render the scheduling template
    - Hand the message to the email provider

    Every failure surfaces as NotificationError so the caller can keep the
    scheduled call and report the partial success.
    """

    def __init__(
        self,
        supabase: Client,
        provider: EmailProvider,
        operator_cc_email: str,
        admin_name: str = "Equipo CEA",
        company_name: str = "Comisión Estatal de Agua",
        template_manager: Optional[EmailTemplateManager] = None
    ):
        self.supabase = supabase
        self.provider = provider
        self.operator_cc_email = operator_cc_email
        self.admin_name = admin_name
        self.company_name = company_name
        self.template_manager = template_manager or get_email_template_manager()

    def get_organization_cc_emails(self, organization_id: str) -> List[str]:
        """Configured notification CCs of the organization; malformed entries are skipped."""
        query = self.supabase.table("organizations").select("notification_cc_emails")
        response = apply_tenant_filter(query, organization_id, column="id").execute()
        if not response.data:
            return []

        cc_emails = []
        for email in response.data[0].get("notification_cc_emails") or []:
            if is_valid_email(email):
                cc_emails.append(email)
            else:
                logger.warning(f"Skipping malformed CC address for organization {organization_id}: {email!r}")
        return cc_emails

    def build_cc_list(self, organization_cc: List[str], to: str) -> List[str]:
        """Organization CCs plus the operator address, without duplicates or the recipient."""
        cc: List[str] = []
        for email in [*organization_cc, self.operator_cc_email]:
            if email and email.lower() != to.lower() and email.lower() not in (c.lower() for c in cc):
                cc.append(email)
        return cc

    async def send_call_scheduled_email(
        self,
        call: ScheduledCall,
        contact: Contact,
        process_type: Optional[str] = None
    ) -> SentEmail:
        """
        Notify the contact that an interview was scheduled.

        Raises:
            NotificationError: If the email could not be rendered or delivered
        """
        if not is_valid_email(contact.email):
            raise NotificationError(f"Invalid email address: {contact.email}")
        if not call.bot_connection_url:
            raise NotificationError("Scheduled call has no agent link to send")

        try:
            organization_cc = self.get_organization_cc_emails(call.organization_id)
        except Exception as e:
            logger.warning(f"Could not load organization CC addresses, sending with operator CC only: {e}")
            organization_cc = []
        cc = self.build_cc_list(organization_cc, contact.email)

        rendered = self.template_manager.render_call_scheduled(
            contact_name=contact.name,
            scheduled_date=call.scheduled_date,
            agent_link=call.bot_connection_url,
            process_type=process_type,
            duration_minutes=call.duration_minutes or 30,
            admin_name=self.admin_name,
            company_name=self.company_name,
        )
        try:
            self.template_manager.validate_content(rendered.subject, rendered.body)
        except EmailContentValidationError as e:
            raise NotificationError(e.message) from e

        sent = await self.provider.send(
            to=[contact.email],
            subject=rendered.subject,
            html=rendered.body_html or rendered.body,
            cc=cc,
            text=rendered.body,
        )
        logger.info(
            f"Scheduling email sent for call {call.id} via {sent.provider} "
            f"(cc: {', '.join(cc) if cc else 'none'})"
        )
        return sent
