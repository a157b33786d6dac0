"""
Scheduling Service
Creates scheduled interview calls: contact validation, remote agent
provisioning, persistence and contact notification.

Flow:
1. Validate required fields and the contact (same organization, active, valid email)
2. Provision the interview agent (fatal on failure or timeout)
3. Persist the scheduled call with the agent link and a correlation id
4. Send the notification email (non-fatal on failure)
5. Mark the email as sent and record an activity (best-effort)
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple
from supabase import Client

from cea_dashboard.domain.errors import AgentProvisioningError, NotificationError, ValidationError
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider
from cea_dashboard.domain.models.agent_config import InterviewContext
from cea_dashboard.domain.models.contact import Contact
from cea_dashboard.domain.models.scheduled_call import (
    CallStatus,
    ScheduleCallRequest,
    ScheduleCallResult,
    ScheduledCall,
    ScheduleOutcome,
)
from cea_dashboard.domain.services.call_lifecycle import make_correlation_id
from cea_dashboard.domain.services.email_template_manager import is_valid_email
from cea_dashboard.domain.services.prompt_manager import AgentConfigBuilder
from cea_dashboard.services.activity_service import ActivityRecorder, ActivityType
from cea_dashboard.services.email_service import EmailService
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Owns the creation side of the scheduled call lifecycle.

    All collaborators are injected; the service keeps no state between
    requests.
    """

    def __init__(
        self,
        supabase: Client,
        agent_provider: AgentProvider,
        email_service: EmailService,
        config_builder: AgentConfigBuilder,
        activity_recorder: Optional[ActivityRecorder] = None,
        provisioning_timeout: float = 20.0
    ):
        self.supabase = supabase
        self.agent_provider = agent_provider
        self.email_service = email_service
        self.config_builder = config_builder
        self.activity_recorder = activity_recorder or ActivityRecorder(supabase)
        self.provisioning_timeout = provisioning_timeout

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_request(request: ScheduleCallRequest) -> None:
        """Required-field guard; raises before any side effect."""
        missing = []
        if not request.contact_id or not request.contact_id.strip():
            missing.append("contact_id")
        if not request.process_type or not request.process_type.strip():
            missing.append("process_type")
        if not request.industry or not request.industry.strip():
            missing.append("industry")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    def get_active_contact(self, organization_id: str, contact_id: str) -> Contact:
        """
        Load a contact of the organization that can be interviewed.

        Raises:
            ValidationError: If the contact is unknown in this organization,
                inactive, or has a malformed email
        """
        query = self.supabase.table("contacts").select("*").eq("id", contact_id)
        response = apply_tenant_filter(query, organization_id).execute()

        if not response.data:
            raise ValidationError(f"Contact not found: {contact_id}", fields=["contact_id"])

        contact = Contact.model_validate(response.data[0])
        if not contact.is_active:
            raise ValidationError(f"Contact {contact.name} is inactive", fields=["contact_id"])
        if not is_valid_email(contact.email):
            raise ValidationError(f"Contact has an invalid email address: {contact.email}", fields=["email"])
        return contact

    # ------------------------------------------------------------------
    # Agent provisioning
    # ------------------------------------------------------------------

    async def provision_agent(self, context: InterviewContext) -> Tuple[str, str]:
        """
        Create the interview agent and fetch its link under one timeout.

        Returns:
            Tuple of (agent_id, agent_link)

        Raises:
            AgentProvisioningError: On provider failure or timeout
        """
        config = self.config_builder.build(context)

        async def _provision() -> Tuple[str, str]:
            agent_id = await self.agent_provider.create_agent(config.to_payload())
            agent_link = await self.agent_provider.get_agent_link(agent_id)
            return agent_id, agent_link

        try:
            return await asyncio.wait_for(_provision(), timeout=self.provisioning_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Agent provisioning timed out after {self.provisioning_timeout}s")
            raise AgentProvisioningError(
                f"Agent provisioning timed out after {self.provisioning_timeout:g} seconds"
            ) from e
        except AgentProvisioningError:
            raise
        except Exception as e:
            logger.error(f"Agent provisioning failed: {e}", exc_info=True)
            raise AgentProvisioningError(f"Agent provisioning failed: {e}") from e

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def schedule_call(
        self,
        organization_id: str,
        request: ScheduleCallRequest,
        created_by: Optional[str] = None
    ) -> ScheduleCallResult:
        """
        Schedule an interview call end-to-end.

        Raises:
            ValidationError: Invalid request or contact; nothing was written
            AgentProvisioningError: Agent could not be provisioned; nothing was written
        """
        self.validate_request(request)
        contact = self.get_active_contact(organization_id, request.contact_id)

        call_id = str(uuid.uuid4())
        correlation_id = make_correlation_id(organization_id, uuid.uuid4().hex)

        context = InterviewContext(
            contact_name=contact.name,
            contact_email=contact.email,
            contact_company=request.contact_company,
            process_type=request.process_type.strip(),
            industry=request.industry.strip(),
            duration_minutes=request.duration_minutes,
            language=request.language,
            objectives=request.objectives,
            specific_questions=request.specific_questions,
            correlation_id=correlation_id,
        )

        logger.info(
            f"Scheduling call {call_id} for contact {contact.id} "
            f"(org {organization_id[:8]}..., process={context.process_type})"
        )

        agent_id, agent_link = await self.provision_agent(context)

        try:
            call = self._insert_call(
                call_id=call_id,
                organization_id=organization_id,
                contact_id=contact.id,
                request=request,
                agent_id=agent_id,
                agent_link=agent_link,
                correlation_id=correlation_id,
                created_by=created_by,
            )
        except Exception as e:
            logger.error(
                f"Scheduled call {call_id} could not be stored; agent {agent_id} "
                f"({correlation_id}) was provisioned and is now unreferenced: {e}"
            )
            raise

        email_error: Optional[str] = None
        try:
            sent = await self.email_service.send_call_scheduled_email(
                call, contact, process_type=context.process_type
            )
        except NotificationError as e:
            email_error = e.message
            logger.warning(f"Call {call.id} scheduled but notification failed: {e.message}")
        except Exception as e:
            email_error = str(e)
            logger.error(f"Call {call.id} scheduled but notification failed unexpectedly: {e}", exc_info=True)
        else:
            call = self._mark_email_sent(call, sent.message_id)

        email_sent = email_error is None
        self.activity_recorder.record(
            organization_id=organization_id,
            user_id=created_by,
            activity_type=ActivityType.CALL_SCHEDULED if email_sent else ActivityType.CALL_SCHEDULED_EMAIL_FAILED,
            title=f"Llamada programada: {contact.name}",
            description=context.process_type,
            metadata={
                "scheduled_call_id": call.id,
                "contact_id": contact.id,
                "scheduled_date": call.scheduled_date.isoformat(),
                "email_sent": email_sent,
            },
        )

        if email_sent:
            return ScheduleCallResult(
                outcome=ScheduleOutcome.SCHEDULED,
                message=f"Email enviado a {contact.name}. Agente configurado para proceso: {context.process_type}",
                call=call,
                agent_link=agent_link,
                email_sent=True,
            )

        return ScheduleCallResult(
            outcome=ScheduleOutcome.SCHEDULED_EMAIL_FAILED,
            message=f"Llamada creada con agente configurado, pero hubo un error enviando el email: {email_error}",
            call=call,
            agent_link=agent_link,
            email_sent=False,
            email_error=email_error,
        )

    def _insert_call(
        self,
        call_id: str,
        organization_id: str,
        contact_id: str,
        request: ScheduleCallRequest,
        agent_id: str,
        agent_link: str,
        correlation_id: str,
        created_by: Optional[str]
    ) -> ScheduledCall:
        now = datetime.utcnow().isoformat()
        row = {
            "id": call_id,
            "organization_id": organization_id,
            "contact_id": contact_id,
            "scheduled_date": request.scheduled_date.isoformat(),
            "status": CallStatus.SCHEDULED.value,
            "duration_minutes": request.duration_minutes,
            "notes": request.notes,
            "email_sent": False,
            "agent_id": agent_id,
            "bot_connection_url": agent_link,
            "correlation_id": correlation_id,
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        response = self.supabase.table("scheduled_calls").insert(row).execute()
        stored = response.data[0] if response.data else row
        logger.info(f"Scheduled call persisted: {call_id} (agent {agent_id})")
        return ScheduledCall.model_validate(stored)

    def _mark_email_sent(self, call: ScheduledCall, message_id: str) -> ScheduledCall:
        update = {
            "email_sent": True,
            "email_id": message_id,
            "updated_at": datetime.utcnow().isoformat(),
        }
        try:
            query = self.supabase.table("scheduled_calls").update(update).eq("id", call.id)
            response = apply_tenant_filter(query, call.organization_id).execute()
        except Exception as e:
            logger.error(f"Email sent for call {call.id} but the flag could not be stored: {e}")
            return call

        if response.data:
            return ScheduledCall.model_validate(response.data[0])
        return call.model_copy(update={"email_sent": True, "email_id": message_id})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_calls(self, organization_id: str, status: Optional[CallStatus] = None) -> List[ScheduledCall]:
        """Calls of the organization with contact details, newest scheduled date first."""
        query = self.supabase.table("scheduled_calls").select("*, contacts(name, email, phone)")
        query = apply_tenant_filter(query, organization_id)
        if status:
            query = query.eq("status", CallStatus(status).value)
        response = query.order("scheduled_date", desc=True).execute()

        calls = []
        for row in response.data or []:
            contact = row.pop("contacts", None) or {}
            row["contact_name"] = contact.get("name")
            row["contact_email"] = contact.get("email")
            row["contact_phone"] = contact.get("phone")
            calls.append(ScheduledCall.model_validate(row))
        return calls

    def get_call(self, organization_id: str, call_id: str) -> Optional[ScheduledCall]:
        query = self.supabase.table("scheduled_calls").select("*").eq("id", call_id)
        response = apply_tenant_filter(query, organization_id).execute()
        if not response.data:
            return None
        return ScheduledCall.model_validate(response.data[0])

    def delete_call(self, organization_id: str, call_id: str) -> bool:
        """Administrative delete. Returns False if the call is not in this organization."""
        query = self.supabase.table("scheduled_calls").delete().eq("id", call_id)
        response = apply_tenant_filter(query, organization_id).execute()
        deleted = bool(response.data)
        if deleted:
            logger.info(f"Scheduled call deleted: {call_id}")
        return deleted
