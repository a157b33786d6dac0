"""
API Dependencies
Shared dependencies for authentication, Supabase access, and service wiring
"""
from typing import AsyncIterator, Optional
from fastapi import Depends, HTTPException, status, Header
from supabase import create_client, Client
from pydantic import BaseModel
from dotenv import load_dotenv

from cea_dashboard.core.config import Settings, get_settings
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider
from cea_dashboard.domain.interfaces.email_provider import EmailProvider
from cea_dashboard.domain.services.prompt_manager import AgentConfigBuilder, PromptManager
from cea_dashboard.infrastructure.agents.factory import AgentProviderFactory
from cea_dashboard.infrastructure.email.factory import EmailProviderFactory
from cea_dashboard.services.activity_service import ActivityRecorder
from cea_dashboard.services.email_service import EmailService
from cea_dashboard.services.process_derivation_service import ProcessDerivationService
from cea_dashboard.services.scheduling_service import SchedulingService
from cea_dashboard.services.webhook_service import WebhookService

load_dotenv()


class CurrentUser(BaseModel):
    """Current authenticated user model"""
    id: str
    email: str
    name: Optional[str] = None
    organization_id: Optional[str] = None
    role: str = "user"


def get_supabase(settings: Settings = Depends(get_settings)) -> Client:
    """
    Get Supabase client with validation.

    Raises:
        RuntimeError: If Supabase URL or SERVICE_KEY is not configured
    """
    if not settings.supabase_url:
        raise RuntimeError(
            "SUPABASE_URL is not configured. "
            "Set SUPABASE_URL environment variable."
        )
    if not settings.supabase_service_key:
        raise RuntimeError(
            "SUPABASE_SERVICE_KEY is not configured. "
            "Set SUPABASE_SERVICE_KEY environment variable."
        )

    return create_client(settings.supabase_url, settings.supabase_service_key)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    supabase: Client = Depends(get_supabase)
) -> CurrentUser:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        authorization: Bearer token from Authorization header
        supabase: Supabase client

    Returns:
        CurrentUser object with user details

    Raises:
        HTTPException: If token is invalid or user not found
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = parts[1]

    try:
        user_response = supabase.auth.get_user(token)

        if not user_response or not user_response.user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        auth_user = user_response.user

        # Organization membership lives in profiles
        profile_response = supabase.table("profiles").select(
            "id, name, organization_id, role"
        ).eq("id", auth_user.id).execute()

        if profile_response.data:
            profile = profile_response.data[0]
            return CurrentUser(
                id=str(auth_user.id),
                email=auth_user.email,
                name=profile.get("name"),
                organization_id=profile.get("organization_id"),
                role=profile.get("role") or "user",
            )

        # User exists in auth but no profile yet
        return CurrentUser(id=str(auth_user.id), email=auth_user.email)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_organization(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Dependency to require organization membership.

    Every tenant-scoped endpoint goes through here, so no query runs
    without an organization id.
    """
    if not current_user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not assigned to an organization"
        )
    return current_user


async def require_admin(
    current_user: CurrentUser = Depends(require_organization)
) -> CurrentUser:
    """Dependency to require admin role."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


# =============================================================================
# Providers and services
# =============================================================================

async def get_agent_provider(settings: Settings = Depends(get_settings)) -> AsyncIterator[AgentProvider]:
    """Per-request agent provider; its HTTP client is closed after the response."""
    provider = AgentProviderFactory.from_settings(settings)
    try:
        yield provider
    finally:
        await provider.close()


async def get_email_provider(settings: Settings = Depends(get_settings)) -> AsyncIterator[EmailProvider]:
    provider = EmailProviderFactory.from_settings(settings)
    try:
        yield provider
    finally:
        await provider.close()


def get_config_builder(settings: Settings = Depends(get_settings)) -> AgentConfigBuilder:
    return AgentConfigBuilder(
        voice_id=settings.default_agent_voice_id,
        llm=settings.default_agent_llm,
        prompt_manager=PromptManager(),
    )


def get_email_service(
    supabase: Client = Depends(get_supabase),
    email_provider: EmailProvider = Depends(get_email_provider),
    settings: Settings = Depends(get_settings)
) -> EmailService:
    return EmailService(
        supabase,
        email_provider,
        operator_cc_email=settings.operator_cc_email,
        admin_name=settings.email_admin_name,
        company_name=settings.email_company_name,
    )


def get_scheduling_service(
    supabase: Client = Depends(get_supabase),
    agent_provider: AgentProvider = Depends(get_agent_provider),
    email_service: EmailService = Depends(get_email_service),
    config_builder: AgentConfigBuilder = Depends(get_config_builder),
    settings: Settings = Depends(get_settings)
) -> SchedulingService:
    return SchedulingService(
        supabase,
        agent_provider,
        email_service,
        config_builder,
        activity_recorder=ActivityRecorder(supabase),
        provisioning_timeout=settings.agent_provisioning_timeout,
    )


def get_derivation_service(supabase: Client = Depends(get_supabase)) -> ProcessDerivationService:
    return ProcessDerivationService(supabase, ActivityRecorder(supabase))


def get_webhook_service(
    supabase: Client = Depends(get_supabase),
    derivation_service: ProcessDerivationService = Depends(get_derivation_service),
    settings: Settings = Depends(get_settings)
) -> WebhookService:
    return WebhookService(
        supabase,
        derivation_service,
        webhook_secret=settings.elevenlabs_webhook_secret,
    )
