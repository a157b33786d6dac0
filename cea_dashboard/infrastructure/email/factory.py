"""
Email Provider Factory
"""
import logging
from typing import Dict, Type

from cea_dashboard.core.config import Settings
from cea_dashboard.domain.interfaces.email_provider import EmailProvider
from cea_dashboard.infrastructure.email.resend import ResendEmailProvider
from cea_dashboard.infrastructure.email.simulated import SimulatedEmailProvider

logger = logging.getLogger(__name__)


class EmailProviderFactory:
    """Factory for creating email provider instances"""

    _providers: Dict[str, Type[EmailProvider]] = {}

    @classmethod
    def create(cls, provider_name: str, settings: Settings) -> EmailProvider:
        """Create email provider instance"""
        if provider_name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "None"
            raise ValueError(f"Unknown email provider: {provider_name}. Available: {available}")

        provider_class = cls._providers[provider_name]
        if provider_class is ResendEmailProvider:
            return ResendEmailProvider(api_key=settings.resend_api_key, from_email=settings.email_from)
        return provider_class()

    @classmethod
    def from_settings(cls, settings: Settings) -> EmailProvider:
        """Resend when configured; the simulated provider otherwise (never in production)."""
        if settings.resend_api_key:
            return cls.create("resend", settings)
        if settings.is_production:
            raise RuntimeError("RESEND_API_KEY is required in production")
        logger.warning("RESEND_API_KEY not configured - simulating email delivery")
        return cls.create("simulated", settings)

    @classmethod
    def register(cls, name: str, provider_class: Type[EmailProvider]) -> None:
        """Register a provider"""
        cls._providers[name] = provider_class

    @classmethod
    def list_providers(cls) -> list[str]:
        """List available providers"""
        return list(cls._providers.keys())


EmailProviderFactory.register("resend", ResendEmailProvider)
EmailProviderFactory.register("simulated", SimulatedEmailProvider)
