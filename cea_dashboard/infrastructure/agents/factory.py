"""
Agent Provider Factory
"""
import logging
from typing import Dict, Type

from cea_dashboard.core.config import Settings
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider
from cea_dashboard.infrastructure.agents.elevenlabs import ElevenLabsAgentProvider
from cea_dashboard.infrastructure.agents.simulated import SimulatedAgentProvider

logger = logging.getLogger(__name__)


class AgentProviderFactory:
    """Factory for creating agent provider instances"""

    _providers: Dict[str, Type[AgentProvider]] = {}

    @classmethod
    def create(cls, provider_name: str, settings: Settings) -> AgentProvider:
        """Create agent provider instance"""
        if provider_name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "None"
            raise ValueError(f"Unknown agent provider: {provider_name}. Available: {available}")

        provider_class = cls._providers[provider_name]
        if provider_class is ElevenLabsAgentProvider:
            return ElevenLabsAgentProvider(
                api_key=settings.elevenlabs_api_key,
                base_url=settings.elevenlabs_base_url,
                timeout=settings.agent_provisioning_timeout,
            )
        return provider_class()

    @classmethod
    def from_settings(cls, settings: Settings) -> AgentProvider:
        """ElevenLabs when configured; the simulated provider otherwise (never in production)."""
        if settings.elevenlabs_api_key:
            return cls.create("elevenlabs", settings)
        if settings.is_production:
            raise RuntimeError("ELEVENLABS_API_KEY is required in production")
        logger.warning("ELEVENLABS_API_KEY not configured - using simulated agent provider")
        return cls.create("simulated", settings)

    @classmethod
    def register(cls, name: str, provider_class: Type[AgentProvider]) -> None:
        """Register a provider"""
        cls._providers[name] = provider_class

    @classmethod
    def list_providers(cls) -> list[str]:
        """List available providers"""
        return list(cls._providers.keys())


AgentProviderFactory.register("elevenlabs", ElevenLabsAgentProvider)
AgentProviderFactory.register("simulated", SimulatedAgentProvider)
