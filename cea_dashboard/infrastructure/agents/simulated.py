"""
Simulated Agent Provider
Stands in for ElevenLabs when no API key is configured outside production
"""
import logging
import uuid
from typing import Any, Dict

from cea_dashboard.domain.errors import AgentProvisioningError
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider

logger = logging.getLogger(__name__)


class SimulatedAgentProvider(AgentProvider):
    """Keeps agent configurations in memory and returns demo links"""

    LINK_TEMPLATE = "https://elevenlabs.io/convai/conversation?agent_id={agent_id}"

    def __init__(self):
        self._agents: Dict[str, Dict[str, Any]] = {}

    @property
    def name(self) -> str:
        return "simulated"

    async def create_agent(self, config: Dict[str, Any]) -> str:
        agent_id = f"mock_agent_{uuid.uuid4().hex[:12]}"
        self._agents[agent_id] = config
        logger.info(f"Simulated agent created: {agent_id} (no ElevenLabs API call made)")
        return agent_id

    async def update_agent(self, agent_id: str, config: Dict[str, Any]) -> None:
        self._agents[agent_id] = config

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        if agent_id not in self._agents:
            raise AgentProvisioningError(f"Simulated agent not found: {agent_id}")
        return {"agent_id": agent_id, **self._agents[agent_id]}

    async def get_agent_link(self, agent_id: str) -> str:
        return self.LINK_TEMPLATE.format(agent_id=agent_id)
