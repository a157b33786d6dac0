"""
Agent Provider Interface
Abstract base class for remote conversational-agent platforms
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class AgentProvider(ABC):
    """
    Abstract base class for conversational-agent providers.

    Implementations raise AgentProvisioningError on any failure so the
    scheduling coordinator can treat every provider the same way.
    """

    @abstractmethod
    async def create_agent(self, config: Dict[str, Any]) -> str:
        """
        Create an agent.

        Args:
            config: Agent configuration bundle

        Returns:
            str: Remote agent id
        """
        pass

    @abstractmethod
    async def update_agent(self, agent_id: str, config: Dict[str, Any]) -> None:
        """Replace the configuration of an existing agent"""
        pass

    @abstractmethod
    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        """Fetch the current configuration of an agent"""
        pass

    @abstractmethod
    async def get_agent_link(self, agent_id: str) -> str:
        """URL the contact opens to talk to the agent"""
        pass

    async def test_agent(self, agent_id: str) -> bool:
        """Check that the agent exists and is reachable"""
        await self.get_agent(agent_id)
        return True

    async def close(self) -> None:
        """Release resources"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass
