"""
ElevenLabs Conversational AI Agent Provider
Creates and configures interview agents through the ElevenLabs REST API
"""
import logging
from typing import Any, Dict, Optional

import httpx

from cea_dashboard.domain.errors import AgentProvisioningError
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider

logger = logging.getLogger(__name__)


class ElevenLabsAgentProvider(AgentProvider):
    """
    ElevenLabs conversational agents.

    Setup Required:
    - Set ELEVENLABS_API_KEY
    - Optionally ELEVENLABS_BASE_URL (defaults to the public v1 API)
    """

    PUBLIC_AGENT_URL = "https://elevenlabs.io/app/conversational-ai/{agent_id}"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        if not api_key:
            raise ValueError("ELEVENLABS_API_KEY not set")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def name(self) -> str:
        return "elevenlabs"

    def _headers(self) -> Dict[str, str]:
        return {
            "xi-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"ElevenLabs {method} {path} timed out: {e}")
            raise AgentProvisioningError("Agent provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"ElevenLabs {method} {path} failed: {e}")
            raise AgentProvisioningError(f"Agent provider unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(f"ElevenLabs {method} {path} returned {response.status_code}: {response.text}")
            raise AgentProvisioningError(
                f"Agent provider rejected the request ({response.status_code})"
            )
        return response

    async def create_agent(self, config: Dict[str, Any]) -> str:
        response = await self._request("POST", "/convai/agents/create", json=config)
        agent_id = response.json().get("agent_id")
        if not agent_id:
            raise AgentProvisioningError("Agent provider returned no agent_id")
        logger.info(f"ElevenLabs agent created: {agent_id}")
        return agent_id

    async def update_agent(self, agent_id: str, config: Dict[str, Any]) -> None:
        await self._request("PATCH", f"/convai/agents/{agent_id}", json=config)
        logger.info(f"ElevenLabs agent updated: {agent_id}")

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/convai/agents/{agent_id}")
        return response.json()

    async def get_agent_link(self, agent_id: str) -> str:
        """
        Signed conversation URL for the agent.

        Falls back to the public agent page when the signed URL cannot be
        obtained; the agent itself already exists at that point.
        """
        try:
            response = await self._request("GET", f"/convai/agents/{agent_id}/url/signed")
            url = response.json().get("url")
            if url:
                return url
        except AgentProvisioningError as e:
            logger.warning(f"Signed URL unavailable for agent {agent_id}, using public URL: {e.message}")
        return self.PUBLIC_AGENT_URL.format(agent_id=agent_id)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
