"""
Agent Configuration Endpoints
Create, update and test interview agents on the conversational-agent provider
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel

from cea_dashboard.api.v1.dependencies import (
    CurrentUser,
    get_agent_provider,
    get_config_builder,
    require_organization,
)
from cea_dashboard.domain.errors import AgentProvisioningError
from cea_dashboard.domain.interfaces.agent_provider import AgentProvider
from cea_dashboard.domain.models.agent_config import InterviewContext
from cea_dashboard.domain.services.prompt_manager import AgentConfigBuilder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])


class AgentAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    TEST = "test"


class AgentConfigureRequest(BaseModel):
    """Agent configuration request"""
    action: AgentAction
    agent_id: Optional[str] = None
    call_data: Optional[InterviewContext] = None


class AgentConfigureResponse(BaseModel):
    success: bool = True
    agent_id: str
    agent_link: Optional[str] = None
    message: str


class AgentDetailsResponse(BaseModel):
    success: bool = True
    agent_config: Dict[str, Any]


@router.post("/configure", response_model=AgentConfigureResponse)
async def configure_agent(
    request: AgentConfigureRequest,
    current_user: CurrentUser = Depends(require_organization),
    agent_provider: AgentProvider = Depends(get_agent_provider),
    config_builder: AgentConfigBuilder = Depends(get_config_builder)
):
    """
    Run an agent configuration action.

    - create: build a configuration from call_data and create a new agent
    - update: rebuild the configuration of agent_id from call_data
    - test: check that agent_id exists on the provider
    """
    action = AgentAction(request.action)

    if action in (AgentAction.UPDATE, AgentAction.TEST) and not request.agent_id:
        raise HTTPException(status_code=400, detail=f"agent_id is required for the {action.value} action")
    if action in (AgentAction.CREATE, AgentAction.UPDATE) and request.call_data is None:
        raise HTTPException(status_code=400, detail="call_data is required to build the agent configuration")

    try:
        if action == AgentAction.CREATE:
            config = config_builder.build(request.call_data)
            agent_id = await agent_provider.create_agent(config.to_payload())
            agent_link = await agent_provider.get_agent_link(agent_id)
            logger.info(f"Agent created via {agent_provider.name}: {agent_id}")
            return AgentConfigureResponse(
                agent_id=agent_id,
                agent_link=agent_link,
                message="Agent created successfully with dynamic configuration",
            )

        if action == AgentAction.UPDATE:
            config = config_builder.build(request.call_data)
            await agent_provider.update_agent(request.agent_id, config.to_payload())
            agent_link = await agent_provider.get_agent_link(request.agent_id)
            return AgentConfigureResponse(
                agent_id=request.agent_id,
                agent_link=agent_link,
                message="Agent configuration updated successfully",
            )

        await agent_provider.test_agent(request.agent_id)
        return AgentConfigureResponse(
            agent_id=request.agent_id,
            message="Agent configuration test successful",
        )

    except AgentProvisioningError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/{agent_id}", response_model=AgentDetailsResponse)
async def get_agent(
    agent_id: str,
    current_user: CurrentUser = Depends(require_organization),
    agent_provider: AgentProvider = Depends(get_agent_provider)
):
    """Fetch the provider-side configuration of an agent."""
    try:
        agent_config = await agent_provider.get_agent(agent_id)
    except AgentProvisioningError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return AgentDetailsResponse(agent_config=agent_config)
