"""
Agent Configuration Models
Interview context and the configuration bundle sent to the agent provider
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


class InterviewContext(BaseModel):
    """Everything the interview prompt is parameterized by"""
    contact_name: str
    contact_email: str
    contact_company: Optional[str] = None
    process_type: str
    industry: str
    duration_minutes: int = Field(default=30, ge=1)
    language: str = "es"
    objectives: List[str] = Field(default_factory=list)
    specific_questions: List[str] = Field(default_factory=list)
    correlation_id: Optional[str] = None


class PromptSettings(BaseModel):
    prompt: str
    llm: str = "gpt-4o-mini"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = 500
    tool_ids: List[str] = Field(default_factory=list)


class AgentSettings(BaseModel):
    prompt: PromptSettings
    language: str = "es"
    first_message: str


class TTSSettings(BaseModel):
    voice_id: str
    model_id: str = "eleven_turbo_v2_5"
    stability: float = 0.5
    similarity_boost: float = 0.8
    speed: float = 1.0


class ConversationSettings(BaseModel):
    max_duration_seconds: int


class TurnSettings(BaseModel):
    turn_timeout: int = 7
    mode: str = "silence"


class ConversationConfig(BaseModel):
    agent: AgentSettings
    tts: TTSSettings
    conversation: ConversationSettings
    turn: TurnSettings = Field(default_factory=TurnSettings)


class AgentConfiguration(BaseModel):
    """
    Agent bundle in the provider's wire format.

    The coordinator only parameterizes the prompt text, the first
    message and the maximum duration; everything else is defaults.
    """
    name: str
    conversation_config: ConversationConfig
    platform_settings: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @property
    def prompt_text(self) -> str:
        return self.conversation_config.agent.prompt.prompt

    @property
    def first_message(self) -> str:
        return self.conversation_config.agent.first_message

    @property
    def max_duration_seconds(self) -> int:
        return self.conversation_config.conversation.max_duration_seconds
