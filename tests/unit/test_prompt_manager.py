"""
Unit tests for Prompt Manager
Tests interview prompt rendering and agent configuration building
"""
import pytest
from cea_dashboard.domain.services.prompt_manager import (
    AgentConfigBuilder,
    DEFAULT_QUESTIONS,
    PROCESS_TEMPLATES,
    PromptManager,
    PromptTemplate,
    correlation_tag,
)
from cea_dashboard.domain.models.agent_config import InterviewContext


@pytest.fixture
def interview_context():
    """Create test interview context"""
    return InterviewContext(
        contact_name="Juan Pérez",
        contact_email="juan.perez@cea.gob.mx",
        contact_company="CEA Querétaro",
        process_type="facturacion",
        industry="agua",
        duration_minutes=30,
        objectives=["Documentar el ciclo de facturación"],
        specific_questions=["¿Cómo se emiten los recibos?"],
        correlation_id="org-1:abc123",
    )


@pytest.fixture
def prompt_manager():
    """Create prompt manager instance"""
    return PromptManager()


class TestPromptTemplate:
    """Test PromptTemplate model"""

    def test_template_rendering(self):
        """Test rendering a template with variables"""
        template = PromptTemplate(
            name="test_template",
            template="Hola {{ name }}, tu proceso es {{ process }}.",
            variables=["name", "process"]
        )
        rendered = template.render(name="Juan", process="ventas")
        assert rendered == "Hola Juan, tu proceso es ventas."

    def test_default_language_is_spanish(self):
        template = PromptTemplate(name="t", template="x")
        assert template.language == "es"


class TestPromptManager:
    """Test PromptManager functionality"""

    def test_default_templates_loaded(self, prompt_manager):
        assert "interview_system" in prompt_manager.list_templates()
        assert "first_message" in prompt_manager.list_templates()

    def test_system_prompt_contains_context(self, prompt_manager, interview_context):
        prompt = prompt_manager.render_system_prompt(interview_context)

        assert "Juan Pérez de CEA Querétaro" in prompt
        assert "Tipo de proceso: facturacion" in prompt
        assert "Industria: agua" in prompt
        assert "Duración estimada: 30 minutos" in prompt
        assert "- Documentar el ciclo de facturación" in prompt
        assert "- ¿Cómo se emiten los recibos?" in prompt

    def test_system_prompt_without_company(self, prompt_manager, interview_context):
        context = interview_context.model_copy(update={"contact_company": None})
        prompt = prompt_manager.render_system_prompt(context)
        assert "Contacto: Juan Pérez\n" in prompt

    def test_first_message_greets_contact(self, prompt_manager, interview_context):
        message = prompt_manager.render_first_message(interview_context)
        assert message.startswith("¡Hola Juan Pérez!")
        assert "facturacion" in message

    def test_process_template_fills_missing_fields(self, prompt_manager, interview_context):
        context = interview_context.model_copy(update={
            "process_type": "ventas",
            "objectives": [],
            "specific_questions": [],
        })
        filled = prompt_manager.apply_process_template(context)

        assert filled.objectives == PROCESS_TEMPLATES["ventas"].objectives
        assert filled.specific_questions == PROCESS_TEMPLATES["ventas"].specific_questions

    def test_process_template_keeps_caller_values(self, prompt_manager, interview_context):
        context = interview_context.model_copy(update={"process_type": "ventas"})
        filled = prompt_manager.apply_process_template(context)
        assert filled.objectives == ["Documentar el ciclo de facturación"]

    def test_unknown_process_uses_defaults(self, prompt_manager, interview_context):
        context = interview_context.model_copy(update={"objectives": [], "specific_questions": []})
        filled = prompt_manager.apply_process_template(context)

        assert filled.objectives == ["Mapear el proceso de facturacion"]
        assert filled.specific_questions == DEFAULT_QUESTIONS

    def test_add_custom_template(self, prompt_manager):
        prompt_manager.add_template(PromptTemplate(name="custom", template="{{ x }}"))
        assert prompt_manager.get_template("custom") is not None


class TestAgentConfigBuilder:
    """Test the agent configuration bundle"""

    def test_build_parameterizes_agent(self, interview_context):
        builder = AgentConfigBuilder(voice_id="voice-es", llm="gpt-4o-mini")
        config = builder.build(interview_context)

        assert config.name == "Agente CEA - facturacion"
        assert config.max_duration_seconds == 1800
        assert "Juan Pérez" in config.prompt_text
        assert config.first_message.startswith("¡Hola Juan Pérez!")
        assert config.conversation_config.tts.voice_id == "voice-es"
        assert config.conversation_config.agent.prompt.temperature == 0.3
        assert config.conversation_config.agent.prompt.max_tokens == 500
        assert config.conversation_config.turn.turn_timeout == 7

    def test_tags_carry_correlation_id(self, interview_context):
        config = AgentConfigBuilder(voice_id="v").build(interview_context)

        assert "process:facturacion" in config.tags
        assert "industry:agua" in config.tags
        assert correlation_tag("org-1:abc123") in config.tags

    def test_no_correlation_tag_without_id(self, interview_context):
        context = interview_context.model_copy(update={"correlation_id": None})
        config = AgentConfigBuilder(voice_id="v").build(context)
        assert not any(tag.startswith("call:") for tag in config.tags)

    def test_payload_is_provider_wire_format(self, interview_context):
        payload = AgentConfigBuilder(voice_id="v").build(interview_context).to_payload()

        assert payload["name"] == "Agente CEA - facturacion"
        assert payload["conversation_config"]["agent"]["language"] == "es"
        assert payload["conversation_config"]["conversation"]["max_duration_seconds"] == 1800
        assert "platform_settings" not in payload
