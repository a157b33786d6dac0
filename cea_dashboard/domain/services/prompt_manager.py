"""
Interview Prompt System
Renders the agent prompt and first message for a scheduled interview and
assembles the agent configuration bundle
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from jinja2 import Environment, BaseLoader
import logging

from cea_dashboard.domain.models.agent_config import (
    AgentConfiguration,
    AgentSettings,
    ConversationConfig,
    ConversationSettings,
    InterviewContext,
    PromptSettings,
    TTSSettings,
    TurnSettings,
)

logger = logging.getLogger(__name__)


class PromptTemplate(BaseModel):
    """Single prompt template"""
    name: str = Field(..., description="Template name")
    template: str = Field(..., description="Jinja2 template string")
    variables: List[str] = Field(default_factory=list, description="Required variables")
    language: str = Field(default="es", description="Language code")

    def render(self, **kwargs) -> str:
        """Render template with provided variables"""
        env = Environment(loader=BaseLoader())
        template = env.from_string(self.template)
        return template.render(**kwargs)


class ProcessTemplate(BaseModel):
    """Default objectives and questions for a common business process"""
    objectives: List[str]
    specific_questions: List[str]


PROCESS_TEMPLATES: Dict[str, ProcessTemplate] = {
    "onboarding": ProcessTemplate(
        objectives=[
            "Mapear el proceso de incorporación de nuevos empleados",
            "Identificar documentos y sistemas necesarios",
            "Optimizar tiempos de integración",
        ],
        specific_questions=[
            "¿Cuáles son los primeros pasos cuando llega un nuevo empleado?",
            "¿Qué documentos deben completar?",
            "¿Cuánto tiempo toma el proceso completo?",
            "¿Qué sistemas necesitan acceso?",
        ],
    ),
    "ventas": ProcessTemplate(
        objectives=[
            "Documentar el proceso de ventas desde lead hasta cierre",
            "Identificar puntos de fricción en el embudo",
            "Optimizar conversión y tiempo de ciclo",
        ],
        specific_questions=[
            "¿Cómo califican los leads?",
            "¿Cuáles son las etapas del proceso de ventas?",
            "¿Qué herramientas utilizan para seguimiento?",
            "¿Cuál es el tiempo promedio de cierre?",
        ],
    ),
    "soporte": ProcessTemplate(
        objectives=[
            "Mapear el proceso de atención al cliente",
            "Identificar tipos de tickets y escalaciones",
            "Mejorar tiempos de respuesta",
        ],
        specific_questions=[
            "¿Cómo reciben las solicitudes de soporte?",
            "¿Cuáles son los niveles de escalación?",
            "¿Qué métricas de SLA manejan?",
            "¿Cómo priorizan los tickets?",
        ],
    ),
}

DEFAULT_QUESTIONS = [
    "¿Cuáles son los principales desafíos en este proceso?",
    "¿Qué herramientas utilizan actualmente?",
    "¿Cuánto tiempo toma completar este proceso?",
]


class PromptManager:
    """
    Manages interview prompt templates and rendering
    """

    def __init__(self):
        """Initialize prompt manager with default templates"""
        self.templates: Dict[str, PromptTemplate] = {}
        self._load_default_templates()

    def _load_default_templates(self):
        """Load default prompt templates"""

        self.templates["interview_system"] = PromptTemplate(
            name="interview_system",
            template="""Eres un asistente especializado de CEA (Centro de Excelencia en Automatización) diseñado para mapear y optimizar procesos empresariales.

CONTEXTO DE LA LLAMADA:
- Contacto: {{ contact_name }}{% if contact_company %} de {{ contact_company }}{% endif %}
- Tipo de proceso: {{ process_type }}
- Industria: {{ industry }}
- Duración estimada: {{ duration_minutes }} minutos

OBJETIVOS PRINCIPALES:
{% for objective in objectives %}- {{ objective }}
{% endfor %}
INSTRUCCIONES ESPECÍFICAS:
1. Saluda cordialmente al contacto por su nombre
2. Explica brevemente el propósito de la llamada
3. Guía la conversación para mapear el proceso "{{ process_type }}"
4. Haz preguntas específicas sobre:
   - Pasos actuales del proceso
   - Personas involucradas y roles
   - Herramientas y sistemas utilizados
   - Puntos de dolor y ineficiencias
   - Tiempo promedio del proceso
   - Frecuencia de ejecución
5. Mantén un tono profesional pero amigable
6. Toma notas detalladas de cada paso mencionado
7. Al final, resume los puntos clave identificados
8. Pregunta si hay algo más que agregar

PREGUNTAS ESPECÍFICAS A INCLUIR:
{% for question in specific_questions %}- {{ question }}
{% endfor %}
IMPORTANTE:
- Mantén la conversación enfocada en el mapeo del proceso
- Si el contacto se desvía del tema, redirige amablemente
- Asegúrate de capturar todos los detalles técnicos mencionados
- Al finalizar, confirma que tienes toda la información necesaria
- Si el contacto dicta su correo y dice "arroba" o "at", interprétalo como @""",
            variables=["contact_name", "contact_company", "process_type", "industry",
                       "duration_minutes", "objectives", "specific_questions"]
        )

        self.templates["first_message"] = PromptTemplate(
            name="first_message",
            template=(
                "¡Hola {{ contact_name }}! Soy el asistente de CEA especializado en mapeo de procesos. "
                "Estoy aquí para ayudarte a documentar y optimizar tu proceso de {{ process_type }}. "
                "¿Estás listo para comenzar?"
            ),
            variables=["contact_name", "process_type"]
        )

    def apply_process_template(self, context: InterviewContext) -> InterviewContext:
        """Fill in objectives and questions the caller left empty."""
        template = PROCESS_TEMPLATES.get(context.process_type)
        updates = {}
        if not context.objectives:
            updates["objectives"] = list(template.objectives) if template else [
                f"Mapear el proceso de {context.process_type}"
            ]
        if not context.specific_questions:
            updates["specific_questions"] = list(template.specific_questions) if template else list(DEFAULT_QUESTIONS)
        if not updates:
            return context
        return context.model_copy(update=updates)

    def render_system_prompt(self, context: InterviewContext) -> str:
        context = self.apply_process_template(context)
        return self.templates["interview_system"].render(**context.model_dump())

    def render_first_message(self, context: InterviewContext) -> str:
        return self.templates["first_message"].render(**context.model_dump())

    def add_template(self, template: PromptTemplate):
        """Add or replace a template"""
        self.templates[template.name] = template

    def get_template(self, name: str) -> Optional[PromptTemplate]:
        return self.templates.get(name)

    def list_templates(self) -> List[str]:
        return list(self.templates.keys())


class AgentConfigBuilder:
    """Builds the agent configuration bundle for an interview"""

    def __init__(
        self,
        voice_id: str,
        llm: str = "gpt-4o-mini",
        prompt_manager: Optional[PromptManager] = None
    ):
        self.voice_id = voice_id
        self.llm = llm
        self.prompt_manager = prompt_manager or PromptManager()

    def build(self, context: InterviewContext) -> AgentConfiguration:
        tags = [f"process:{context.process_type}", f"industry:{context.industry}"]
        if context.correlation_id:
            tags.append(correlation_tag(context.correlation_id))

        return AgentConfiguration(
            name=f"Agente CEA - {context.process_type}",
            conversation_config=ConversationConfig(
                agent=AgentSettings(
                    prompt=PromptSettings(
                        prompt=self.prompt_manager.render_system_prompt(context),
                        llm=self.llm,
                    ),
                    language=context.language or "es",
                    first_message=self.prompt_manager.render_first_message(context),
                ),
                tts=TTSSettings(voice_id=self.voice_id),
                conversation=ConversationSettings(
                    max_duration_seconds=(context.duration_minutes or 30) * 60
                ),
                turn=TurnSettings(),
            ),
            tags=tags,
        )


def correlation_tag(correlation_id: str) -> str:
    return f"call:{correlation_id}"
