"""
Email Template Manager
Manages notification email templates with Jinja2 rendering.
"""
from datetime import datetime
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field
from jinja2 import Environment, BaseLoader
import logging
import re

logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PROCESS_TYPE_LABELS: Dict[str, str] = {
    "agua_potable": "Gestión de Agua Potable",
    "saneamiento": "Saneamiento y Alcantarillado",
    "tratamiento": "Tratamiento de Aguas Residuales",
    "mantenimiento": "Mantenimiento de Infraestructura",
    "atencion_ciudadana": "Atención Ciudadana",
    "facturacion": "Facturación y Cobranza",
    "operacion": "Operación de Sistemas",
    "calidad_agua": "Control de Calidad del Agua",
    "medicion": "Medición y Macromedición",
    "fugas": "Detección y Reparación de Fugas",
    "rrhh": "Recursos Humanos",
    "administracion": "Administración General",
    "compras": "Adquisiciones y Compras",
    "almacen": "Almacén e Inventarios",
    "finanzas": "Finanzas y Contabilidad",
    "juridico": "Área Jurídica",
    "planeacion": "Planeación y Proyectos",
    "otro": "Otras operaciones",
}
DEFAULT_PROCESS_LABEL = "Operaciones de la CEA"

_WEEKDAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]
_MONTHS_ES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def process_type_label(process_type: Optional[str]) -> str:
    return PROCESS_TYPE_LABELS.get(process_type or "", DEFAULT_PROCESS_LABEL)


def format_date_es(value: datetime) -> str:
    """e.g. 'martes, 4 de marzo de 2025'"""
    return f"{_WEEKDAYS_ES[value.weekday()]}, {value.day} de {_MONTHS_ES[value.month - 1]} de {value.year}"


def format_time_es(value: datetime) -> str:
    return value.strftime("%H:%M")


class EmailTemplate(BaseModel):
    """Single email template definition."""
    name: str = Field(..., description="Template identifier")
    subject_template: str = Field(..., description="Jinja2 subject template")
    body_template: str = Field(..., description="Jinja2 plain text body template")
    body_html_template: Optional[str] = Field(None, description="Jinja2 HTML body template")
    variables: List[str] = Field(default_factory=list, description="Required variables")
    description: str = Field("", description="Template purpose description")

    class Config:
        extra = "allow"


class RenderedEmail(BaseModel):
    """Rendered email ready for sending."""
    subject: str
    body: str
    body_html: Optional[str] = None
    template_name: str


class EmailContentValidationError(Exception):
    """Raised when email content fails validation."""
    def __init__(self, message: str, issues: List[str] = None):
        self.message = message
        self.issues = issues or []
        super().__init__(self.message)


class EmailTemplateManager:
    """
    Manages email templates and rendering.
    """

    MAX_SUBJECT_LENGTH = 200
    MAX_BODY_LENGTH = 10000

    def __init__(self):
        """Initialize template manager with default templates."""
        self.templates: Dict[str, EmailTemplate] = {}
        self.env = Environment(loader=BaseLoader())
        self.html_env = Environment(loader=BaseLoader(), autoescape=True)
        self._load_default_templates()

    def _load_default_templates(self):
        """Load default email templates."""

        self.templates["call_scheduled"] = EmailTemplate(
            name="call_scheduled",
            description="Sent to the contact when an interview call is scheduled",
            subject_template="Entrevista CEA programada - {{ process_label }}",
            body_template="""Hola {{ contact_name }},

{{ company_name }} te ha programado una entrevista con nuestro asistente virtual para conocer más sobre tus operaciones en {{ process_label }}.

Detalles:
- Fecha: {{ date }}
- Hora: {{ time }}
- Duración: {{ duration_minutes }} minutos
- Coordinador: {{ admin_name }}

Para conectarte a la hora programada, abre este enlace:
{{ agent_link }}

El asistente te hará preguntas sobre tu trabajo diario, herramientas que utilizas y desafíos que enfrentas.

Si necesitas reprogramar, responde a este email o contacta a {{ admin_name }}.

{{ company_name }} - Sistema de entrevistas""",
            body_html_template="""<!DOCTYPE html>
<html lang="es">
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; padding: 20px;">
<h2>Entrevista CEA Programada</h2>

<p>Hola <strong>{{ contact_name }}</strong>,</p>

<p>{{ company_name }} te ha programado una entrevista con nuestro asistente virtual para conocer más sobre tus operaciones en <strong>{{ process_label }}</strong>.</p>

<p><strong>Detalles:</strong></p>
<ul>
<li>📅 Fecha: {{ date }}</li>
<li>⏰ Hora: {{ time }}</li>
<li>⏱️ Duración: {{ duration_minutes }} minutos</li>
<li>👤 Coordinador: {{ admin_name }}</li>
</ul>

<p><strong>Para conectarte a la hora programada, haz clic aquí:</strong></p>
<p><a href="{{ agent_link }}" style="color: #2563eb; font-size: 18px;">{{ agent_link }}</a></p>

<p>El asistente te hará preguntas sobre tu trabajo diario, herramientas que utilizas, y desafíos que enfrentas. Tu feedback es muy valioso para mejorar las operaciones de la CEA.</p>

<p>Si necesitas reprogramar, responde a este email o contacta a {{ admin_name }}.</p>

<hr style="margin: 20px 0; border: none; border-top: 1px solid #ccc;">
<p style="font-size: 12px; color: #666;">{{ company_name }} - Sistema de entrevistas</p>
</body>
</html>""",
            variables=["contact_name", "company_name", "process_label", "date", "time",
                       "duration_minutes", "admin_name", "agent_link"]
        )

    def render_email(
        self,
        template_name: str,
        **context
    ) -> RenderedEmail:
        """
        Render an email template with provided context.

        Raises:
            KeyError: If template not found
        """
        if template_name not in self.templates:
            available = ", ".join(self.templates.keys())
            raise KeyError(f"Template '{template_name}' not found. Available: {available}")

        template = self.templates[template_name]

        subject = self.env.from_string(template.subject_template).render(**context)
        body = self.env.from_string(template.body_template).render(**context)

        body_html = None
        if template.body_html_template:
            body_html = self.html_env.from_string(template.body_html_template).render(**context)

        logger.debug(f"Rendered email template '{template_name}' with {len(context)} variables")

        return RenderedEmail(
            subject=subject,
            body=body,
            body_html=body_html,
            template_name=template_name,
        )

    def render_call_scheduled(
        self,
        contact_name: str,
        scheduled_date: datetime,
        agent_link: str,
        process_type: Optional[str] = None,
        duration_minutes: int = 30,
        admin_name: str = "Equipo CEA",
        company_name: str = "Comisión Estatal de Agua"
    ) -> RenderedEmail:
        """Render the interview scheduling notification."""
        return self.render_email(
            "call_scheduled",
            contact_name=contact_name,
            company_name=company_name,
            process_label=process_type_label(process_type),
            date=format_date_es(scheduled_date),
            time=format_time_es(scheduled_date),
            duration_minutes=duration_minutes or 30,
            admin_name=admin_name,
            agent_link=agent_link,
        )

    def validate_content(
        self,
        subject: str,
        body: str,
        raise_on_error: bool = True
    ) -> tuple[bool, List[str]]:
        """
        Validate email content before sending.

        Raises:
            EmailContentValidationError: If validation fails and raise_on_error is True
        """
        issues = []

        if len(subject) > self.MAX_SUBJECT_LENGTH:
            issues.append(f"Subject too long ({len(subject)} > {self.MAX_SUBJECT_LENGTH} chars)")

        if len(body) > self.MAX_BODY_LENGTH:
            issues.append(f"Body too long ({len(body)} > {self.MAX_BODY_LENGTH} chars)")

        if not subject.strip():
            issues.append("Subject cannot be empty")

        if not body.strip():
            issues.append("Body cannot be empty")

        is_valid = len(issues) == 0

        if not is_valid and raise_on_error:
            raise EmailContentValidationError(
                f"Email validation failed: {'; '.join(issues)}",
                issues=issues
            )

        return is_valid, issues

    def add_template(self, template: EmailTemplate) -> None:
        """Add or update a template."""
        self.templates[template.name] = template
        logger.info(f"Added email template: {template.name}")

    def get_template(self, name: str) -> Optional[EmailTemplate]:
        """Get template by name."""
        return self.templates.get(name)

    def list_templates(self) -> List[str]:
        """List all available template names."""
        return list(self.templates.keys())

    def get_template_info(self, name: str) -> Optional[Dict[str, Any]]:
        """Get template metadata."""
        template = self.templates.get(name)
        if not template:
            return None
        return {
            "name": template.name,
            "description": template.description,
            "variables": template.variables,
            "has_html": template.body_html_template is not None,
        }


_template_manager: Optional[EmailTemplateManager] = None


def get_email_template_manager() -> EmailTemplateManager:
    """Get or create the shared template manager."""
    global _template_manager
    if _template_manager is None:
        _template_manager = EmailTemplateManager()
    return _template_manager
