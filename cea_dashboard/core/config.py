"""
Configuration Management
Loads settings from environment variables and the .env file
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    environment: str = "development"
    debug: bool = True

    # API Settings
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Supabase
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None

    # ElevenLabs conversational agents
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    elevenlabs_webhook_secret: Optional[str] = None
    agent_provisioning_timeout: float = 20.0  # seconds
    default_agent_voice_id: str = "cjVigY5qzO86Huf0OWal"  # Spanish voice
    default_agent_llm: str = "gpt-4o-mini"

    # Email (Resend)
    resend_api_key: Optional[str] = None
    email_from: str = "onboarding@resend.dev"
    operator_cc_email: str = "edc@provivienda.mx"
    email_admin_name: str = "Equipo CEA"
    email_company_name: str = "Comisión Estatal de Agua"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
