"""
Provider Validation Module
Validates all provider configurations on startup
"""
import logging
from typing import List, Optional, Tuple
from dataclasses import dataclass

from cea_dashboard.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""
    provider: str
    setting: str
    is_valid: bool
    message: str


class ProviderValidator:
    """
    Validates provider configurations at startup.

    Supabase is always required. ElevenLabs and Resend are required in
    production; elsewhere the simulated providers stand in for them.
    """

    # (settings attribute, env var, description) by provider
    REQUIRED_SETTINGS = {
        "database": [
            ("supabase_url", "SUPABASE_URL", "Supabase database"),
            ("supabase_service_key", "SUPABASE_SERVICE_KEY", "Supabase database"),
        ],
    }

    PRODUCTION_SETTINGS = {
        "agents": [("elevenlabs_api_key", "ELEVENLABS_API_KEY", "ElevenLabs conversational agents")],
        "email": [("resend_api_key", "RESEND_API_KEY", "Resend email delivery")],
    }

    OPTIONAL_SETTINGS = {
        "webhooks": [("elevenlabs_webhook_secret", "ELEVENLABS_WEBHOOK_SECRET", "Webhook signature verification")],
    }

    def __init__(self, settings: Optional[Settings] = None, strict: bool = False):
        """
        Initialize validator.

        Args:
            settings: Settings to validate (defaults to the cached settings)
            strict: If True, treat warnings as errors
        """
        self.settings = settings or get_settings()
        self.strict = strict
        self.results: List[ValidationResult] = []

    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        """
        Validate all provider configurations.

        Returns:
            Tuple of (all_valid, list of results)
        """
        self.results = []

        for provider, entries in self.REQUIRED_SETTINGS.items():
            for attr, env_var, description in entries:
                if getattr(self.settings, attr, None):
                    self._add_success(provider, env_var, f"{description} configured")
                else:
                    self._add_error(provider, env_var, f"{description} requires {env_var} to be set")

        for provider, entries in self.PRODUCTION_SETTINGS.items():
            for attr, env_var, description in entries:
                if getattr(self.settings, attr, None):
                    self._add_success(provider, env_var, f"{description} configured")
                elif self.settings.is_production:
                    self._add_error(provider, env_var, f"{description} requires {env_var} to be set")
                else:
                    self._add_warning(provider, env_var,
                        f"{description} not configured (simulated provider will be used)")

        for provider, entries in self.OPTIONAL_SETTINGS.items():
            for attr, env_var, description in entries:
                if getattr(self.settings, attr, None):
                    self._add_success(provider, env_var, f"{description} configured")
                else:
                    self._add_warning(provider, env_var, f"{description} not configured (optional)")

        all_valid = all(r.is_valid for r in self.results)
        return all_valid, self.results

    def _add_success(self, provider: str, setting: str, message: str):
        self.results.append(ValidationResult(provider, setting, True, message))

    def _add_error(self, provider: str, setting: str, message: str):
        self.results.append(ValidationResult(provider, setting, False, message))

    def _add_warning(self, provider: str, setting: str, message: str):
        # Warnings become errors in strict mode
        self.results.append(ValidationResult(provider, setting, not self.strict, f"WARNING: {message}"))

    def log_results(self):
        """Log all validation results."""
        errors = [r for r in self.results if not r.is_valid]
        warnings = [r for r in self.results if r.is_valid and "WARNING" in r.message]
        successes = [r for r in self.results if r.is_valid and "WARNING" not in r.message]

        if successes:
            logger.info("Provider configuration validated:")
            for r in successes:
                logger.info(f"  ✓ [{r.provider}] {r.message}")

        for r in warnings:
            logger.warning(f"  ⚠ [{r.provider}] {r.message}")

        if errors:
            logger.error("Provider configuration errors:")
            for r in errors:
                logger.error(f"  ✗ [{r.provider}] {r.message}")

    def get_error_summary(self) -> Optional[str]:
        """Get summary of errors for exception message."""
        errors = [r for r in self.results if not r.is_valid]
        if not errors:
            return None

        lines = ["Provider configuration errors:"]
        for r in errors:
            lines.append(f"  - {r.setting}: {r.message}")
        return "\n".join(lines)


def validate_providers_on_startup(settings: Optional[Settings] = None, strict: bool = False) -> None:
    """
    Validate all providers at startup.

    Raises:
        RuntimeError: If required configuration is missing
    """
    validator = ProviderValidator(settings=settings, strict=strict)
    all_valid, _ = validator.validate_all()
    validator.log_results()

    if not all_valid:
        raise RuntimeError(validator.get_error_summary())

    logger.info("All provider configurations validated successfully")
