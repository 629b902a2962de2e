"""
Settings Module - Centralized Configuration Management
=======================================================

All configuration is loaded from environment variables (no hardcoded
secrets). Settings are immutable dataclasses; get_settings() returns the
process-wide instance.

EXTENSIBILITY:
- To switch LLM provider: point LLM_API_URL at any OpenAI-compatible endpoint
- To use a hosted Apple import proxy: set APPLE_API_ENDPOINT
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()


@dataclass(frozen=True)
class LLMSettings:
    """OpenAI-compatible chat-completions settings for the review chat."""

    api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", ""))
    api_url: str = field(
        default_factory=lambda: os.getenv(
            "LLM_API_URL", "https://api.openai.com/v1/chat/completions"
        )
    )
    model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))

    temperature: float = 0.3
    max_tokens: int = 1024
    timeout_seconds: int = 60

    # Bounds on what goes into the prompt
    max_context_reviews: int = 50
    max_history_messages: int = 20


@dataclass(frozen=True)
class AppleImportSettings:
    """Backend proxy that talks to App Store Connect on our behalf."""

    endpoint: str = field(
        default_factory=lambda: os.getenv(
            "APPLE_API_ENDPOINT", "http://localhost:3001/api/apple-reviews"
        )
    )

    # The backend paginates through the whole review history
    timeout_seconds: int = 120
    health_timeout_seconds: int = 5


@dataclass(frozen=True)
class DashboardSettings:
    """Web dashboard settings."""

    host: str = field(default_factory=lambda: os.getenv("DASHBOARD_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("DASHBOARD_PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    allowed_extensions: tuple = (".xlsx", ".xls", ".csv")
    recent_reviews_shown: int = 25


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from review_dashboard.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.llm.model)
    """

    llm: LLMSettings = field(default_factory=LLMSettings)
    apple: AppleImportSettings = field(default_factory=AppleImportSettings)
    dashboard: DashboardSettings = field(default_factory=DashboardSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings.
        Returns empty list if all settings are valid.
        """
        issues = []

        if not self.llm.api_key:
            issues.append(
                "WARNING: LLM_API_KEY not set. "
                "The review chat will be unavailable."
            )

        if not self.apple.endpoint.startswith(("http://", "https://")):
            issues.append(
                f"WARNING: APPLE_API_ENDPOINT is not an HTTP URL: {self.apple.endpoint}"
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
