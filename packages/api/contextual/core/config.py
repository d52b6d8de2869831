# This project was developed with assistance from AI tools.
"""
Application configuration.

All settings read from environment variables with sensible local dev defaults.
Provider endpoints and model tables live in config/models.yaml; this module
only holds the per-site AI options and runtime limits.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve project root .env regardless of CWD (matches inference/config.py approach)
_PROJECT_ROOT = Path(__file__).resolve().parents[4]
_ENV_FILE = _PROJECT_ROOT / ".env"

SUPPORTED_PROVIDERS: tuple[str, ...] = ("openai", "claude", "mistral")

PROVIDER_LABELS: dict[str, str] = {
    "openai": "OpenAI",
    "claude": "Claude",
    "mistral": "Mistral",
}


class Settings(BaseSettings):
    """Application settings -- single source of truth for env-driven config."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "contextual"
    DEBUG: bool = False

    # -- CORS --
    ALLOWED_HOSTS: list[str] = ["http://localhost:5173"]

    # -- AI provider --
    AI_PROVIDER: str = Field(
        default="",
        description="Provider slug or label (openai, claude, mistral). Empty = not configured.",
    )
    AI_API_KEY: str = Field(
        default="",
        description="API key for the configured provider.",
    )
    AI_MODEL: str = Field(
        default="",
        description="Configured model. Used verbatim when smart selection is disabled.",
    )
    AI_MAX_TOKENS: int = Field(default=1024, description="Max output tokens per request.")
    AI_TEMPERATURE: float = Field(default=1.0, description="Sampling temperature.")
    SMART_MODEL_SELECTION: bool = Field(
        default=True,
        description="Pick nano/mini/large models from prompt size and complexity.",
    )

    # -- Provider transport --
    PROVIDER_TIMEOUT: float = Field(
        default=30.0,
        description="Timeout in seconds for a single provider call.",
    )
    EMPTY_OUTPUT_ATTEMPTS: int = Field(
        default=2,
        description="Attempts before giving up on a provider that returns no visible output.",
    )

    # -- Caching --
    AI_CACHE_TTL: int = Field(
        default=300,
        description="Generated response cache lifetime in seconds (0 disables caching).",
    )
    CONTEXT_CACHE_TTL: int = Field(
        default=3600,
        description="Resolved context cache lifetime in seconds for get_context.",
    )
    SCHEMA_CACHE_TTL: int = Field(
        default=300,
        description="Schema snapshot cache lifetime in seconds.",
    )
    CACHE_MAX_ENTRIES: int = Field(
        default=4096,
        description="Upper bound on in-process cache entries; earliest expiry is evicted first.",
    )

    # -- Content --
    MULTI_CONTEXT_LIMIT: int = Field(
        default=5,
        description="Number of recent documents aggregated for the multi context.",
    )
    MULTI_CONTEXT_TYPES: list[str] = ["post", "page"]

    # -- Host exports (local runs; empty = nothing loaded) --
    CONTENT_FILE: str = Field(
        default="",
        description="YAML file with a 'documents' list served as the document source.",
    )
    SCHEMA_FILE: str = Field(
        default="",
        description="YAML schema export (post_types, taxonomies, acf_field_groups, generated_at).",
    )


settings = Settings()


def normalize_provider(provider: str | None) -> str:
    """Map a provider label ('OpenAI') or slug ('openai') to its internal slug."""
    if not provider:
        return ""
    label_to_slug = {label: slug for slug, label in PROVIDER_LABELS.items()}
    if provider in label_to_slug:
        return label_to_slug[provider]
    return provider.strip().lower()


@dataclass(frozen=True)
class AIConfig:
    """Per-site AI options with defaults applied once at load time."""

    provider: str = ""
    api_key: str = ""
    model: str = ""
    max_tokens: int = 1024
    temperature: float = 1.0
    smart_model_selection: bool = True
    cache_ttl: int = 300
    timeout: float = 30.0
    empty_output_attempts: int = 2

    @property
    def provider_label(self) -> str:
        return PROVIDER_LABELS.get(self.provider, self.provider)

    def missing_fields(self) -> list[str]:
        """Names of required options that are unset."""
        required = {"provider": self.provider, "api_key": self.api_key, "model": self.model}
        return [name for name, value in required.items() if not value]

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "AIConfig":
        s = source or settings
        return cls(
            provider=normalize_provider(s.AI_PROVIDER),
            api_key=s.AI_API_KEY,
            model=s.AI_MODEL.strip(),
            max_tokens=s.AI_MAX_TOKENS,
            temperature=s.AI_TEMPERATURE,
            smart_model_selection=s.SMART_MODEL_SELECTION,
            cache_ttl=s.AI_CACHE_TTL,
            timeout=s.PROVIDER_TIMEOUT,
            empty_output_attempts=max(1, s.EMPTY_OUTPUT_ATTEMPTS),
        )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "AIConfig":
        """Build from a host-persisted options mapping (keys as stored by the host).

        Missing or null values fall back to the Settings defaults.
        """
        base = cls.from_settings()

        def _pick(key: str, default: Any) -> Any:
            value = options.get(key)
            return default if value is None else value

        return cls(
            provider=normalize_provider(_pick("ai_provider", base.provider)),
            api_key=str(_pick("api_key", base.api_key)),
            model=str(_pick("model", base.model)).strip(),
            max_tokens=int(_pick("max_tokens", base.max_tokens)),
            temperature=float(_pick("temperature", base.temperature)),
            smart_model_selection=bool(_pick("smart_model_selection", base.smart_model_selection)),
            cache_ttl=int(_pick("cache_ttl", base.cache_ttl)),
            timeout=float(_pick("timeout", base.timeout)),
            empty_output_attempts=max(
                1, int(_pick("empty_output_attempts", base.empty_output_attempts))
            ),
        )
