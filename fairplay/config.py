# fairplay/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate all environment variables at startup.
Every knob has a default so the scanner runs against a local model server out of
the box; prompt overrides fall back to the defaults in fairplay.llm.prompts.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class LLMBackend(str, Enum):
    """Model runtime behind the local server. Decides the HTML budgets."""

    FOUNDATION_MODELS = "foundation_models"
    LLAMA = "llama"

    @property
    def display_name(self) -> str:
        return {
            LLMBackend.FOUNDATION_MODELS: "Foundation Models",
            LLMBackend.LLAMA: "Qwen (llama.cpp)",
        }[self]

    @property
    def max_context_tokens(self) -> int:
        return 4096 if self is LLMBackend.FOUNDATION_MODELS else 8192

    @property
    def scanner_chunk_sizes(self) -> list[int]:
        """Scanner HTML budgets, largest first."""
        if self is LLMBackend.FOUNDATION_MODELS:
            return [8000, 4000, 2000]
        return [16000, 8000, 4000]

    @property
    def modifier_html_limit(self) -> int:
        return 3000 if self is LLMBackend.FOUNDATION_MODELS else 8000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Model runtime
    LLM_BACKEND: LLMBackend = Field(
        default=LLMBackend.LLAMA,
        description="Backend behind the local server: foundation_models, llama",
    )
    LLM_PROVIDER: str = Field(
        default="local",
        description="Model provider: local (OpenAI-compatible HTTP server), mock",
    )
    LLM_BASE_URL: str = Field(
        default="http://127.0.0.1:8080/v1",
        description="Base URL of the OpenAI-compatible local server (llama.cpp, Ollama, LM Studio)",
    )
    LLM_MODEL: str = Field(
        default="qwen2.5-coder-3b-instruct",
        description="Model name sent with each request",
    )
    LLM_API_KEY: str = Field(
        default="sk-no-key-required",
        description="Placeholder key; local servers ignore it but the client requires one",
    )
    LLM_TEMPERATURE: float = Field(default=0.3, ge=0.0, le=2.0)
    LLM_TIMEOUT_SECONDS: float | None = Field(
        default=None,
        description="HTTP timeout for model calls. Unset means wait indefinitely.",
    )

    # Budgets (override the backend defaults)
    SCANNER_CHUNK_SIZES: str | None = Field(
        default=None,
        description="Comma-separated scanner HTML budgets, largest first (e.g. '8000,4000,2000')",
    )
    MODIFIER_HTML_LIMIT: int | None = Field(default=None, gt=0)

    # Prompt overrides
    SCANNER_SYSTEM_PROMPT: str | None = None
    SCANNER_USER_PROMPT: str | None = None
    MODIFIER_SYSTEM_PROMPT: str | None = None

    # Taxonomy
    CATEGORIES_PATH: str | None = Field(
        default=None,
        description="Path to a dark-pattern-categories.json file. Unset uses the bundled taxonomy.",
    )

    # Scanning policy
    EXCLUDED_HOSTS: str = Field(
        default="duckduckgo.com",
        description="Comma-separated hosts whose pages are never scanned",
    )
    EVIDENCE_CHECK: bool = Field(
        default=False,
        description="Drop detections whose evidence text does not occur in the page HTML",
    )

    # Logging
    LOG_FORMAT: str = Field(default="text", description="text or json")
    LOG_LEVEL: str = Field(default="INFO")

    @field_validator("SCANNER_CHUNK_SIZES")
    @classmethod
    def validate_chunk_sizes(cls, v: str | None) -> str | None:
        """Reject lists that are empty or hold non-positive budgets."""
        if v is None:
            return v
        sizes = _parse_int_list(v)
        if not sizes:
            raise ValueError("SCANNER_CHUNK_SIZES must list at least one budget")
        if any(size <= 0 for size in sizes):
            raise ValueError(f"SCANNER_CHUNK_SIZES must be positive, got {v!r}")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got {v!r}")
        return v

    @property
    def chunk_sizes(self) -> list[int]:
        """Scanner budgets: explicit override, else the backend's list."""
        if self.SCANNER_CHUNK_SIZES:
            return _parse_int_list(self.SCANNER_CHUNK_SIZES)
        return self.LLM_BACKEND.scanner_chunk_sizes

    @property
    def modifier_html_limit(self) -> int:
        return self.MODIFIER_HTML_LIMIT or self.LLM_BACKEND.modifier_html_limit

    @property
    def excluded_hosts(self) -> list[str]:
        return [h.strip().lower() for h in self.EXCLUDED_HOSTS.split(",") if h.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


def _parse_int_list(raw: str) -> list[int]:
    return [int(part) for part in raw.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()
