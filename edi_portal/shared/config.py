"""Shared configuration management for the EDI document portal.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

OPENAI_KEY_PLACEHOLDER = "your-openai-api-key-here"

DEFAULT_CORS_ORIGINS = ",".join(
    [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:3002",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001",
        "http://127.0.0.1:3002",
    ]
)


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug

    The OpenAI key is also read from the plain OPENAI_API_KEY variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="edi-document-portal",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # External EDI document API
    edi_api_base_url: str = Field(
        default="http://localhost:10680",
        description="Base URL of the external EDI document API",
    )
    edi_api_username: str | None = Field(
        default=None,
        description="Basic auth username (use env var APP_EDI_API_USERNAME)",
    )
    edi_api_password: str | None = Field(
        default=None,
        description="Basic auth password (use env var APP_EDI_API_PASSWORD)",
    )
    edi_api_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for EDI API calls",
        gt=0,
    )
    use_mock_data: bool = Field(
        default=False,
        description="Serve seeded in-memory documents instead of calling the EDI API",
    )

    # OpenAI configuration
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "APP_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key (APP_OPENAI_API_KEY or OPENAI_API_KEY)",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="Chat completion model",
    )
    openai_max_tokens: int = Field(
        default=4000,
        description="Token ceiling for plain chat completions",
        gt=0,
    )
    assistant_max_tokens: int = Field(
        default=2000,
        description="Token ceiling for each assistant tool-calling round-trip",
        gt=0,
    )
    analysis_max_tokens: int = Field(
        default=8000,
        description="Token ceiling for business analysis generation",
        gt=0,
    )

    # Assistant loop and streaming
    assistant_max_iterations: int = Field(
        default=5,
        description="Maximum model round-trips per assistant turn",
        ge=1,
    )
    sse_done_sentinel: str = Field(
        default="[DONE]",
        description="Payload of the final SSE frame on /api/ai/chat/stream",
    )

    # HTTP surface
    cors_origins: str = Field(
        default=DEFAULT_CORS_ORIGINS,
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def openai_configured(self) -> bool:
        """Whether a usable OpenAI API key is set."""
        return bool(self.openai_api_key) and self.openai_api_key != OPENAI_KEY_PLACEHOLDER


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
