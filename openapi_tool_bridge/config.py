"""
Configuration management for the OpenAPI tool bridge.
Loads and validates environment variables using Pydantic Settings.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Interface document
    spec_url: str = Field(
        default="https://api.portaldatransparencia.gov.br/v3/api-docs",
        description="URL (or local path) of the OpenAPI/Swagger document to expose"
    )
    spec_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for fetching the interface document"
    )

    # Described API
    api_base_url: str = Field(
        default="",
        description="Base URL for outbound calls (empty: taken from the document)"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single outbound API call"
    )
    tool_name_prefix: str = Field(
        default="",
        description="Prefix prepended to every derived tool name"
    )

    # Credential
    api_key: str = Field(
        default="",
        description="Credential sent to the described API (optional)"
    )
    auth_header_name: str = Field(
        default="chave-api-dados",
        description="Header name carrying the credential"
    )
    credential_test_url: str = Field(
        default="",
        description="Reference endpoint for credential probes (empty: spec_url)"
    )
    credential_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the credential probe"
    )
    verify_credential_on_startup: bool = Field(
        default=False,
        description="Probe the configured credential once during startup"
    )

    # Server Configuration
    host: str = Field(
        default="0.0.0.0",
        description="Server host address"
    )

    port: int = Field(
        default=8000,
        description="Server port number"
    )
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    def get_cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment: development, production, test"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    @property
    def probe_url(self) -> str:
        """Endpoint used to test a credential."""
        return self.credential_test_url or self.spec_url

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_configuration(self) -> None:
        """Validate required configuration settings."""
        errors = []

        if not self.spec_url:
            errors.append("SPEC_URL environment variable is required")

        if not self.auth_header_name.strip():
            errors.append("AUTH_HEADER_NAME must not be blank")

        for name in ("spec_timeout_seconds", "request_timeout_seconds", "credential_timeout_seconds"):
            if getattr(self, name) <= 0:
                errors.append(f"{name.upper()} must be positive, got: {getattr(self, name)}")

        # Validate environment values
        valid_environments = {"development", "production", "test"}
        if self.environment not in valid_environments:
            errors.append(
                f"ENVIRONMENT must be one of {valid_environments}, "
                f"got: {self.environment}"
            )

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"LOG_LEVEL must be one of {valid_log_levels}, "
                f"got: {self.log_level}"
            )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {error}" for error in errors)
            )


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    settings = Settings()
    settings.validate_configuration()
    return settings
