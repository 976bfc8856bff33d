"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from kopikita.config import get_settings

    settings = get_settings()
    print(settings.llm.model)
    print(settings.database.url)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SCHEMA_TABLES = [
    "Customer",
    "Tag",
    "Product",
    "Sale",
    "CustomerTag",
    "PromoIdeaTag",
    "PromoIdeaProduct",
]


class LLMSettings(BaseSettings):
    """Model endpoint configuration (any OpenAI-compatible chat completions API)."""

    api_key: str | None = Field(None, description="API key for the model endpoint")
    base_url: str | None = Field(
        None,
        description="Base URL of an OpenAI-compatible endpoint (None = api.openai.com)",
    )
    model: str = Field(
        default="meta/llama-3.1-8b-instruct",
        description="Model identifier used for every agent run",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses (0.0 = deterministic)",
    )
    max_tokens: int = Field(
        default=2000,
        gt=0,
        le=16000,
        description="Maximum tokens per LLM response",
    )
    timeout: int = Field(
        default=60,
        gt=0,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Transport-level retries performed by the SDK",
    )

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("api_key", "base_url", mode="before")
    @classmethod
    def normalize_empty(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)


class DatabaseSettings(BaseSettings):
    """Target database configuration."""

    url: str | None = Field(
        None,
        description="PostgreSQL connection URL of the CRM database",
    )
    pool_size: int = Field(
        default=5,
        gt=0,
        le=20,
        description="Database connection pool size",
    )
    statement_timeout: int = Field(
        default=15,
        gt=0,
        description="Per-statement timeout in seconds",
    )
    schema_name: str = Field(
        default="public",
        description="Schema holding the CRM tables",
    )
    schema_tables: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SCHEMA_TABLES),
        description="Tables described to the model (introspection allow-list)",
    )
    sample_rows: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Sample rows rendered per table in the schema description",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate supported database URL schemes."""
        if v is None:
            return v
        parsed = urlparse(v)
        scheme = parsed.scheme.split("+")[0].lower() if parsed.scheme else ""
        if scheme not in {"postgres", "postgresql"}:
            raise ValueError("DATABASE_URL must use the postgresql scheme.")
        if not parsed.hostname:
            raise ValueError("DATABASE_URL must include a host.")
        return v

    @field_validator("schema_tables", mode="before")
    @classmethod
    def split_tables(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string as well as a JSON list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class AgentSettings(BaseSettings):
    """Step, row and time budgets for each agent call site."""

    chat_row_limit: int = Field(default=5, ge=1, le=100)
    chat_max_steps: int = Field(default=8, ge=1, le=50)
    chat_timeout_seconds: float | None = Field(default=45.0, gt=0)
    chat_history_window: int = Field(
        default=6,
        ge=0,
        le=12,
        description="Most recent conversation turns forwarded to the model",
    )

    promo_row_limit: int = Field(default=20, ge=1, le=200)
    promo_max_steps: int = Field(default=15, ge=1, le=60)
    promo_timeout_seconds: float | None = Field(default=120.0, gt=0)

    seed_max_steps: int = Field(default=60, ge=1, le=200)
    seed_timeout_seconds: float | None = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="AGENT_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,  # Override any existing configuration
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, database, agent, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        AI_*: Model endpoint configuration (see LLMSettings)
        DATABASE_*: CRM database configuration (see DatabaseSettings)
        AGENT_*: Agent budgets (see AgentSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.agent.chat_row_limit
        5
        >>> settings.is_production
        False
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="KopiKita",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="API server port",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def model_post_init(self, __context) -> None:
        """Configure logging and log configuration on initialization."""
        self.logging.configure()
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "debug": self.debug,
                "llm_model": self.llm.model,
                "llm_configured": self.llm.is_configured,
                "database_configured": self.database.url is not None,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("KOPIKITA_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
