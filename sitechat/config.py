"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from sitechat.config import get_settings

    settings = get_settings()
    print(settings.llm.provider)
    print(settings.rag.chunk_size)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Chat and embedding provider configuration."""

    # Provider selection
    provider: Literal["openai", "anthropic", "google"] = Field(
        default="openai", description="Chat-completion provider for this deployment"
    )
    embedding_provider: Literal["openai", "google"] = Field(
        default="openai",
        description="Embedding provider (fixed per deployment; Anthropic has no embeddings API)",
    )

    # Chat models
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI chat model")
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022", description="Anthropic chat model"
    )
    google_model: str = Field(default="gemini-1.5-flash", description="Gemini chat model")

    # Embedding models
    openai_embedding_model: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    google_embedding_model: str = Field(
        default="text-embedding-004", description="Gemini embedding model"
    )
    embedding_dimension: int = Field(
        default=1536,
        gt=0,
        le=8192,
        description="Vector length produced by the embedding model",
    )
    embedding_api_key: SecretStr | None = Field(
        None,
        description=(
            "Deployment-wide embedding key. When unset, the credential sent "
            "with each request is used for embeddings too."
        ),
    )

    google_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    # Common settings
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses (0.0 = deterministic)",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        le=16000,
        description="Maximum tokens per LLM response",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def embedding_model(self) -> str:
        """Embedding model name for the configured embedding provider."""
        if self.embedding_provider == "google":
            return self.google_embedding_model
        return self.openai_embedding_model


class VaultSettings(BaseSettings):
    """Credential vault configuration."""

    master_secret: SecretStr | None = Field(
        None,
        description="Master secret the symmetric vault key is derived from",
    )

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("master_secret", mode="before")
    @classmethod
    def normalize_secret(cls, v: str | SecretStr | None) -> str | SecretStr | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v


class StoreSettings(BaseSettings):
    """System database configuration (configs, connections, allowlists, documents)."""

    database_url: str | None = Field(
        None,
        description="PostgreSQL URL of the system database",
    )
    database_url_encrypted: str | None = Field(
        None,
        description="Vault envelope of the system database URL (alternative to database_url)",
    )
    pool_size: int = Field(
        default=5,
        gt=0,
        le=20,
        description="Connection pool size",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("database_url", "database_url_encrypted", mode="before")
    @classmethod
    def normalize_url(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("database_url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Only PostgreSQL is supported for the system database."""
        if v is None:
            return v
        scheme = v.split("://", 1)[0].split("+")[0].lower()
        if scheme not in {"postgres", "postgresql"}:
            raise ValueError("STORE_DATABASE_URL must use the postgresql scheme.")
        return v


class ChromaSettings(BaseSettings):
    """Chroma vector store configuration."""

    persist_dir: Path = Field(
        default=Path("./chroma_data"),
        description="Directory for Chroma persistence",
    )
    collection_prefix: str = Field(
        default="sitechat_chunks",
        description="Prefix of the per-embedding-model chunk collections",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHROMA_",
        env_file=".env",
        extra="ignore",
    )


class RAGSettings(BaseSettings):
    """Ingestion and retrieval tuning."""

    chunk_size: int = Field(default=500, gt=0, le=8192, description="Tokens per chunk")
    chunk_overlap: int = Field(default=50, ge=0, description="Tokens shared by neighbouring chunks")
    tokenizer_encoding: str = Field(
        default="cl100k_base", description="tiktoken encoding used for chunking"
    )
    match_threshold: float = Field(
        default=0.7,
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity for a chunk to count as context",
    )
    match_count: int = Field(default=5, gt=0, le=50, description="Maximum context chunks")
    min_content_chars: int = Field(
        default=40,
        ge=0,
        description="Extracted pages shorter than this are rejected as insufficient content",
    )
    fetch_timeout: float = Field(default=15.0, gt=0, description="Page fetch timeout in seconds")
    user_agent: str = Field(
        default="sitechat-ingest/0.1", description="User-Agent header for page fetches"
    )
    embed_concurrency: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Parallel embedding calls during ingestion (1 = sequential)",
    )

    model_config = SettingsConfigDict(
        env_prefix="RAG_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_chunk_overlap(self) -> "RAGSettings":
        """Ensure chunk overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log messages",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path (None = console only)",
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
    Settings are nested by domain (llm, vault, store, chroma, rag, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        CORS_ORIGINS: Comma-separated origins allowed to call the API
        LLM_*: Provider configuration (see LLMSettings)
        VAULT_*: Credential vault configuration (see VaultSettings)
        STORE_*: System database configuration (see StoreSettings)
        CHROMA_*: Vector store configuration (see ChromaSettings)
        RAG_*: Ingestion/retrieval configuration (see RAGSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.llm.provider
        'openai'
        >>> settings.rag.chunk_size
        500
    """

    # Application settings
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="SiteChat",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="API server port",
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated CORS origins (the widget is embedded on arbitrary sites)",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    vault: VaultSettings = Field(default_factory=VaultSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    chroma: ChromaSettings = Field(default_factory=ChromaSettings)
    rag: RAGSettings = Field(default_factory=RAGSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "llm_provider": self.llm.provider,
                "embedding_provider": self.llm.embedding_provider,
                "vault_configured": self.vault.master_secret is not None,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("SITECHAT_ENV_SOURCE", "dotenv").lower()
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
