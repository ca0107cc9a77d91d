"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    OPENAI_API_KEY: Bearer token for the embedding and generation endpoints
    OPENAI_BASE_URL: Base URL of the OpenAI-compatible API
    EMBEDDING_MODEL: Model used to embed document chunks and queries
    LLM_MODEL: Chat model used to compose answers
    CHUNK_SIZE: Character size for document chunks
    CHUNK_OVERLAP: Overlap between chunks
    RETRIEVAL_TOP_K: Number of chunks used to ground an answer
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Bearer token for the embedding and chat completion endpoints",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible API",
    )

    # ==========================================================================
    # Model Configuration
    # ==========================================================================
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model for document/query embeddings",
    )
    embedding_dimension: int = Field(
        default=1536,
        ge=1,
        description="Dimension of embedding vectors (must match model)",
    )
    embedding_batch_size: int = Field(
        default=2048,
        ge=1,
        description="Maximum number of texts per embedding request",
    )

    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used to compose answers",
    )
    llm_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperature for answer generation (0 = deterministic)",
    )
    llm_max_tokens: int = Field(
        default=500,
        ge=1,
        le=4096,
        description="Maximum tokens for a generated answer",
    )

    # ==========================================================================
    # HTTP Behaviour
    # ==========================================================================
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout in seconds for every embedding/generation request",
    )
    max_retries: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Total attempts per request on transient failures (2 = one retry)",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Delay in seconds before retrying a transient failure",
    )

    # ==========================================================================
    # Chunking Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Window size in characters for document chunks",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Overlap in characters between consecutive chunks",
    )

    # ==========================================================================
    # Retrieval Configuration
    # ==========================================================================
    retrieval_top_k: int = Field(
        default=3,
        ge=1,
        le=50,
        description="Number of chunks used to ground an answer",
    )
    max_concurrent_ingestions: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Documents ingested concurrently in one upload batch (1 = sequential)",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind API server",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for API server",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 1000)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("openai_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the base URL so endpoint paths can be appended."""
        return v.rstrip("/")

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def openai_api_key_value(self) -> Optional[str]:
        """Get the actual API key value (use sparingly)."""
        if self.openai_api_key:
            return self.openai_api_key.get_secret_value()
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
