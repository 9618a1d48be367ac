"""
RWA Lens Configuration.

Pydantic Settings v2: loads from .env, environment variables.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rwalens import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "RWA Lens"
    app_version: str = __version__
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # ── API ───────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=5000, alias="API_PORT")
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    # ── Storage ──────────────────────────────────────────────────────────
    # "sql" uses the database below, "memory" keeps everything in-process
    storage_backend: str = Field(default="sql", alias="STORAGE_BACKEND")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./rwalens.db",
        alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")

    # ── LLM (text completion service) ────────────────────────────────────
    llm_provider: str = Field(default="openai", alias="LLM_PROVIDER")
    llm_api_key: str = Field(default="", alias="LLM_API_KEY")
    llm_base_url: str = Field(default="", alias="LLM_BASE_URL")
    llm_model: str = Field(default="gpt-5", alias="LLM_MODEL")
    llm_max_tokens: int = Field(default=2048, alias="LLM_MAX_TOKENS")
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_breaker_failure_threshold: int = Field(default=3, alias="LLM_BREAKER_FAILURE_THRESHOLD")
    llm_breaker_recovery_seconds: float = Field(default=60.0, alias="LLM_BREAKER_RECOVERY_SECONDS")

    # ── Analysis worker ──────────────────────────────────────────────────
    analysis_queue_size: int = Field(default=100, alias="ANALYSIS_QUEUE_SIZE")

    # ── Seeding ──────────────────────────────────────────────────────────
    seed_sample_data: bool = Field(default=False, alias="SEED_SAMPLE_DATA")

    # ── Operational ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
