"""
Settings for Hansard Digest.

Each concern reads its own environment prefix (``DB_``, ``HANSARD_``,
``OPENAI_``, ``PROCESSING_``, ``APP_``); ``DATABASE_URL`` overrides the
individual database parts when a platform provides one.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    driver: str = Field(default="postgresql+asyncpg")
    host: str = Field(default="localhost")
    port: Optional[int] = Field(default=5432)
    database: str = Field(default="hansard_digest")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    pool_size: int = Field(default=5)
    max_overflow: int = Field(default=10)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=3600)

    echo: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def connection_string(self) -> str:
        """SQLAlchemy URL, forcing the asyncpg driver onto Postgres URLs."""
        if self.database_url:
            scheme, _, rest = self.database_url.partition("://")
            if scheme in ("postgres", "postgresql"):
                scheme = "postgresql+asyncpg"
            return f"{scheme}://{rest}"

        credentials = self.username or ""
        if self.username and self.password:
            credentials += f":{self.password}"
        location = self.host if self.port is None else f"{self.host}:{self.port}"
        prefix = f"{credentials}@" if credentials else ""
        return f"{self.driver}://{prefix}{location}/{self.database}"


class HansardConfig(BaseSettings):
    """Hansard records API (hansard-api.parliament.uk)."""

    base_url: str = Field(default="https://hansard-api.parliament.uk")
    timeout_seconds: int = Field(default=30)
    rate_limit_per_second: float = Field(default=5.0)
    max_retries: int = Field(default=3)

    model_config = SettingsConfigDict(
        env_prefix="HANSARD_",
        case_sensitive=False,
        extra="ignore"
    )


class OpenAIConfig(BaseSettings):
    """Chat completions, file upload and vector stores share one provider."""

    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-4o-mini")
    assistant_model: str = Field(default="gpt-4o")
    embedding_model: str = Field(default="text-embedding-3-small")
    timeout_seconds: float = Field(default=120.0)

    # Full-corpus index, never rotated
    permanent_vector_store_id: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        case_sensitive=False,
        extra="ignore"
    )


class ProcessingConfig(BaseSettings):
    batch_size: int = Field(default=10, ge=1)
    batch_delay_seconds: float = Field(default=1.0, ge=0.0)

    # Statement timeout retries on upsert
    upsert_max_retries: int = Field(default=3, ge=0)
    upsert_retry_delay_seconds: float = Field(default=2.0, ge=0.0)

    # Transcript budget before prioritised trimming kicks in
    max_context_words: int = Field(default=75000, ge=1)

    vector_poll_interval_seconds: float = Field(default=1.0, ge=0.0)
    vector_poll_max_attempts: int = Field(default=60, ge=1)

    # Member sync paging against /search/members.json
    member_page_size: int = Field(default=50, ge=1)
    member_page_delay_seconds: float = Field(default=1.0, ge=0.0)

    enable_ai: bool = Field(default=True)
    enable_vector_index: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="PROCESSING_",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig(BaseSettings):
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore"
    )


class Settings(BaseSettings):
    """
    Every settings group, read from the environment and ``.env``.

    Tests and scripts can override a group directly:

        Settings(processing=ProcessingConfig(batch_size=5))
    """

    app: AppConfig = Field(default_factory=AppConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    hansard: HansardConfig = Field(default_factory=HansardConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
