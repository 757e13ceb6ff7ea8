from typing import Optional
from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProjectSettings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === Provider Keys ===
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None

    # === Model Defaults ===
    DEFAULT_EMBEDDING_MODEL: str = "text-embedding-ada-002"
    DEFAULT_CHAT_MODEL: str = "gpt-4o-mini"
    DEFAULT_ANTHROPIC_MODEL: str = "claude-3-5-sonnet-20240620"
    DEFAULT_CHAT_MAX_TOKENS: int = 1024

    # === Vector Store ===
    VECTOR_STORE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DATABASE: Optional[str] = None
    VECTOR_STORE_TABLE: str = "embeddings"
    VECTOR_STORE_POOL_SIZE: int = 5

    # === Pipeline Defaults ===
    DEFAULT_MAX_TOKENS_PER_CHUNK: int = 512
    DEFAULT_TOP_K: int = 4
    EMBEDDING_BATCH_SIZE: int = 64
    EMBEDDING_MAX_CONCURRENCY: int = 4
    CHUNKING_MAX_WORKERS: int = 4
    REQUEST_TIMEOUT_SECONDS: float = 60.0

    # === Logging ===
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @computed_field
    @property
    def POSTGRES_URL(self) -> Optional[str]:
        if self.VECTOR_STORE_URL:
            return self.VECTOR_STORE_URL
        if not (self.POSTGRES_USER and self.POSTGRES_DATABASE):
            return None
        password = f":{self.POSTGRES_PASSWORD}" if self.POSTGRES_PASSWORD else ""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}{password}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"
        )


settings = ProjectSettings()
