from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./finboard.db"
    db_echo: bool = False
    auto_create_schema: bool = True

    # Ingestion
    ingest_chunk_size: int = 200
    ingest_timeout_seconds: float = 60
    ingest_commit_mode: str = "atomic"
    default_filename: str = "arquivo.csv"

    # Categorization
    transfer_counterparties: list[str] = ["fernanda nunes", "marta rodrigues"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
