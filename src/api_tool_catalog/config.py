"""Application settings loaded from the environment (prefix ``API_CATALOG_``)."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the catalog store, the sync source and the API transport."""

    model_config = SettingsConfigDict(
        env_prefix="API_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Catalog store
    catalog_dir: Path = Path("tools-generated")
    chunk_prefix: str = "tools-"
    chunk_suffix: str = ".json"
    chunk_count: int = Field(default=20, ge=1)
    max_chunk_entries: int = Field(default=20, ge=1)

    # Live API description (URL or local file)
    swagger_source: str = "def/swagger.json"
    sync_timeout: float = 30.0

    # Transport
    api_base_url: str = "http://localhost:8080"
    api_token: str = ""
    request_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None


settings = Settings()
