"""Runtime configuration for RecycleRight."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    classification_api_url: str = Field(
        default="http://localhost:8000", description="Base URL of the classification service"
    )
    enrichment_api_url: str = Field(
        default="http://localhost:8001", description="Base URL of the reuse-suggestion service"
    )
    request_timeout_seconds: float = Field(default=12.0, gt=0)

    db_path: str = "recycleright.db"
    upload_dir: str = "uploads"
    upload_max_age_seconds: float = Field(default=3600.0, gt=0)
    postcode_key: str = "userPostcode"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="RECYCLERIGHT_", env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
