from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # App
    app_name: str = "CreatorHub Authorization"
    debug: bool = False

    # Decision cache
    decision_cache_enabled: bool = True
    decision_cache_ttl: int = 300  # seconds

    # Batch checks
    batch_max_workers: int = 8

    # Log every verdict at INFO
    audit_decisions: bool = False

    # Optional YAML role catalog replacing the built-in roles it names
    catalog_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_dir: str = "/var/log/creatorhub"
    file_logging: bool = False
    console_logging: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
