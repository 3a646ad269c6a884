"""Runtime configuration, read from ``TOPOLOGY_*`` environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TOPOLOGY_", env_file=".env", extra="ignore")

    api_base_url: str = "http://localhost:8080"
    request_timeout: float = 30.0
    catalog_ttl: float | None = 300.0
    log_level: str = "INFO"

    server_host: str = "0.0.0.0"
    server_port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
