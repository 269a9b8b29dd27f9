from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment and `.env`."""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    database_url: str = "sqlite:///./budgeteer.db"
    fernet_key: str = ""

    google_client_id: str = ""
    google_client_secret: str = ""

    gocardless_secret_id: str = ""
    gocardless_secret_key: str = ""
    gocardless_base_url: str = "https://bankaccountdata.gocardless.com/api/v2"
    gocardless_timeout: float = 20.0
    gocardless_country: str = "no"
    gocardless_log_file: Optional[str] = None

    public_base_url: str = "http://localhost:8000"
    environment: str = "development"
    sync_max_workers: int = 8
    transactions_page_size: int = 10
    cors_origins: str = "http://localhost:3000"  # comma separated
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
