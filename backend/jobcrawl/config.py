from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/jobs.db"
    environment: str = "development"
    log_level: str = "INFO"

    # Postgres connection pool
    db_pool_size: int = 20
    db_pool_timeout: float = 2.0

    # Browser configuration
    # None means "derive from environment" (headless in production)
    browser_headless: Optional[bool] = None
    browser_executable_path: Optional[str] = None
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    accept_language: str = "en-US,en;q=0.9"
    navigation_timeout_ms: int = 60000
    # Overrides every extractor's own page ceiling when set
    max_pages: Optional[int] = None

    # Retention
    retention_days: int = 30
    cleanup_interval_hours: int = 24

    # Email alerts
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    email_user: str = ""
    email_pass: str = ""
    email_from_name: str = "Job Crawler"

    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
