"""
Ziron configuration using Pydantic Settings.

Shared by the API process and the worker process so both resolve the same
database and broker.
"""

import logging
import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or a local `.env`).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Ziron Dispatch API"
    app_version: str = "1.0.0"
    debug: bool = False
    testing: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8001

    # Database
    database_url: str = ""
    sql_echo: bool = False

    # Redis / queue
    redis_host: str = ""
    redis_port: int = 6379
    redis_url: str = ""
    queue_backend: str = "redis"  # "redis" | "memory"
    queue_name: str = "queue"
    queue_key_prefix: str = "ziron"
    notification_channel: str = "notifications"
    cache_backend: str = ""  # defaults to queue_backend

    # Retention sweeps
    retention_days: int = 30
    scheduler_enabled: bool = True
    scheduler_timezone: str = "UTC"
    retention_sweep_hour: int = 3

    # CORS
    cors_origins: str = "*"

    # Error handling
    expose_error_details: bool = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        if os.getenv("TESTING", "").lower() in ("true", "1", "yes"):
            self.testing = True

        if not self.database_url:
            base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
            db_name = "ziron_test.db" if self.testing else "ziron.db"
            self.database_url = f"sqlite:///{os.path.join(base_dir, 'instance', db_name)}"

        if not self.redis_url and self.redis_host:
            self.redis_url = f"redis://{self.redis_host}:{self.redis_port}"

        # Lower-level database helpers read DATABASE_URL directly.
        os.environ.setdefault("DATABASE_URL", self.database_url)

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def uses_memory_queue(self) -> bool:
        return self.queue_backend.strip().lower() == "memory"

    @property
    def uses_memory_cache(self) -> bool:
        return (self.cache_backend or self.queue_backend).strip().lower() == "memory"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.
    """
    return Settings()


def configure_logging(level: str = "") -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
