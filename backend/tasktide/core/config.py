from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    database_url: str = Field(default="sqlite:///./tasktide.db")
    log_level: str = Field(default="INFO")

    # Recurring task scheduler
    enable_scheduler: bool = Field(default=False)
    # Set while building images / static assets so the scheduler never starts
    build_phase: bool = Field(default=False)
    scheduler_interval_seconds: int = Field(default=60 * 60, ge=1)
    scheduler_min_run_interval_seconds: int = Field(default=50 * 60, ge=0)
    scheduler_lock_id: str = Field(default="recurring-task-scheduler")

    maintenance_token: str | None = Field(default=None)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
