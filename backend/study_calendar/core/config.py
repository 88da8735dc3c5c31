from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    database_url: str = Field(default="sqlite:///./study_calendar.db")
    log_level: str = Field(default="INFO")

    # Scheduling window, in the user's local wall-clock hours
    work_start_hour: int = Field(default=9, ge=0, le=23)
    work_end_hour: int = Field(default=20, ge=1, le=24)
    reschedule_horizon_days: int = Field(default=14, ge=1)
    fallback_window_days: int = Field(default=7, ge=1)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
