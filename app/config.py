"""Application configuration settings."""
from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Environnement d'exécution: "dev" | "staging" | "prod"
ENV = os.getenv("HERD_ENV", "dev").lower()


class Settings(BaseSettings):
    """Environment configuration for the herd alert engine."""

    app_env: str = ENV
    database_url: str = "sqlite:///herd_alerts.db"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000"]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = True
    ALLOW_DB_CREATE_ALL: bool = False

    # --- Scheduler -------------------------------------------------------
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_TIMEZONE: str = "America/Sao_Paulo"
    ALERT_EVALUATION_TIMEOUT_SECONDS: int = 120

    # --- Priority classifier ---------------------------------------------
    PRIORITY_CLASSIFIER_ENABLED: bool = False
    PRIORITY_CLASSIFIER_MODEL: str = "gpt-4.1-mini"
    PRIORITY_CLASSIFIER_TIMEOUT_SECONDS: int = 10
    PRIORITY_CLASSIFIER_RECOVERY_SECONDS: int = 300
    OPENAI_API_KEY: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8"
    )

    @field_validator("OPENAI_API_KEY", "SENTRY_DSN")
    @classmethod
    def _strip_empty_secret(cls, value: str | None) -> str | None:
        """Normalise empty secrets to ``None`` for easier validation."""

        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class AppInfo(BaseModel):
    name: str = "herd-alerts"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


__all__ = ["ENV", "Settings", "AppInfo", "get_settings"]
