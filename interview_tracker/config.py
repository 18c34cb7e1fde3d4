# interview_tracker/config.py

from __future__ import annotations
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Core ---
    APP_NAME: str = "Interview Tracker API"
    SECRET_KEY: str = Field("change-me", description="JWT signing key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, ge=5, le=60 * 24 * 30)
    DEBUG: bool = True  # set False in prod
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./interview_tracker.db")
    # alembic/env.py reads DATABASE_URL straight from the environment

    # --- Browser client (CORS) ---
    CLIENT_URL: str = "http://localhost:5173"

    # --- Reminder sweep ---
    REMINDER_SWEEP_ENABLED: bool = True
    REMINDER_SWEEP_INTERVAL_MINUTES: int = Field(60, ge=1)
    # Shared secret for the external cron trigger; falls back to SECRET_KEY
    CRON_SECRET: str | None = None

    # --- Dashboard ---
    DASHBOARD_MONTHS: int = Field(12, ge=1, le=60)

    # Insert the default stage templates on startup when none exist
    SEED_TEMPLATES: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
