# vozip/core/config.py
"""
Application settings loaded from environment variables (and .env).
"""
import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "data")
DEFAULT_DATABASE_FILE = os.path.join(DATA_DIR, "db", "vozip.sqlite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    secret_key: str
    app_env: str = "development"
    database_url: str = f"sqlite:///{DEFAULT_DATABASE_FILE}"
    allowed_origins: str = "http://localhost:4200"

    # --- Sesión ---
    jwt_algorithm: str = "HS256"
    access_token_lifetime_seconds: int = 28800  # 8 horas
    login_rate_limit: str = "10/minute"

    # --- Morosos ---
    delinquency_threshold: int = 3
    delinquency_reference_year: int = 2024
    delinquency_excluded_status_ids: list[int] = [2, 3]

    # --- Bitácora ---
    audit_retention_days: int = 90
    audit_cleanup_hour: str = "03:00"

    # --- Bootstrap ---
    admin_username: str | None = None
    admin_password: str | None = None
    admin_national_id: str = "0000000000"

    @field_validator("secret_key")
    @classmethod
    def _secret_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("FATAL: SECRET_KEY not configured")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
