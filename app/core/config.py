from pathlib import Path
import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root

ENV_FILE = os.getenv("ENV_FILE", str(BASE_DIR / ".env"))

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"  # Comma-separated list of allowed origins, or "*" for all

    # Storage: empty values only fail when an upload is attempted
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    AVATAR_BUCKET: str = "form"
    AVATAR_UPLOAD_MODE: Literal["await", "background"] = "await"

    # Registration rules
    AVATAR_MAX_BYTES: int = 5 * 1024 * 1024
    REQUIRED_EMAIL_DOMAIN: str = "@gov.pt"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list, handling '*' for development"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

settings = Settings()
