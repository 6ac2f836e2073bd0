"""Application settings loaded from environment variables."""

from fastapi import Request
from pydantic import field_validator
from pydantic_settings import BaseSettings

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    # Supabase
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SUPABASE_ANON_KEY: str

    # JWT
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    JWT_ADMIN_TOKEN_EXPIRE_HOURS: int = 24
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Password reset
    PASSWORD_RESET_REDIRECT_URL: str = ""

    # Storage
    MODEL_BUCKET: str = "3d-Dental-Model"
    SIGNED_URL_EXPIRE_SECONDS: int = 600
    UPLOAD_DIR: str = "uploads"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @field_validator("JWT_SECRET")
    @classmethod
    def _secret_strength(cls, value: str) -> str:
        if len(value) < MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters")
        return value

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_settings() -> Settings:
    """Build settings once at start-up; missing or weak values fail here."""
    return Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
