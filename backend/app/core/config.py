import os
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _build_default_database_url() -> str:
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "aetlicencas")
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    PROJECT_NAME: str = "AET Licenças API"
    API_V1_STR: str = "/api/v1"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "dev-secret-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    SEED_ENABLED: bool = True
    MASTER_EMAIL: str = "admin@example.com"
    MASTER_PASSWORD: str = "admin123"
    MASTER_NAME: str = "Administrador"
    MASTER_ROLES: str = "ADMIN"

    DATABASE_URL: str = Field(default_factory=_build_default_database_url)
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    # Arquivos de licenças e boletos
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_MB: int = 10

    # Regras de negócio
    RENEWAL_WINDOW_DAYS: int = 60
    EXPIRING_SOON_DAYS: int = 30

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_cors_origins(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @field_validator("SECRET_KEY")
    @classmethod
    def _validate_secret_key(cls, value, info):
        env = str(info.data.get("ENV", "dev")).lower()
        if env != "dev" and (not value or value == "dev-secret-change-me"):
            raise ValueError("SECRET_KEY must be set in non-dev environments")
        return value

    @field_validator("SEED_ENABLED")
    @classmethod
    def _validate_seed_enabled(cls, value, info):
        env = str(info.data.get("ENV", "dev")).lower()
        if env != "dev" and value:
            raise ValueError("SEED_ENABLED must be false in non-dev environments")
        return value

    @field_validator("RENEWAL_WINDOW_DAYS", "EXPIRING_SOON_DAYS")
    @classmethod
    def _validate_positive_days(cls, value):
        if value < 0:
            raise ValueError("day windows must not be negative")
        return value


settings = Settings()
