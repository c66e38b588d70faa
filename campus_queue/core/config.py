from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROJECT_NAME: str = "Campus Queue"
    API_V1_PREFIX: str = "/api/v1"

    DATABASE_URL: str = Field(...)
    REDIS_URL: Optional[str] = Field(default=None)
    AUTO_CREATE_SCHEMA: bool = Field(default=True)

    JWT_SECRET_KEY: str = Field(...)
    JWT_REFRESH_SECRET_KEY: str = Field(...)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30, ge=1)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=14, ge=1)

    ENTRY_SERVICE_MINUTES: int = Field(default=5, ge=1)
    CALL_RESPONSE_TIMEOUT_MINUTES: int = Field(default=5, ge=1)
    SWEEPER_ENABLED: bool = Field(default=True)
    SWEEP_INTERVAL_SECONDS: int = Field(default=60, ge=1)

    ACCESS_CODE_LENGTH: int = Field(default=8, ge=4, le=32)
    DIRECTORY_CACHE_TTL_SECONDS: int = Field(default=30, ge=1)

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    ENVIRONMENT: str = Field(default="development")

    CORS_ORIGINS: str = Field(default="*")
    INTERNAL_DOCS_SECRET: Optional[str] = Field(default=None)

    DEFAULT_ADMIN_NAME: str = Field(default="Department Admin")
    DEFAULT_ADMIN_EMAIL: Optional[str] = Field(default=None)
    DEFAULT_ADMIN_PASSWORD: Optional[str] = Field(default=None)
    SEED_SAMPLE_STAFF: bool = Field(default=False)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def strip_cors_origins(cls, v: str | None) -> str:
        if v is None:
            return ""
        # Remove quotes if present
        return str(v).strip().strip('"\'')

    @property
    def cors_origins(self) -> list[str]:
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


load_dotenv(ENV_FILE)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
