"""
Rubrik Review Desk - Configuration Module
=========================================
All configuration is loaded from environment variables.
No hardcoded secrets.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    # App
    app_name: str = "Rubrik Review Desk"
    app_env: str = "development"
    app_debug: bool = True
    app_secret_key: str = Field(..., min_length=32)
    app_port: int = 8000

    @property
    def secret_key(self) -> str:
        return self.app_secret_key

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "rubrik_desk"
    postgres_user: str = "rubrik"
    postgres_password: str = Field(..., min_length=8)
    db_pool_size: int = 20
    db_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # MinIO (cover images)
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "rubrik-covers"
    minio_use_ssl: bool = False
    minio_public_base_url: str = ""

    @property
    def blob_public_base_url(self) -> str:
        if self.minio_public_base_url:
            return self.minio_public_base_url.rstrip("/")
        scheme = "https" if self.minio_use_ssl else "http"
        return f"{scheme}://{self.minio_endpoint}/{self.minio_bucket}"

    # Articles
    cover_max_upload_mb: int = 10
    keyword_max_length: int = 64
    article_list_limit: int = 200

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = "RUBRIK_DESK_"


def _load_dotenv_pairs(dotenv_path: str = ".env") -> dict[str, str]:
    path = Path(dotenv_path)
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            values[key] = value
    return values


def _bootstrap_prefixed_env() -> None:
    """Populate RUBRIK_DESK_ vars from un-prefixed keys for backward compatibility."""
    legacy_pairs = _load_dotenv_pairs(".env")
    prefix = "RUBRIK_DESK_"

    for field_name in Settings.model_fields.keys():
        legacy_key = field_name.upper()
        prefixed_key = f"{prefix}{legacy_key}"

        if os.getenv(prefixed_key):
            continue

        legacy_value = os.getenv(legacy_key)
        if legacy_value is not None:
            os.environ[prefixed_key] = legacy_value
            continue

        if legacy_key in legacy_pairs:
            os.environ[prefixed_key] = legacy_pairs[legacy_key]


_bootstrap_prefixed_env()


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
