"""
Configuration and settings for the servicehub backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, alias="SERVICEHUB_USE_IN_MEMORY_BACKENDS"
    )

    # Queue (Redis)
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    redis_queue_key: str = Field(
        default="servicehub:jobs", alias="REDIS_QUEUE_KEY"
    )

    # Auth: bearer JWTs issued by the identity provider. HS256 with a shared
    # secret unless a PEM public key is configured.
    jwt_secret: str = Field(default="dev-secret", alias="JWT_SECRET")
    jwt_public_key: Optional[str] = Field(default=None, alias="JWT_PUBLIC_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_issuer: Optional[str] = Field(default=None, alias="JWT_ISSUER")
    jwt_audience: Optional[str] = Field(default=None, alias="JWT_AUDIENCE")

    cors_allow_origins: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_ORIGINS"
    )

    # UploadThing proxy
    uploadthing_token: Optional[str] = Field(
        default=None, alias="UPLOADTHING_TOKEN"
    )
    uploadthing_api_url: str = Field(
        default="https://api.uploadthing.com/v6/uploadFiles",
        alias="UPLOADTHING_API_URL",
    )

    # Meta (Facebook / Instagram) app
    meta_app_id: Optional[str] = Field(default=None, alias="META_APP_ID")
    meta_app_secret: Optional[str] = Field(default=None, alias="META_APP_SECRET")
    meta_redirect_uri: Optional[str] = Field(
        default=None, alias="META_REDIRECT_URI"
    )
    meta_graph_version: str = Field(default="v19.0", alias="META_GRAPH_VERSION")
    meta_sync_limit: int = Field(default=10, alias="META_SYNC_LIMIT")

    # Where the OAuth callback sends the browser afterwards.
    frontend_url: str = Field(
        default="http://localhost:5173", alias="FRONTEND_URL"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
