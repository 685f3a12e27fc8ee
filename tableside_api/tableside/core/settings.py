from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from tableside.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Tableside API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for a multi-restaurant QR ordering platform. "
            "Menus, orders, staff, inventory and procurement with realtime order feeds."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed a demo restaurant after migrations.",
    )

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    # Auth
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 14)
    PASSWORD_RESET_EXPIRE_MINUTES: int = Field(default=60)
    PASSWORD_HASH_ROUNDS: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor used for new password hashes."
    )

    # Staff
    INVITATION_EXPIRE_DAYS: int = Field(default=7)

    # Public links
    PUBLIC_APP_URL: str = Field(
        default="http://localhost:5173",
        description="Base URL of the customer-facing web app; QR codes and share links point here.",
    )
    PUBLIC_API_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL of this API; used to build public file URLs.",
    )

    # File storage
    STORAGE_DIR: str = Field(default="./storage", description="Root directory for uploaded files.")
    MAX_UPLOAD_BYTES: int = Field(default=20 * 1024 * 1024)

    # Orders
    RECENT_TABLE_ORDERS_HOURS: int = Field(
        default=2, description="Window for the public 'my table orders' feed."
    )

    # Automatically load from .env at runtime.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @property
    def exposes_debug_tokens(self) -> bool:
        """Password reset tokens are echoed back only outside production."""
        return (self.ENVIRONMENT or "").lower() in ("dev", "development", "test", "local")


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    A fresh instance per call keeps tests free to change the environment.
    """
    return AppSettings()
