from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "https://recipesnap.vercel.app"],
    )

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    SCRAPE_API_URL: str = "https://api.firecrawl.dev/v1/scrape"
    SCRAPE_API_KEY: str = ""
    HTTP_TIMEOUT_SECONDS: float = 30.0

    SOCIAL_EXTRACTOR_BIN: str = "yt-dlp"
    SOCIAL_EXTRACTOR_TIMEOUT: float = 60.0

    STORAGE_BACKEND: Literal["supabase", "r2"] = "supabase"
    STORAGE_BUCKET: str = "recipes"
    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[str] = None
    R2_PUBLIC_URL: Optional[str] = None

    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    IMAGE_JPEG_QUALITY: int = Field(default=90, ge=1, le=100)
    SHARE_TTL_DAYS: int = 30
    SHARE_BASE_URL: str = "https://recipesnap.vercel.app/share"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in {"prod", "production"}


settings = Settings()
