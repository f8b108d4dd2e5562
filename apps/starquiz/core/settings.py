from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = PACKAGE_ROOT / "data"
DEFAULT_PUBLIC_DIR = REPO_ROOT / "public"


class Settings(BaseSettings):
    """Unified application settings for starquiz.

    Loads from env with support for repo ".env" files.
    """

    _app_env = (os.getenv("APP_ENV") or "").strip().lower()
    _env_files = (
        []
        if _app_env in {"test", "ci"}
        else [
            str(PACKAGE_ROOT / ".env"),  # apps/starquiz/.env
            str(REPO_ROOT / ".env"),  # repo root .env
        ]
    )

    model_config = SettingsConfigDict(
        env_file=_env_files,
        case_sensitive=False,
        extra="ignore",
    )

    # --- App / Core ---
    app_env: str = Field(default="dev", alias="APP_ENV")
    app_name: str = Field(default="starquiz", alias="APP_NAME")
    host: str = Field(default="127.0.0.1", alias="STARQUIZ_HOST")
    port: int = Field(default=3000, alias="PORT", ge=1, le=65535)
    # Logging
    log_level: str | None = Field(default=None, alias="STARQUIZ_LOG_LEVEL")
    log_level_fallback: str | None = Field(default=None, alias="LOG_LEVEL")

    cors_allow_origins: list[str] = Field(default=["*"], alias="CORS_ALLOW_ORIGINS")

    # --- Source data ---
    constellations_path: Path = Field(
        default=DEFAULT_DATA_DIR / "constellations.json",
        alias="STARQUIZ_CONSTELLATIONS_PATH",
    )
    solar_system_path: Path = Field(
        default=DEFAULT_DATA_DIR / "solar_system.json",
        alias="STARQUIZ_SOLAR_SYSTEM_PATH",
    )

    # --- Static images ---
    public_dir: Path = Field(default=DEFAULT_PUBLIC_DIR, alias="STARQUIZ_PUBLIC_DIR")
    public_url_prefix: str = Field(default="/public", alias="STARQUIZ_PUBLIC_URL_PREFIX")
    chart_image_subdir: str = Field(
        default="images/constellations_iau", alias="STARQUIZ_CHART_IMAGE_SUBDIR"
    )
    photo_image_subdir: str = Field(default="images/planets", alias="STARQUIZ_PHOTO_IMAGE_SUBDIR")
    chart_credit: str = Field(
        default="IAU and Sky & Telescope magazine (CC BY 3.0)", alias="STARQUIZ_CHART_CREDIT"
    )
    photo_credit: str = Field(default="NASA / JPL", alias="STARQUIZ_PHOTO_CREDIT")

    @property
    def resolved_log_level(self) -> str | None:
        return self.log_level or self.log_level_fallback

    @property
    def chart_image_dir(self) -> Path:
        return self.public_dir / self.chart_image_subdir

    @property
    def photo_image_dir(self) -> Path:
        return self.public_dir / self.photo_image_subdir

    def public_url(self, subdir: str) -> str:
        return f"{self.public_url_prefix.rstrip('/')}/{subdir.strip('/')}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
