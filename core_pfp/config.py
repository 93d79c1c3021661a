from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # General
    environment: str = Field(
        "development",
        validation_alias=AliasChoices("NODE_ENV", "APP_ENV"),
        description="'production' restricts CORS to cors_origins.",
    )
    version: str = "2.0.0"
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))

    # Server
    host: str = Field("0.0.0.0", validation_alias=AliasChoices("HOST"))
    port: int = Field(3000, validation_alias=AliasChoices("PORT", "DASHBOARD_PORT"))
    site_root: Path = Field(
        _PROJECT_ROOT / "site",
        validation_alias=AliasChoices("SITE_ROOT"),
        description="Directory holding index.html and the rest of the static site.",
    )
    cors_origins: list[str] = Field(
        default=["https://corecoreonsol.vercel.app"],
        validation_alias=AliasChoices("CORS_ORIGINS"),
    )

    # Transform provider
    transform_provider: str = Field("openai", validation_alias=AliasChoices("TRANSFORM_PROVIDER"))
    openai_api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("OPENAI_API_KEY"))
    openai_image_model: str = Field("gpt-image-1", validation_alias=AliasChoices("OPENAI_IMAGE_MODEL"))
    transform_timeout: float = Field(30.0, validation_alias=AliasChoices("TRANSFORM_TIMEOUT"))
    fetch_timeout: float = Field(15.0, validation_alias=AliasChoices("FETCH_TIMEOUT"))
    max_concurrent_transforms: int = Field(
        4,
        ge=1,
        validation_alias=AliasChoices("MAX_CONCURRENT_TRANSFORMS"),
    )
    transform_slot_timeout: float = Field(
        60.0,
        validation_alias=AliasChoices("TRANSFORM_SLOT_TIMEOUT"),
        description="Seconds a request may wait for a free provider slot.",
    )

    # Uploads / image processing
    max_upload_bytes: int = Field(15 * 1024 * 1024, validation_alias=AliasChoices("MAX_UPLOAD_BYTES"))
    image_size: int = Field(1024, validation_alias=AliasChoices("IMAGE_SIZE"), description="Square edge in pixels.")
    jpeg_quality: int = Field(85, ge=1, le=100, validation_alias=AliasChoices("JPEG_QUALITY"))
    png_compress_level: int = Field(6, ge=0, le=9, validation_alias=AliasChoices("PNG_COMPRESS_LEVEL"))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def output_size(self) -> str:
        return f"{self.image_size}x{self.image_size}"


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
