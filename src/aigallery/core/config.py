"""Configuration management for AI Gallery.

All configuration is loaded from environment variables with the
``AIGALLERY_`` prefix, allowing deployment-specific values (database file,
session secret, OpenAI credentials) without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (AIGALLERY_* prefix)
2. .env file in the project root
3. Default values defined in GalleryConfig

Example .env file:
    AIGALLERY_DATABASE_PATH=data/ai-gallery.db
    AIGALLERY_SESSION_SECRET=change-me
    AIGALLERY_OPENAI_API_KEY=sk-...
    AIGALLERY_SERVER_PORT=3000

Global Configuration Instance
------------------------------
A global ``config`` instance is created at module import time and is the
single source of truth for the application.  Tests construct their own
``GalleryConfig`` (or pass explicit database paths) instead of mutating it.

Pagination
----------
Album listings show ``albums_per_page`` albums (5) and album pages show
``images_per_page`` images (3).  Both are configurable, but the page-count
arithmetic in :mod:`aigallery.core.gallery_store` never reports fewer than
one page regardless of the values chosen.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GalleryConfig(BaseSettings):
    """Main configuration for AI Gallery.

    Attributes
    ----------
    Storage:
        database_path : Path
            SQLite database file holding users, albums and images

    Pagination:
        albums_per_page : int
            Albums shown per page of the album listing
        images_per_page : int
            Images shown per page of a single album

    Sessions:
        session_secret : str
            Key used to sign the session cookie
        session_max_age_days : int
            Lifetime of the session cookie in days

    Image Generation:
        openai_api_key : str | None
            OpenAI API key; generation is unavailable without it
        image_model : str
            OpenAI image model identifier
        image_size : str
            Requested image size

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Bind port for uvicorn
        log_level : str
            Root logging level configured by ``main()``
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AIGALLERY_",
        case_sensitive=False,
    )

    # Storage
    database_path: Path = Field(
        default=Path("data/ai-gallery.db"),
        description="SQLite database file",
    )

    # Pagination
    albums_per_page: int = Field(default=5, ge=1, le=100)
    images_per_page: int = Field(default=3, ge=1, le=100)

    # Sessions
    session_secret: str = Field(
        default="dev-session-secret",
        description="Secret used to sign the session cookie",
    )
    session_max_age_days: int = Field(default=7, ge=1)

    # Image generation
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key used for image generation",
    )
    image_model: str = Field(
        default="dall-e-2",
        description="OpenAI image model",
    )
    image_size: Literal["256x256", "512x512", "1024x1024"] = Field(
        default="512x512",
        description="Size of generated images",
    )

    # Server
    server_host: str = Field(default="127.0.0.1")
    server_port: int = Field(default=3000, ge=1024, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    def __init__(self, **kwargs):
        """Initialize configuration and create the database directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.database_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = GalleryConfig()
