"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


# Placeholder signing secret for local development only.
# Startup refuses to run in production while this value is in use.
DEFAULT_SESSION_SECRET = "ambient-frames-dev-secret-change-this"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Ambient Frames Studio API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the studio website, bookings and admin dashboard"
    ENVIRONMENT: str = "development"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    # Any async SQLAlchemy URL, e.g. postgresql+asyncpg://... or sqlite+aiosqlite:///./studio.db
    DATABASE_URL: str = ""
    AUTO_CREATE_TABLES: bool = True

    # Cloudinary Configuration (page imagery)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_ROOT_FOLDER: str = "ambient-frames"

    # Backblaze B2 Configuration (event photo originals, S3-compatible API)
    B2_APPLICATION_KEY_ID: str = ""
    B2_APPLICATION_KEY: str = ""
    B2_BUCKET: str = ""
    # e.g. https://s3.us-west-004.backblazeb2.com
    B2_S3_ENDPOINT: str = ""
    # Optional public/CDN base for photo URLs; falls back to <endpoint>/<bucket>
    B2_PUBLIC_BASE_URL: str = ""

    # Session Configuration
    # SESSION_SECRET should be a long random string (e.g., generated with: openssl rand -hex 32)
    SESSION_SECRET: str = DEFAULT_SESSION_SECRET
    SESSION_COOKIE_NAME: str = "admin_session"
    SESSION_TTL_SECONDS: int = 60 * 60 * 24

    # JSON document stores
    IMAGE_CONFIG_PATH: str = "data/cloudinary_images.json"
    GALLERY_DATA_PATH: str = "data/gallery.json"
    PROJECTS_DATA_PATH: str = "data/projects.json"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "5/minute"

    # Seed script only
    ADMIN_USERNAME: str = ""
    ADMIN_PASSWORD: str = ""

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
