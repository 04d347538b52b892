"""
VendorHub Media Backend — Application Configuration
=====================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Note:
    The image size policies (logo / document / servicePhoto) are NOT settings.
    They are a fixed product contract and live in `vendorhub.imaging.policy`.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Attributes are grouped by concern for readability.
    """

    # ── File Storage ──────────────────────────────────────────────────────
    # What: Directory holding normalized uploads, relative to backend CWD
    storage_root: str = Field(default="./uploads")

    # What: URL path the storage directory is mounted under
    uploads_url_path: str = Field(default="/uploads")

    # What: Public origin used when building image URLs (e.g. https://cdn.example.com)
    # Empty: the request's own scheme://host is used instead
    public_base_url: str = Field(default="")

    # What: Maximum accepted size of a raw (pre-normalization) upload in bytes
    # Default: 10MB; valid range 1MB to 50MB
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def public_base_url_normalized(self) -> str:
        """Configured public origin without a trailing slash ('' when unset)."""
        return self.public_base_url.strip().rstrip("/")

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("uploads_url_path")
    @classmethod
    def validate_uploads_url_path(cls, v: str) -> str:
        """Mount paths need a single leading slash and no trailing slash."""
        path = "/" + v.strip().strip("/")
        if path == "/":
            raise ValueError("uploads_url_path cannot be the site root")
        return path

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance, imported throughout the application
settings = Settings()
