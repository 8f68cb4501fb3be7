"""Configuration management using pydantic-settings"""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field, model_validator
from typing import Optional


ONE_MB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    port: int = 8080
    host: str = "0.0.0.0"

    # Database Configuration
    database_url: str = "sqlite:///./data/panel.db"

    # Application Configuration
    environment: str = Field(default="production", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"))
    log_level: str = Field(default="error", description="Log level: debug, info, warning, error (default: error for production)")
    public_app_url: Optional[str] = Field(default=None, description="Fallback app host when onboarding did not store one")

    # Session Configuration
    auth_secret: Optional[str] = Field(default=None, description="HMAC secret used to sign session tokens")
    session_cookie_name: str = "panel_session"
    onboarding_cookie_name: str = "panel_onboarding"
    token_ttl_seconds: int = Field(default=60 * 60 * 8, description="Session lifetime (8 hours)")
    onboarding_cache_ttl_seconds: int = Field(default=60, description="How long the onboarding status is cached")

    # Storage Configuration
    upload_url_ttl_seconds: int = Field(default=600, description="Lifetime of presigned upload URLs")
    max_upload_size_bytes: int = Field(default=5 * 1024 * ONE_MB, description="Hard ceiling for a single upload (5 GiB)")
    listing_max_keys: int = Field(default=1000, description="Maximum number of objects returned by a listing")
    recent_uploads_limit: int = 5

    # Activity Log Configuration
    activity_default_limit: int = 200
    activity_max_limit: int = 500

    # Upload confirmation thresholds (MB)
    upload_threshold_image_mb: int = 3
    upload_threshold_video_mb: int = 200
    upload_threshold_audio_mb: int = 120
    upload_threshold_pdf_mb: int = 60
    upload_threshold_text_mb: int = Field(default=30, description="Text threshold (10 or 30 MB depending on the screen)")
    upload_threshold_other_mb: int = 80

    # Upload client Configuration
    upload_chunk_size: int = Field(default=ONE_MB, description="Chunk size used when streaming uploads")
    panel_client_timeout: int = Field(default=3600, description="Total timeout for panel client requests (seconds)")

    @model_validator(mode="after")
    def set_environment_defaults(self) -> "Settings":
        """Set environment-specific defaults for log level"""
        if self.environment == "production" and not os.getenv("LOG_LEVEL"):
            # Default to error in production if not explicitly set
            self.log_level = "error"
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def upload_thresholds(self) -> dict:
        """Confirmation thresholds in bytes, keyed by file category"""
        return {
            "image": self.upload_threshold_image_mb * ONE_MB,
            "video": self.upload_threshold_video_mb * ONE_MB,
            "audio": self.upload_threshold_audio_mb * ONE_MB,
            "pdf": self.upload_threshold_pdf_mb * ONE_MB,
            "text": self.upload_threshold_text_mb * ONE_MB,
            "other": self.upload_threshold_other_mb * ONE_MB,
        }


# Global settings instance
settings = Settings()
