"""Application configuration using Pydantic Settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "interview-coach"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    require_token: bool = True

    # Logging
    log_level: str = "INFO"

    # Response generator configuration
    response_generator_type: str = "simple"  # "simple" or "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    generation_timeout_seconds: float = 30.0

    # Transcript store configuration
    transcript_store_type: str = "local"  # "local", "http" or "dynamodb"
    transcript_store_url: str = "http://localhost:5001"
    transcript_store_timeout_seconds: float = 10.0
    auth_header_name: str = "x-auth-token"

    # AWS settings for the DynamoDB store
    aws_region: str = "us-west-2"
    interviews_table_name: str = "Interviews"

    # Proctoring and speech
    motion_interval_seconds: float = 0.1
    motion_channel_threshold: int = 20
    capture_timeout_seconds: float = 30.0
    playback_timeout_seconds: float = 120.0


# Create a singleton instance
settings = Settings()
