import os
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """Application settings."""
    # Base settings
    DEBUG: bool = False

    # CORS settings
    CORS_ORIGINS: List[str] = [
        "http://localhost:8000",  # Backend server
    ]

    # Google Play Developer API settings
    GOOGLE_PLAY_PACKAGE_NAME: str = os.getenv("GOOGLE_PLAY_PACKAGE_NAME", "")
    # Explicit Google Play credentials JSON path
    GOOGLE_PLAY_SERVICE_ACCOUNT_JSON: str = os.getenv("GOOGLE_PLAY_SERVICE_ACCOUNT_JSON", "./purchase-service-account.json")
    # Base64 licence key from Play Console (Monetization setup)
    GOOGLE_PLAY_PUBLIC_KEY: str = os.getenv("GOOGLE_PLAY_PUBLIC_KEY", "")

    # Rate limiting
    RATE_LIMIT_STORAGE_URI: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "1000/hour")

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()

# OAuth scope required by the androidpublisher API
ANDROID_PUBLISHER_SCOPE = "https://www.googleapis.com/auth/androidpublisher"
