"""
Application configuration.
All sensitive values loaded from environment variables.
"""
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Google Sheets
    GOOGLE_SHEETS_SPREADSHEET_ID: str = ""
    # Either the JSON content of a service account key or a path to the key file
    GOOGLE_SHEETS_SERVICE_ACCOUNT_KEY: str = ""

    # Store backend: google or memory
    STORE_BACKEND: str = "google"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
