"""
Core settings and environment variables for Trinetra.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Trinetra Child Alert"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Firebase (Firestore, Storage, Auth)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    FIREBASE_WEB_API_KEY: Optional[str] = None  # Needed for password sign-in (Identity Toolkit REST)

    # Mock DB mode for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: str = "./mock_db.json"

    # Authentication
    # - AUTH_PROVIDER: "firebase" or "mock" (defaults to mock when USE_MOCK_DB is on)
    # - Usernames are mapped to emails as {username}@{AUTH_EMAIL_DOMAIN}
    AUTH_PROVIDER: Optional[str] = None
    AUTH_EMAIL_DOMAIN: str = "trinetra.app"
    AUTH_TIMEOUT_SECONDS: float = 10.0
    MIN_PASSWORD_LENGTH: int = 6

    # Evidence (photo) policy
    EVIDENCE_MAX_BYTES: int = 1048576  # 1 MiB, larger uploads are recompressed
    EVIDENCE_MAX_DIMENSION: int = 1080  # Longer edge after recompression
    EVIDENCE_QUALITY: int = 80
    EVIDENCE_CACHE_SECONDS: int = 3600

    # Kiosk camera device indexes per facing mode
    CAMERA_ENVIRONMENT_INDEX: int = 0
    CAMERA_USER_INDEX: int = 1

    # Listing limits
    RESOLVED_ALERTS_LIMIT: int = 20
    RECENT_SIGHTINGS_LIMIT: int = 100

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def auth_provider_name(self) -> str:
        if self.AUTH_PROVIDER:
            return self.AUTH_PROVIDER.lower()
        return "mock" if self.USE_MOCK_DB else "firebase"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
