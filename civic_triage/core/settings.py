"""
Core settings and environment variables for Civic Triage.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Civic Triage"
    APP_VERSION: str = "0.1.0"
    APP_ENV: str = "development"  # "production" ignores DISABLE_ADMISSION_GATING
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory record store for local development and tests
    USE_MOCK_DB: bool = False

    # Admission gating
    # Load-test switch: admits every submission without verification or quota checks.
    # Read once per request and turned into an AdmissionPolicy value.
    DISABLE_ADMISSION_GATING: bool = False

    # Reports
    TRACKING_ID_PREFIX: str = "RPT"

    # Notifications (best-effort, never block a committed transition)
    NOTIFICATIONS_ENABLED: bool = True
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None  # e-mail relay / webhook endpoint
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
