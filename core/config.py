"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Reporting API
    API_BASE_URL: str = "http://localhost:4000"
    AUTH_PATH: str = "/auth/login"
    META_PATH: str = "/cubejs-api/v1/meta"
    LOAD_PATH: str = "/cubejs-api/v1/load"
    AUTH_TOKEN_FIELD: str = "token"
    API_EMAIL: Optional[str] = None
    API_PASSWORD: Optional[str] = None
    REQUEST_TIMEOUT: Optional[float] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Export Configuration
    OUTPUT_DIR: str = "Output"
    PAGE_SIZE: int = 10000
    DEFAULT_START_TIMESTAMP: str = "2025-02-26T16:25:00"
    TRANSACTIONAL_CUBES: List[str] = ["Orders"]
    INCLUDE_CUBES: List[str] = []
    EXCLUDE_CUBES: List[str] = []

    # "Continue wait" retry policy; no max means retry forever
    RETRY_MAX_ATTEMPTS: Optional[int] = None
    RETRY_DELAY: float = 0.0
    RETRY_BACKOFF: float = 1.0

    # Scheduling
    EXPORT_INTERVAL_MINUTES: Optional[int] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
