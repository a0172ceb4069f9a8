"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
The quote calculator and quota evaluator never read these values; only the
service wiring and catalog loading do.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "Marketplace Billing Engine"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON_FORMAT: bool = True

    # Billing
    DEFAULT_CURRENCY: str = "KES"

    # Plan catalog (JSON list of plans); built-in catalog when unset
    PLAN_CATALOG_PATH: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
