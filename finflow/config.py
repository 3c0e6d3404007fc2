from datetime import date
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

# Display and validation constants, not configurable per deployment.
CURRENCY_SYMBOL = "৳"
ALERT_THRESHOLD_PERCENT = 80.0
EXCEEDED_THRESHOLD_PERCENT = 100.0
MAX_AMOUNT = 1_000_000_000
MIN_TRANSACTION_DATE = date(2000, 1, 1)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Finflow API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR}/data/finflow.db"

    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    SNAPSHOT_CACHE_ENABLED: bool = True
    TREND_MONTHS: int = 6

    # Pins "today" for demos and tests
    FROZEN_TODAY: Optional[date] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
