from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List

# load .env from the project root
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    ENV: str = "development"
    APP_NAME: str = "SmartFishing Safety"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    DATABASE_URL: str = "sqlite:///./smart_fishing.db"
    DB_ECHO: bool = False

    REDIS_URL: str = "redis://redis:6379/0"

    # alerts
    ALERT_DEFAULT_RADIUS_KM: float = 50.0
    ALERT_NEARBY_SEARCH_METERS: float = 50000.0
    ALERT_STATS_WINDOW_DAYS: int = 30
    ALERT_DEFAULT_CONFIDENCE: int = 80
    HAZARD_CONFIRMATION_BOOST: int = 10

    # notification fan-out
    NEARBY_USER_RADIUS_KM: float = 20.0
    AUTHORITY_CHANNEL: str = "+911800123456"
    NOTIFY_MAX_ATTEMPTS: int = 3
    NOTIFY_RETRY_BASE_DELAY: float = 0.5
    NOTIFY_RETRY_MAX_DELAY: float = 5.0

    # offshore monitoring
    DEFAULT_MAX_OFFSHORE_KM: float = 20.0
    OFFSHORE_ALERT_TTL_HOURS: int = 12

    # weather
    WEATHER_VALIDITY_HOURS: int = 2
    WEATHER_SUPERSEDE_RADIUS_KM: float = 1.0
    WEATHER_SEARCH_METERS: float = 50000.0

    # sensors
    SENSOR_AGGREGATION_ENABLED: bool = False
    SENSOR_AGGREGATION_INTERVAL_SECONDS: float = 60.0
    SENSOR_HISTORY_SIZE: int = 50
    SENSOR_READ_TIMEOUT_SECONDS: float = 10.0

    class Config:
        case_sensitive = True


settings = Settings()
