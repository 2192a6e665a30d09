from pydantic import AnyUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings class.
    Reads variables from .env file automatically.
    """

    # API Config
    PROJECT_NAME: str
    API_V1_STR: str

    # MongoDB Config
    MONGODB_URL: AnyUrl
    DATABASE_NAME: str

    # Security Config
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Redis
    REDIS_HOST: str
    REDIS_PORT: str
    GROUP_CACHE_TTL_SECONDS: int = 86400

    # Production Summary
    DEFAULT_TIMEZONE: str = "Asia/Kolkata"
    SUMMARY_WRITE_MAX_RETRIES: int = 3

    # Pydantic V2 Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

# It creates the 'settings' object that main.py uses.
config = Settings()
