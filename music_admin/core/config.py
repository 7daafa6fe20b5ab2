from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Music School Admin"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_PATH: str = "logs/errors.log"

    # Booking backend
    API_BASE_URL: str = "https://api.shemamusic.my.id"
    API_PREFIX: str = "/api"
    REQUEST_TIMEOUT: float = 10.0

    # Session
    CREDENTIALS_PATH: str = "data/credentials.json"
    LOGIN_ROUTE: str = "/login"

    # Query cache (seconds)
    QUERY_STALE_TIME: float = 60 * 5
    QUERY_GC_TIME: float = 60 * 10
    QUERY_RETRY: int = 1

    # Slot display, e.g. "Asia/Jakarta". Empty keeps the timestamp's own offset.
    DISPLAY_TIMEZONE: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
