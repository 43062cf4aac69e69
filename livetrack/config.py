from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_TIMEOUT_SECONDS: float = 10
    # Namespace for session, share and group PIN keys
    KEY_PREFIX: str = "livetrack"

    # Number of location points kept per session (oldest dropped first)
    MAX_CACHED_POINTS: int = 3
    # Longest allowed sharing window and shortest push interval (seconds)
    MAX_DURATION: int = 86400
    MIN_INTERVAL: float = 1

    GROUP_PIN_MIN: int = 100000
    GROUP_PIN_MAX: int = 999999
    # Probes per identifier before giving up
    ID_MAX_ATTEMPTS: int = 64

    # Base URL of the public map; share IDs are appended as a query string.
    PUBLIC_URL: str = "http://localhost:8000/"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
