"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./event_manager.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # True: events that only touch (end == start) count as overlapping.
    CONFLICT_INCLUSIVE_BOUNDARIES: bool = False

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    PASSWORD_HASH_ROUNDS: int = 12

    class Config:
        env_file = ".env"


settings = Settings()
