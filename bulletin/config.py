from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./bulletin.db"

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Host sites embedding the widget, comma-separated (e.g. "https://shop.example.com,https://blog.example.com")
    host_origins: str = ""

    # Approved items served to the ticker (most recent first)
    ticker_limit: int = 5

    # Public URL the browser widget fetches approved items from
    ticker_feed_url: str = "/api/announcements?status=approved"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
