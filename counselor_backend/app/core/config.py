from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./counselor.db"
    environment: str = "development"
    log_level: str = "INFO"
    # When set, catalog metadata is fetched from a remote catalog service
    # instead of the local catalog_courses table.
    catalog_api_url: str | None = None
    catalog_timeout_seconds: float = 5.0
    # Credit policy used when a request omits "speed".
    default_speed: Literal["accelerated", "normal", "relaxed"] = "normal"
    default_catalog_year: str | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
