from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "todo_db"

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expires_in: int = 7 * 24 * 60 * 60  # seconds

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
