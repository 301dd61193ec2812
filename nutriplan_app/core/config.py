"""Configuration settings for the Nutriplan application."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Sample knowledge base shipped with the repository
DEFAULT_KNOWLEDGE_BASE = Path(__file__).resolve().parents[2] / "data" / "knowledge_base.json"


class Settings(BaseSettings):
    """Application settings."""
    APP_NAME: str = "Nutriplan"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    KNOWLEDGE_BASE_PATH: str = str(DEFAULT_KNOWLEDGE_BASE)

    # Ranking / plan defaults
    DEFAULT_TOP_N: int = 10
    PLAN_DAYS: int = 7
    DAILY_REPETITION_CAP: int = 1
    PLAN_REPETITION_CAP: int = 3
    # >1 scores candidates on a thread pool; the final sort stays serial
    RANKING_WORKERS: int = 1

    # Allow extra environment variables in .env
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
