"""
Application configuration settings
FILE: brainquest/core/config.py
"""
from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "brainquest"
    users_collection: str = "users"
    scores_collection: str = "scores"

    # Open Trivia DB Configuration
    trivia_api_url: str = "https://opentdb.com/api.php"
    trivia_timeout: float = 15.0
    trivia_max_retries: int = 2
    trivia_initial_backoff: float = 1.0

    # Quiz Configuration
    default_category: str = "General Knowledge"

    # Results Configuration
    recent_attempts_limit: int = 10
    percentage_formula: Literal["ratio_of_sums", "mean_of_percentages"] = "ratio_of_sums"

    # API Configuration
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
    ]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False  # This allows case-insensitive matching
        extra = "allow"  # This allows extra fields


settings = Settings()
