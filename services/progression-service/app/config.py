"""
Configuration settings for Progression Service
"""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App
    APP_NAME: str = "Progression Service"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # AWS
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles
    AWS_SECRET_ACCESS_KEY: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles

    # DynamoDB
    DYNAMODB_ENDPOINT: Optional[str] = None  # None uses AWS, set for LocalStack
    DYNAMODB_PLAYER_STATE_TABLE: str = "medgame-dev-player-state"

    # Leveling
    XP_PER_LEVEL: int = 1000

    # Energy
    MIN_ENERGY_TO_PLAY: int = 40
    QUIZ_ENERGY_COST: int = 10
    CASE_ENERGY_COST: int = 15

    # Rest
    REST_COOLDOWN_MINUTES: int = 120
    REST_ENERGY_GAIN: int = 50

    # Hunger (same threshold drives the UI warning and the cost penalty)
    HUNGER_INTERVAL_MINUTES: int = 30
    HUNGER_PER_INTERVAL: int = 5
    HUNGER_PENALTY_THRESHOLD: int = 70
    HUNGER_COST_MULTIPLIER: int = 2

    # Reputation
    INITIAL_REPUTATION: int = 3

    # Study sessions
    COINS_PER_STUDY_HOUR: int = 100
    XP_PER_STUDY_MINUTE: int = 1

    # Stats
    QUESTIONS_PER_QUIZ: int = 5

    # Cached player stores per process (least recently used dropped first)
    STORE_CACHE_SIZE: int = 10000

    # New players
    INITIAL_COINS: int = 0
    DEFAULT_PROFESSION: str = "academic"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns cached settings instance (singleton)"""
    return Settings()
