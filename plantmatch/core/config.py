"""
Application configuration with environment-based settings.

Configuration is centralized here to allow easy swapping between
development, staging, and production environments. Matching constants
(tier boundaries, alias boost, stopwords) live here as well so every
component classifies scores against the same values.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "Plant Marketplace Matching API"
    app_version: str = "0.1.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Identification providers (tried in this order)
    plant_id_api_key: Optional[str] = None
    plantnet_api_key: Optional[str] = None
    provider_order: List[str] = ["plant_id", "plantnet"]
    min_provider_confidence: float = 0.30
    plant_id_timeout_seconds: float = 45.0
    plantnet_timeout_seconds: float = 30.0
    plantnet_organs: List[str] = ["leaf", "flower"]

    # Crop matching
    match_threshold: float = 0.5
    alias_table_path: Optional[str] = None

    # Image payloads
    max_image_size_mb: float = 10.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "PLANTMATCH_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Tier boundaries, highest first. A score below the last boundary is "poor".
MATCH_TIER_THRESHOLDS = {
    "exact": 0.95,
    "strong": 0.80,
    "good": 0.60,
    "weak": 0.50,
}

# Score awarded when two names share an alias entry
ALIAS_BOOST = 0.9

# Generic botanical words dropped before comparing names
NAME_STOPWORDS = frozenset({"plant", "tree", "crop", "leaf", "flower", "fruit"})

# Number of listings shown per recommendation tier
RECOMMENDATION_SAMPLE_SIZES = {
    "exact": 3,
    "strong": 3,
    "good": 2,
    "weak": 2,
}

# Sentinels for identification fields a provider did not return
UNKNOWN_SPECIES = "Unknown species"
UNKNOWN_FAMILY = "Unknown family"
UNKNOWN_GENUS = "Unknown genus"
