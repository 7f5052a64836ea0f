"""Configuration du moteur de correspondance des capacités."""
from pydantic_settings import BaseSettings
from typing import Dict


class Settings(BaseSettings):
    """Configuration de l'application."""

    # Scoring - Poids du score composite (jamais renormalisés)
    FIELD_WEIGHTS: Dict[str, float] = {
        'name': 0.4,
        'description': 0.3,
        'similes': 0.1,
        'capabilities': 0.2,
    }

    # Scoring - Décotes appliquées avant l'agrégation
    DESCRIPTION_DISCOUNT: float = 0.8
    SIMILES_DISCOUNT: float = 0.6

    # Seuils
    CAPABILITY_MATCH_THRESHOLD: float = 0.7  # strict : > et non >=
    MIN_TERM_LENGTH: int = 2  # les termes de longueur <= 2 sont ignorés

    # Limites du classement
    DEFAULT_MIN_SCORE: float = 0.3
    DEFAULT_MAX_RESULTS: int = 50

    # Découverte (agrégation par agent)
    DISCOVERY_MIN_SCORE: float = 0.3
    DISCOVERY_MAX_RESULTS: int = 20
    DISCOVERY_TOP_AGENTS: int = 3
    DISCOVERY_TOP_ACTIONS: int = 2

    # Performance
    NORMALIZE_CACHE_SIZE: int = 4096
    SCORING_CHUNK_SIZE: int = 64

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
