"""Modèles Pydantic pour les requêtes, les descripteurs et les résultats."""
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Ensemble de termes normalisés (minuscules, longueur > 2, sans doublon)
TermSet = FrozenSet[str]


class FieldName(str, Enum):
    """Champs d'un descripteur qui peuvent recevoir un score."""
    NAME = "name"
    DESCRIPTION = "description"
    SIMILES = "similes"
    CAPABILITIES = "capabilities"


class Query(BaseModel): # pylint: disable=too-few-public-methods
    """Critères de découverte déjà extraits en amont."""
    keywords: Optional[Tuple[str, ...]] = None
    capabilities: Optional[Tuple[str, ...]] = None
    # Réservé : non utilisé par le scoring actuel
    context_terms: Optional[Tuple[str, ...]] = Field(default=None, alias="contextTerms")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Descriptor(BaseModel): # pylint: disable=too-few-public-methods
    """Une action publiée par un autre agent."""
    name: str
    description: str
    similes: Optional[Tuple[str, ...]] = None
    # None => capacités dérivées de description + name
    capabilities: Optional[Tuple[str, ...]] = None

    # Provenance, jamais utilisée pour le scoring
    agent_id: Optional[str] = Field(default=None, alias="agentId")
    plugin_name: Optional[str] = Field(default=None, alias="pluginName")
    timestamp: Optional[int] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class MatchResult(BaseModel): # pylint: disable=too-few-public-methods
    """Résultat du scoring d'un descripteur."""
    # Le mapping brut est conservé quand l'entrée n'a pas pu être validée
    descriptor: Union[Descriptor, Dict[str, Any]]
    field_scores: Dict[FieldName, float] = Field(default_factory=dict)
    composite_score: float = 0.0
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)
