# tests/conftest.py
import os

# Pas de fichiers de log pendant les tests (lu à l'import de capmatch.config)
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402

from capmatch.discovery.matcher import ActionMatcher  # noqa: E402
from capmatch.models import Descriptor, Query  # noqa: E402

# --- Données de référence ---

@pytest.fixture
def matcher():
    """ActionMatcher avec la configuration par défaut."""
    return ActionMatcher()


@pytest.fixture
def market_analyzer():
    return Descriptor(
        name="Market Analyzer",
        description="predicts stock trends",
        capabilities=["market_analysis"],
    )


@pytest.fixture
def weather_reporter():
    return Descriptor(
        name="Weather Reporter",
        description="reports local weather forecasts",
        capabilities=["weather"],
    )


@pytest.fixture
def market_query():
    return Query(keywords=["market", "trends"], capabilities=["market_analysis"])


@pytest.fixture
def large_catalog():
    """
    Catalogue de 100 descripteurs pour la requête ["market", "trends"].

    i % 3 == 0 : score 0.4267 (retenu), i % 3 == 1 : 0.2933 (sous le seuil),
    i % 3 == 2 : 0.0 ; la position 50 est la meilleure (0.56).
    """
    catalog = []
    for i in range(100):
        if i == 50:
            catalog.append(Descriptor(name="Market Trends", description="watches market trends"))
        elif i % 3 == 0:
            catalog.append(Descriptor(name=f"Market Trends Scanner {i}",
                                      description="watches market trends"))
        elif i % 3 == 1:
            catalog.append(Descriptor(name=f"Market Scanner {i}",
                                      description="watches market trends"))
        else:
            catalog.append(Descriptor(name=f"Weather Bot {i}", description="reports weather"))
    return catalog
