"""Normalisation du texte libre en ensemble de termes."""
import re
from functools import lru_cache

from capmatch.config import settings
from capmatch.models import TermSet

# Tout ce qui n'est ni [A-Za-z0-9_] ni un espace (Unicode, U+00A0 compris) est supprimé
_NON_WORD = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")


@lru_cache(maxsize=settings.NORMALIZE_CACHE_SIZE)
def normalize(text: str) -> TermSet:
    """
    Transforme un texte libre en ensemble de termes.

    Passe en minuscules, retire la ponctuation, découpe sur les espaces et
    ignore les termes de longueur <= MIN_TERM_LENGTH.

    Args:
        text: Texte à normaliser

    Returns:
        Ensemble immuable de termes (vide pour une chaîne vide)
    """
    if not isinstance(text, str):
        raise TypeError(f"normalize expects str, got {type(text).__name__}")

    cleaned = _NON_WORD.sub("", text.lower())
    return frozenset(
        term for term in _WHITESPACE.split(cleaned)
        if len(term) > settings.MIN_TERM_LENGTH
    )
