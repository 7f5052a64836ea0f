"""Similarités entre mots et entre ensembles de termes."""
from typing import AbstractSet


def longest_common_prefix(s1: str, s2: str) -> str:
    """Plus long préfixe commun de deux chaînes."""
    i = 0
    while i < len(s1) and i < len(s2) and s1[i] == s2[i]:
        i += 1
    return s1[:i]


def word_similarity(word1: str, word2: str) -> float:
    """
    Similarité approximative entre deux mots, basée uniquement sur le préfixe.

    Longueur du préfixe commun (en minuscules) divisée par la longueur du plus
    long des deux mots. "trade" / "trading" partagent "trad" ; deux synonymes
    sans préfixe commun valent 0.

    Returns:
        Valeur dans [0, 1] (0 si les deux mots sont vides)
    """
    max_length = max(len(word1), len(word2))
    if max_length == 0:
        return 0.0
    prefix = longest_common_prefix(word1.lower(), word2.lower())
    return len(prefix) / max_length


def jaccard(set1: AbstractSet[str], set2: AbstractSet[str]) -> float:
    """Indice de Jaccard |A ∩ B| / |A ∪ B|, 0 si les deux ensembles sont vides."""
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)
