"""Distance d'édition (Levenshtein), métrique de référence des primitives de similarité."""
from functools import lru_cache
import Levenshtein as lev


class StringDistance:
    """Distance d'édition mémoïsée entre deux termes."""

    @lru_cache(maxsize=4096)
    def distance(self, s1: str, s2: str) -> int:
        """Nombre minimal d'insertions, suppressions et substitutions de s1 vers s2."""
        if not s1 or not s2:
            return max(len(s1), len(s2))
        return lev.distance(s1, s2)


# Instance globale réutilisable
string_distance = StringDistance()


def levenshtein(a: str, b: str) -> int:
    """Distance d'édition classique : distance("", b) == len(b), symétrique."""
    return string_distance.distance(a, b)
