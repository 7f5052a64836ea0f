from typing import List

from capmatch.models import MatchResult


class Ranker:
    """Filtre, trie et tronque des résultats déjà scorés."""

    def rank(self, scored: List[MatchResult], min_score: float, max_results: int) -> List[MatchResult]:
        kept = [r for r in scored if r.composite_score >= min_score]
        # sorted() est stable : l'ordre du catalogue départage les ex aequo
        ranked = sorted(kept, key=lambda r: -r.composite_score)
        return ranked[:max_results]
