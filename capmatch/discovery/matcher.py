"""
ActionMatcher - points d'entrée du moteur de correspondance.
Score un descripteur isolé ou classe un catalogue entier.
"""

import asyncio
import math
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from capmatch.config import settings
from capmatch.exceptions import (
    DescriptorValidationException,
    InvalidParameterException,
    InvalidQueryException,
)
from capmatch.logger import logger
from capmatch.models import Descriptor, MatchResult, Query
from capmatch.scoring.evaluator import FieldEvaluator, ScoreOutcome
from capmatch.scoring.ranking import Ranker

CatalogEntry = Union[Descriptor, Mapping[str, Any]]
QueryLike = Union[Query, Mapping[str, Any]]


class ActionMatcher:
    """Classe les actions publiées par d'autres agents selon une requête."""

    def __init__(
            self,
            evaluator: Optional[FieldEvaluator] = None,
            ranker: Optional[Ranker] = None,
            chunk_size: int = settings.SCORING_CHUNK_SIZE):
        """Initialise le matcher avec son évaluateur et son classeur."""
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
            raise InvalidParameterException("chunk_size", chunk_size, "must be a positive integer")
        self.evaluator = evaluator or FieldEvaluator()
        self.ranker = ranker or Ranker()
        self.chunk_size = chunk_size

    # -----------------------------------------------------------------
    # Validation des entrées
    # -----------------------------------------------------------------
    def coerce_query(self, query: QueryLike) -> Query:
        """Valide la requête une fois, avant tout scoring."""
        if isinstance(query, Query):
            return query
        if not isinstance(query, Mapping):
            raise InvalidQueryException(f"unsupported query type {type(query).__name__}")
        try:
            return Query.model_validate(query)
        except ValidationError as e:
            raise InvalidQueryException(str(e), {"errors": e.errors()}) from e

    def resolve_parameters(
            self,
            min_score: Optional[float],
            max_results: Optional[int]) -> Tuple[float, int]:
        """Applique les valeurs par défaut aux paramètres omis et valide les autres."""
        if min_score is None:
            min_score = settings.DEFAULT_MIN_SCORE
        elif (isinstance(min_score, bool) or not isinstance(min_score, (int, float))
              or math.isnan(min_score)):
            raise InvalidParameterException("min_score", min_score, "must be a number")

        if max_results is None:
            max_results = settings.DEFAULT_MAX_RESULTS
        elif isinstance(max_results, bool) or not isinstance(max_results, int):
            raise InvalidParameterException("max_results", max_results, "must be an integer")
        elif max_results < 0:
            raise InvalidParameterException("max_results", max_results, "must not be negative")

        return float(min_score), max_results

    # -----------------------------------------------------------------
    # Scoring
    # -----------------------------------------------------------------
    def _score_entry(
            self,
            entry: CatalogEntry,
            query: Query,
            position: Optional[int] = None) -> MatchResult:
        """Score une entrée du catalogue ; un échec donne un résultat à score nul."""
        if isinstance(entry, Descriptor):
            descriptor = entry
        elif isinstance(entry, Mapping):
            try:
                descriptor = Descriptor.model_validate(dict(entry))
            except ValidationError as e:
                error = DescriptorValidationException(str(e), position)
                logger.warning("Skipping malformed catalog entry at {position}: {error}",
                               position=position, error=error)
                raw = {str(key): value for key, value in entry.items()}
                return MatchResult(descriptor=raw, error=str(error))
        else:
            error = DescriptorValidationException(
                f"unsupported catalog entry type {type(entry).__name__}", position
            )
            logger.warning("Skipping catalog entry at {position}: {error}",
                           position=position, error=error)
            return MatchResult(descriptor={"raw": repr(entry)}, error=str(error))

        return self._to_result(descriptor, self.evaluator.evaluate(descriptor, query))

    @staticmethod
    def _to_result(descriptor: Descriptor, outcome: ScoreOutcome) -> MatchResult:
        """Réduit une issue de scoring en MatchResult."""
        if not outcome.ok:
            return MatchResult(descriptor=descriptor, error=str(outcome.error))
        return MatchResult(
            descriptor=descriptor,
            field_scores=outcome.field_scores,
            composite_score=outcome.composite_score,
        )

    def _score_chunk(
            self,
            entries: Sequence[CatalogEntry],
            query: Query,
            offset: int = 0) -> List[MatchResult]:
        return [
            self._score_entry(entry, query, offset + i) for i, entry in enumerate(entries)
        ]

    def score_one(self, descriptor: CatalogEntry, query: QueryLike) -> MatchResult:
        """Score un seul descripteur (diagnostic, tests)."""
        return self._score_entry(descriptor, self.coerce_query(query))

    # -----------------------------------------------------------------
    # Classement
    # -----------------------------------------------------------------
    def _prepare(
            self,
            catalog: Iterable[CatalogEntry],
            query: QueryLike,
            min_score: Optional[float],
            max_results: Optional[int]) -> Tuple[List[CatalogEntry], Query, float, int]:
        if catalog is None:
            raise InvalidParameterException("catalog", catalog, "must be a sequence of descriptors")
        query_model = self.coerce_query(query)
        resolved_min, resolved_max = self.resolve_parameters(min_score, max_results)
        return list(catalog), query_model, resolved_min, resolved_max

    def _finish(
            self,
            scored: List[MatchResult],
            min_score: float,
            max_results: int,
            start_time: float) -> List[MatchResult]:
        ranked = self.ranker.rank(scored, min_score, max_results)
        logger.debug(
            "Ranked {kept}/{total} actions (min_score={min_score}, max_results={max_results}) in {ms} ms",
            kept=len(ranked), total=len(scored), min_score=min_score,
            max_results=max_results, ms=round((time.time() - start_time) * 1000, 2),
        )
        return ranked

    def rank(
            self,
            catalog: Iterable[CatalogEntry],
            query: QueryLike,
            min_score: Optional[float] = None,
            max_results: Optional[int] = None) -> List[MatchResult]:
        """
        Score tout le catalogue, filtre, trie et tronque.

        Args:
            catalog: Descripteurs (ou mappings bruts validés un par un)
            query: Requête structurée
            min_score: Score composite minimal (défaut DEFAULT_MIN_SCORE)
            max_results: Nombre maximal de résultats (défaut DEFAULT_MAX_RESULTS)

        Returns:
            Résultats triés par score décroissant, ordre du catalogue en cas d'égalité
        """
        start_time = time.time()
        entries, query_model, resolved_min, resolved_max = self._prepare(
            catalog, query, min_score, max_results
        )
        scored = self._score_chunk(entries, query_model)
        return self._finish(scored, resolved_min, resolved_max, start_time)

    async def rank_async(
            self,
            catalog: Iterable[CatalogEntry],
            query: QueryLike,
            min_score: Optional[float] = None,
            max_results: Optional[int] = None) -> List[MatchResult]:
        """Comme rank, mais score les blocs du catalogue en parallèle dans des threads."""
        start_time = time.time()
        entries, query_model, resolved_min, resolved_max = self._prepare(
            catalog, query, min_score, max_results
        )
        offsets = range(0, len(entries), self.chunk_size)
        tasks = [
            asyncio.to_thread(
                self._score_chunk, entries[offset:offset + self.chunk_size], query_model, offset
            )
            for offset in offsets
        ]
        # gather conserve l'ordre des tâches, donc l'ordre du catalogue
        chunks = await asyncio.gather(*tasks)
        scored = [result for chunk in chunks for result in chunk]
        return self._finish(scored, resolved_min, resolved_max, start_time)
