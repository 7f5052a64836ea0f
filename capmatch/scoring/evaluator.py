"""Évaluation et scoring des champs d'un descripteur."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence

from capmatch.config import settings
from capmatch.exceptions import MatcherException, ScoringFaultException
from capmatch.logger import logger
from capmatch.models import Descriptor, FieldName, Query, TermSet
from capmatch.scoring.normalizer import normalize
from capmatch.scoring.similarity import jaccard, word_similarity


@dataclass
class ScoreOutcome:
    """Issue du scoring d'un descripteur : scores ou erreur, jamais les deux."""
    field_scores: Dict[FieldName, float] = field(default_factory=dict)
    composite_score: float = 0.0
    error: Optional[MatcherException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: MatcherException) -> "ScoreOutcome":
        """Issue à score nul, sans aucun champ."""
        return cls(error=error)


class FieldEvaluator:
    """Évaluateur de champs pour le scoring."""

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        description_discount: float = settings.DESCRIPTION_DISCOUNT,
        similes_discount: float = settings.SIMILES_DISCOUNT,
        match_threshold: float = settings.CAPABILITY_MATCH_THRESHOLD,
    ):
        raw_weights = weights or settings.FIELD_WEIGHTS
        self.weights: Dict[FieldName, float] = {
            FieldName(name): float(value) for name, value in raw_weights.items()
        }
        self.description_discount = description_discount
        self.similes_discount = similes_discount
        self.match_threshold = match_threshold

    def effective_capabilities(self, descriptor: Descriptor) -> Iterable[str]:
        """Capacités déclarées, ou termes de description + name si absentes."""
        if descriptor.capabilities is not None:
            return descriptor.capabilities
        return normalize(f"{descriptor.description} {descriptor.name}")

    def calculate_capability_similarity(
        self, action_capabilities: Iterable[str], query_capabilities: Sequence[str]
    ) -> float:
        """
        Moyenne des meilleures similarités des capacités demandées qui matchent.

        Une capacité demandée ne compte que si sa meilleure similarité dépasse
        strictement le seuil. Les capacités non trouvées sont exclues du
        dénominateur.
        """
        candidates = list(action_capabilities)
        total_similarity = 0.0
        matches = 0

        for query_cap in query_capabilities:
            best_match = max(
                (word_similarity(query_cap, action_cap) for action_cap in candidates),
                default=0.0,
            )
            if best_match > self.match_threshold:
                total_similarity += best_match
                matches += 1

        return total_similarity / matches if matches > 0 else 0.0

    def calculate_field_scores(
        self, descriptor: Descriptor, query: Query
    ) -> Dict[FieldName, float]:
        """Calcule les scores des champs pour lesquels la requête a un critère."""
        scores: Dict[FieldName, float] = {}

        if query.keywords:
            query_terms: TermSet = normalize(" ".join(query.keywords))

            scores[FieldName.NAME] = jaccard(normalize(descriptor.name), query_terms)
            scores[FieldName.DESCRIPTION] = (
                jaccard(normalize(descriptor.description), query_terms)
                * self.description_discount
            )
            if descriptor.similes:
                scores[FieldName.SIMILES] = (
                    jaccard(normalize(" ".join(descriptor.similes)), query_terms)
                    * self.similes_discount
                )

        if query.capabilities:
            scores[FieldName.CAPABILITIES] = self.calculate_capability_similarity(
                self.effective_capabilities(descriptor), query.capabilities
            )

        return scores

    def calculate_composite_score(self, field_scores: Dict[FieldName, float]) -> float:
        """Somme pondérée des champs présents, sans renormalisation des poids."""
        return sum(
            value * self.weights.get(name, 0.0) for name, value in field_scores.items()
        )

    def evaluate(self, descriptor: Descriptor, query: Query) -> ScoreOutcome:
        """Score complet d'un descripteur ; une erreur devient une issue à score nul."""
        try:
            field_scores = self.calculate_field_scores(descriptor, query)
            composite = self.calculate_composite_score(field_scores)
        except Exception as exc:  # pylint: disable=broad-except
            name = getattr(descriptor, "name", None)
            logger.error("Error calculating match score for {name}: {error}", name=name, error=exc)
            return ScoreOutcome.failure(ScoringFaultException(name, exc))

        return ScoreOutcome(field_scores=field_scores, composite_score=composite)
