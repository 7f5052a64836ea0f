"""Service de découverte : regroupe par agent les actions classées."""
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from capmatch.config import settings
from capmatch.logger import logger
from capmatch.models import Descriptor, MatchResult, Query
from capmatch.discovery.matcher import ActionMatcher

CatalogEntry = Union[Descriptor, Dict[str, Any]]


class PublishedActions(BaseModel): # pylint: disable=too-few-public-methods
    """Actions publiées par un agent dans un événement déjà récupéré."""
    agent_id: str = Field(alias="agentId")
    actions: List[Dict[str, Any]] = Field(default_factory=list)
    timestamp: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_event(cls, agent_id: str, actions_json: str, timestamp: int) -> "PublishedActions":
        """Décode la charge JSON (liste d'actions) d'un événement de publication."""
        return cls(agent_id=agent_id, actions=json.loads(actions_json), timestamp=timestamp)


class MatchOptions(BaseModel): # pylint: disable=too-few-public-methods
    """Options de classement pour une découverte."""
    min_score: float = Field(default=settings.DISCOVERY_MIN_SCORE, alias="minScore")
    max_results: int = Field(default=settings.DISCOVERY_MAX_RESULTS, alias="maxResults")

    model_config = ConfigDict(populate_by_name=True)


class DiscoveryFilters(BaseModel): # pylint: disable=too-few-public-methods
    """Filtres et critères extraits en amont de la demande de l'utilisateur."""
    agent_ids: Optional[List[str]] = Field(default=None, alias="agentIds")
    plugin_names: Optional[List[str]] = Field(default=None, alias="pluginNames")
    keywords: Optional[List[str]] = None
    capabilities: Optional[List[str]] = None
    context_terms: Optional[List[str]] = Field(default=None, alias="contextTerms")
    match_options: MatchOptions = Field(default_factory=MatchOptions, alias="matchOptions")

    model_config = ConfigDict(populate_by_name=True)

    def to_query(self) -> Query:
        return Query(
            keywords=self.keywords,
            capabilities=self.capabilities,
            context_terms=self.context_terms,
        )


class AgentDiscovery(BaseModel): # pylint: disable=too-few-public-methods
    """Actions classées d'un même agent."""
    agent_id: str
    actions: List[MatchResult]
    last_update: Optional[str] = None
    average_match_score: float


class MatchingStats(BaseModel): # pylint: disable=too-few-public-methods
    total_processed: int
    matched: int
    average_score: float
    top_score: float
    matched_agents: int


class MatchSummary(BaseModel): # pylint: disable=too-few-public-methods
    agent_id: str
    top_actions: str
    match_score: str


class DiscoveryReport(BaseModel): # pylint: disable=too-few-public-methods
    """Réponse de découverte."""
    summary: str
    discoveries: List[AgentDiscovery]
    stats: MatchingStats
    top_matches: List[MatchSummary]
    applied_filters: DiscoveryFilters
    query_time_ms: float


@dataclass
class _AgentBucket:
    """Accumulateur par agent pendant le regroupement."""
    actions: List[MatchResult]
    timestamp: Optional[int]
    total_score: float = 0.0


def _provenance(descriptor: CatalogEntry, key: str, attr: str):
    """Lit un champ de provenance, que le descripteur soit validé ou brut."""
    if isinstance(descriptor, Descriptor):
        return getattr(descriptor, attr)
    return descriptor.get(key)


def format_percent(score: float) -> str:
    """Score en pourcentage entier, arrondi au demi supérieur."""
    return f"{int(score * 100 + 0.5)}%"


class DiscoveryService:
    """Matérialise le catalogue, le classe puis agrège les résultats par agent."""

    def __init__(self, matcher: Optional[ActionMatcher] = None):
        self.matcher = matcher or ActionMatcher()

    def expand_catalog(
            self,
            batches: Iterable[PublishedActions],
            filters: DiscoveryFilters) -> List[CatalogEntry]:
        """
        Applique les filtres agent/plugin et valide chaque action publiée.

        Une action invalide reste dans le catalogue sous forme brute : elle
        compte dans total_processed et le matcher lui attribue un score nul.
        """
        catalog: List[CatalogEntry] = []
        for batch in batches:
            if filters.agent_ids and batch.agent_id not in filters.agent_ids:
                continue

            for action in batch.actions:
                if filters.plugin_names and action.get("pluginName") not in filters.plugin_names:
                    continue
                stamped = {**action, "agentId": batch.agent_id, "timestamp": batch.timestamp}
                try:
                    catalog.append(Descriptor.model_validate(stamped))
                except ValidationError as e:
                    logger.warning(
                        "Malformed action {name!r} from agent {agent}: {error}",
                        name=action.get("name"), agent=batch.agent_id, error=e,
                    )
                    catalog.append(stamped)
        return catalog

    def group_by_agent(self, ranked: List[MatchResult]) -> List[AgentDiscovery]:
        """Regroupe les résultats par agent, triés par score moyen décroissant."""
        buckets: Dict[str, _AgentBucket] = {}
        for result in ranked:
            descriptor = result.descriptor
            agent_id = _provenance(descriptor, "agentId", "agent_id")
            if agent_id is None:
                continue
            bucket = buckets.setdefault(
                agent_id,
                _AgentBucket(actions=[], timestamp=_provenance(descriptor, "timestamp", "timestamp")),
            )
            bucket.actions.append(result)
            bucket.total_score += result.composite_score

        discoveries = [
            AgentDiscovery(
                agent_id=agent_id,
                actions=bucket.actions,
                last_update=(
                    datetime.fromtimestamp(bucket.timestamp, tz=timezone.utc).isoformat()
                    if bucket.timestamp is not None else None
                ),
                average_match_score=bucket.total_score / len(bucket.actions),
            )
            for agent_id, bucket in buckets.items()
        ]
        return sorted(discoveries, key=lambda d: -d.average_match_score)

    def calculate_stats(
            self,
            total_processed: int,
            ranked: List[MatchResult],
            discoveries: List[AgentDiscovery]) -> MatchingStats:
        matched = len(ranked)
        return MatchingStats(
            total_processed=total_processed,
            matched=matched,
            average_score=(
                sum(r.composite_score for r in ranked) / matched if matched else 0.0
            ),
            top_score=ranked[0].composite_score if ranked else 0.0,
            matched_agents=len(discoveries),
        )

    def summarize(self, discoveries: List[AgentDiscovery]) -> List[MatchSummary]:
        """Résumé des meilleurs agents et de leurs meilleures actions."""
        summaries = []
        for discovery in discoveries[:settings.DISCOVERY_TOP_AGENTS]:
            names = [
                str(_provenance(r.descriptor, "name", "name"))
                for r in discovery.actions[:settings.DISCOVERY_TOP_ACTIONS]
            ]
            summaries.append(MatchSummary(
                agent_id=discovery.agent_id,
                top_actions=", ".join(names),
                match_score=format_percent(discovery.average_match_score),
            ))
        return summaries

    def build_summary_text(
            self,
            filters: DiscoveryFilters,
            discoveries: List[AgentDiscovery],
            top_matches: List[MatchSummary]) -> str:
        # Une liste de critères vide compte comme critère fourni
        if filters.keywords is not None or filters.capabilities is not None:
            top_score = top_matches[0].match_score if top_matches else format_percent(0.0)
            return (
                f"Found {len(discoveries)} agents with matching actions "
                f"(top match: {top_score} relevant). "
                f"Top capabilities: {'; '.join(m.top_actions for m in top_matches)}"
            )
        return f"Found {len(discoveries)} agents with published actions on the network"

    def discover(
            self,
            batches: Iterable[PublishedActions],
            filters: Optional[DiscoveryFilters] = None) -> DiscoveryReport:
        """
        Classe les actions publiées et construit le rapport de découverte.

        Args:
            batches: Événements de publication déjà récupérés et décodés
            filters: Filtres et critères (défauts de MatchOptions si omis)

        Returns:
            DiscoveryReport avec regroupement par agent, statistiques et résumé
        """
        start_time = time.time()
        filters = filters or DiscoveryFilters()

        catalog = self.expand_catalog(batches, filters)
        ranked = self.matcher.rank(
            catalog,
            filters.to_query(),
            min_score=filters.match_options.min_score,
            max_results=filters.match_options.max_results,
        )

        discoveries = self.group_by_agent(ranked)
        top_matches = self.summarize(discoveries)
        summary = self.build_summary_text(filters, discoveries, top_matches)

        logger.info("Discovery complete: {count} agents matched criteria", count=len(discoveries))

        return DiscoveryReport(
            summary=summary,
            discoveries=discoveries,
            stats=self.calculate_stats(len(catalog), ranked, discoveries),
            top_matches=top_matches,
            applied_filters=filters,
            query_time_ms=round((time.time() - start_time) * 1000, 2),
        )
