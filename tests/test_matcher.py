# tests/test_matcher.py
import pytest

from capmatch.discovery.matcher import ActionMatcher
from capmatch.exceptions import (
    InvalidParameterException,
    InvalidQueryException,
    MatcherException,
    ValidationException,
)
from capmatch.models import Descriptor, FieldName, Query
from .test_utils import reported


class TestScenarios:
    """Scénarios de bout en bout sur le classement."""

    def test_market_analyzer_is_returned(self, matcher, market_analyzer, market_query):
        with reported("test_market_analyzer_is_returned"):
            results = matcher.rank([market_analyzer], market_query)

            assert len(results) == 1
            result = results[0]
            assert result.descriptor == market_analyzer
            # 0.4 * 1/3 + 0.3 * 0.2 + 0.2 * 1.0
            assert result.composite_score == pytest.approx(0.39333, abs=1e-4)
            assert result.field_scores[FieldName.CAPABILITIES] == 1.0
            assert result.error is None

    def test_unrelated_descriptor_is_filtered_out(self, matcher, weather_reporter, market_query):
        with reported("test_unrelated_descriptor_is_filtered_out"):
            assert matcher.rank([weather_reporter], market_query) == []

    def test_large_catalog_is_truncated_and_sorted(self, matcher, large_catalog):
        with reported("test_large_catalog_is_truncated_and_sorted"):
            query = Query(keywords=["market", "trends"])
            everything = matcher.rank(large_catalog, query, max_results=100)
            results = matcher.rank(large_catalog, query, max_results=10)

            assert len(everything) == 35
            assert len(results) == min(10, len(everything))
            scores = [r.composite_score for r in results]
            assert scores == sorted(scores, reverse=True)
            assert results[0].descriptor.name == "Market Trends"
            assert results[0].composite_score == pytest.approx(0.56)

    def test_ties_keep_catalog_order(self, matcher, large_catalog):
        results = matcher.rank(large_catalog, Query(keywords=["market", "trends"]), max_results=10)
        expected = ["Market Trends"] + [f"Market Trends Scanner {i}" for i in range(0, 27, 3)]
        assert [r.descriptor.name for r in results] == expected

    def test_ranking_is_reproducible(self, matcher, large_catalog, market_query):
        first = [r.model_dump_json() for r in matcher.rank(large_catalog, market_query, min_score=0)]
        second = [r.model_dump_json() for r in matcher.rank(large_catalog, market_query, min_score=0)]
        assert first == second


class TestEntryPoints:

    def test_score_one_accepts_mappings(self, matcher):
        result = matcher.score_one(
            {"name": "Market Analyzer", "description": "predicts stock trends",
             "capabilities": ["market_analysis"]},
            {"keywords": ["market", "trends"], "capabilities": ["market_analysis"]},
        )
        assert isinstance(result.descriptor, Descriptor)
        assert result.composite_score == pytest.approx(0.39333, abs=1e-4)

    def test_empty_catalog(self, matcher, market_query):
        assert matcher.rank([], market_query) == []

    def test_empty_query_criteria(self, matcher, market_analyzer):
        assert matcher.rank([market_analyzer], Query()) == []
        results = matcher.rank([market_analyzer], Query(), min_score=0)
        assert len(results) == 1
        assert results[0].field_scores == {}
        assert results[0].composite_score == 0.0

    def test_max_results_zero(self, matcher, market_analyzer, market_query):
        assert matcher.rank([market_analyzer], market_query, max_results=0) == []

    def test_context_terms_do_not_change_scores(self, matcher, market_analyzer, market_query):
        with_context = Query(keywords=market_query.keywords,
                             capabilities=market_query.capabilities,
                             contextTerms=["realtime", "market"])
        assert (matcher.score_one(market_analyzer, with_context).composite_score
                == matcher.score_one(market_analyzer, market_query).composite_score)


class TestFailureContainment:

    def test_malformed_mapping_scores_zero(self, matcher, market_query):
        catalog = [
            {"name": "Market Trends", "description": "watches market trends"},
            {"name": 5},
        ]
        results = matcher.rank(catalog, market_query, min_score=0)

        assert len(results) == 2
        assert results[0].descriptor.name == "Market Trends"
        broken = results[1]
        assert broken.descriptor == {"name": 5}
        assert broken.composite_score == 0.0
        assert broken.field_scores == {}
        assert broken.error.startswith("[INVALID_DESCRIPTOR]")

    def test_scoring_fault_scores_zero(self, matcher, market_analyzer, market_query):
        broken = Descriptor.model_construct(name=None, description=None)
        results = matcher.rank([broken, market_analyzer], market_query, min_score=0)

        assert [r.descriptor for r in results] == [market_analyzer, broken]
        assert results[1].composite_score == 0.0
        assert results[1].error.startswith("[SCORING_FAULT]")

    def test_unsupported_entry_type(self, matcher, market_query):
        results = matcher.rank([42], market_query, min_score=0)
        assert results[0].descriptor == {"raw": "42"}
        assert results[0].error.startswith("[INVALID_DESCRIPTOR]")

    def test_malformed_entry_below_default_threshold(self, matcher, market_analyzer, market_query):
        results = matcher.rank([{"description": "no name"}, market_analyzer], market_query)
        assert [r.descriptor for r in results] == [market_analyzer]


class TestParameterValidation:

    @pytest.mark.parametrize("max_results", [-1, 2.5, "10", True])
    def test_bad_max_results(self, matcher, market_analyzer, market_query, max_results):
        with pytest.raises(InvalidParameterException) as exc_info:
            matcher.rank([market_analyzer], market_query, max_results=max_results)
        assert exc_info.value.error_code == "INVALID_PARAMETER"
        assert isinstance(exc_info.value, ValidationException)
        assert isinstance(exc_info.value, MatcherException)

    @pytest.mark.parametrize("min_score", [float("nan"), "0.3", [0.3]])
    def test_bad_min_score(self, matcher, market_analyzer, market_query, min_score):
        with pytest.raises(InvalidParameterException):
            matcher.rank([market_analyzer], market_query, min_score=min_score)

    def test_omitted_parameters_use_defaults(self, matcher):
        assert matcher.resolve_parameters(None, None) == (0.3, 50)
        assert matcher.resolve_parameters(0, 5) == (0.0, 5)

    def test_invalid_query(self, matcher, market_analyzer):
        with pytest.raises(InvalidQueryException):
            matcher.rank([market_analyzer], {"keywords": 42})
        with pytest.raises(InvalidQueryException):
            matcher.rank([market_analyzer], "market trends")

    def test_missing_catalog(self, matcher, market_query):
        with pytest.raises(InvalidParameterException):
            matcher.rank(None, market_query)

    @pytest.mark.parametrize("chunk_size", [0, -3, 1.5])
    def test_bad_chunk_size(self, chunk_size):
        with pytest.raises(InvalidParameterException):
            ActionMatcher(chunk_size=chunk_size)


@pytest.mark.asyncio
class TestRankAsync:

    async def test_matches_sequential_rank(self, large_catalog):
        matcher = ActionMatcher(chunk_size=7)
        query = Query(keywords=["market", "trends"], capabilities=["market_analysis"])

        sequential = matcher.rank(large_catalog, query, min_score=0.1, max_results=40)
        concurrent = await matcher.rank_async(large_catalog, query, min_score=0.1, max_results=40)

        assert ([r.model_dump_json() for r in concurrent]
                == [r.model_dump_json() for r in sequential])

    async def test_contains_failures(self, market_analyzer, market_query):
        matcher = ActionMatcher(chunk_size=1)
        catalog = [{"name": 1}, market_analyzer, Descriptor.model_construct(name=None, description=None)]
        results = await matcher.rank_async(catalog, market_query, min_score=0)
        assert len(results) == 3
        assert results[0].descriptor == market_analyzer
        assert results[1].error.startswith("[INVALID_DESCRIPTOR]")
        assert results[2].error.startswith("[SCORING_FAULT]")

    async def test_rejects_bad_parameters(self, matcher, market_analyzer, market_query):
        with pytest.raises(InvalidParameterException):
            await matcher.rank_async([market_analyzer], market_query, max_results=-5)
