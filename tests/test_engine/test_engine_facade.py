"""
Tests for opportunity_engine/engine.py.

What we test
------------
OpportunityEngine:
  - Methods delegate with the engine's policy (custom weights respected).
  - analyze(): matches, three scenarios, risk, and a recommendation for the
    top match; None recommendation without resources; risk_adjusted flag.
  - analyze_portfolio(): per-opportunity analyses, matched / unmatched
    counts, resource usage rollup and ordering, duplicate id rejection.
  - to_dict() output is JSON-serialisable.
"""

from __future__ import annotations

import json

import pytest

from opportunity_engine.engine import OpportunityEngine
from opportunity_engine.errors import InputValidationError, MissingRevenueBaseError
from opportunity_engine.policy import EnginePolicy, MatchPolicy
from opportunity_engine.taxonomy.engine_taxonomy import Channel, RecommendationTier


@pytest.fixture
def engine() -> OpportunityEngine:
    return OpportunityEngine()


class TestEngineMethods:
    def test_score(self, engine, opportunity, product):
        assert engine.score(opportunity, product, "revenue_size").value == pytest.approx(0.56)

    def test_rank_uses_engine_policy(self, opportunity, resources):
        engine = OpportunityEngine(EnginePolicy(match=MatchPolicy(top_n=1)))
        assert [m.resource_id for m in engine.rank(opportunity, resources)] == ["prod-01"]

    def test_extra_factors(self, opportunity, resources):
        policy = EnginePolicy(
            match=MatchPolicy(weights={"channel_relevance": 0.5, "sustainability": 0.5})
        )
        engine = OpportunityEngine(
            policy,
            extra_factors={"sustainability": lambda o, r, p: 1.0 if r.variant == "expert" else 0.0},
        )
        ranked = engine.rank(opportunity, resources)
        names = {fs.factor_name for fs in ranked[0].factor_breakdown}
        assert names == {"channel_relevance", "sustainability"}

    def test_project_and_assess(self, engine, opportunity):
        assert len(engine.project_revenue(opportunity)) == 3
        assert engine.assess_risk(opportunity).overall_risk_score == pytest.approx(0.2574)


class TestAnalyze:
    def test_full_analysis(self, engine, opportunity, resources):
        analysis = engine.analyze(opportunity, resources)
        assert [m.resource_id for m in analysis.matches] == ["prod-01", "pb-01", "exp-01"]
        assert analysis.top_match.resource_id == "prod-01"
        assert analysis.expected_revenue == pytest.approx(2_800_000.0)
        assert analysis.recommendation.tier == RecommendationTier.EVALUATE
        assert not any(s.risk_adjusted for s in analysis.scenarios)

    def test_risk_adjusted(self, engine, opportunity, resources):
        analysis = engine.analyze(opportunity, resources, risk_adjusted=True)
        assert all(s.risk_adjusted for s in analysis.scenarios)
        assert analysis.expected_revenue < 2_800_000.0

    def test_no_resources_no_recommendation(self, engine, opportunity):
        analysis = engine.analyze(opportunity, [])
        assert analysis.matches == []
        assert analysis.top_match is None
        assert analysis.recommendation is None

    def test_missing_revenue_propagates(self, engine, make_opportunity, resources):
        with pytest.raises(MissingRevenueBaseError):
            engine.analyze(make_opportunity(revenue_potential=None), resources)

    def test_to_dict_is_json_serialisable(self, engine, opportunity, resources):
        data = engine.analyze(opportunity, resources).to_dict()
        restored = json.loads(json.dumps(data))
        assert restored["opportunity_id"] == "opp-1"
        assert restored["recommendation"]["tier"] == "evaluate"
        assert len(restored["scenarios"]) == 3


class TestAnalyzePortfolio:
    def test_usage_rollup(self, engine, opportunity, make_opportunity, resources):
        second = make_opportunity(
            opportunity_id="opp-2", channel=Channel.WORKPLACE, revenue_potential=1_000_000.0,
        )
        summary = engine.analyze_portfolio([opportunity, second], resources)
        assert [a.opportunity.opportunity_id for a in summary.analyses] == ["opp-1", "opp-2"]
        assert summary.matched_count == 2
        assert summary.unmatched_count == 0

        assert len(summary.resource_usage) == 1
        usage = summary.resource_usage[0]
        assert usage.resource_id == "prod-01"
        assert usage.opportunity_ids == ["opp-1", "opp-2"]
        assert usage.total_expected_revenue == pytest.approx(3_800_000.0)
        scores = [a.top_match.overall_score for a in summary.analyses]
        assert usage.average_score == pytest.approx(sum(scores) / 2)

    def test_usage_ordered_by_revenue_then_id(self, engine, make_opportunity, make_product):
        big = make_opportunity(opportunity_id="big", revenue_potential=5_000_000.0)
        small = make_opportunity(opportunity_id="small", revenue_potential=1_000_000.0)
        # each product serves only one opportunity's channel
        a = make_product(resource_id="a-prod", channels=[Channel.COFFEE])
        z = make_product(resource_id="z-prod", channels=[Channel.QSR])
        small_coffee = small.model_copy(update={"channel": Channel.COFFEE})
        summary = engine.analyze_portfolio([small_coffee, big], [a, z])
        assert [u.resource_id for u in summary.resource_usage] == ["z-prod", "a-prod"]

    def test_no_resources_all_unmatched(self, engine, opportunity, make_opportunity):
        summary = engine.analyze_portfolio([opportunity, make_opportunity(opportunity_id="opp-2")], [])
        assert summary.matched_count == 0
        assert summary.unmatched_count == 2
        assert summary.resource_usage == []

    def test_duplicate_opportunity_ids_raise(self, engine, opportunity, resources):
        with pytest.raises(InputValidationError, match="opp-1"):
            engine.analyze_portfolio([opportunity, opportunity], resources)

    def test_to_dict(self, engine, opportunity, resources):
        data = engine.analyze_portfolio([opportunity], resources).to_dict()
        restored = json.loads(json.dumps(data))
        assert restored["total_opportunities"] == 1
        assert restored["resource_usage"][0]["resource_id"] == "prod-01"
