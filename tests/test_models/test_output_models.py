"""
Tests for engine output models: matches, projections, risk, recommendations.

What we test
------------
- FactorScore / MatchResult bounds and ``factor()`` lookup.
- JSON round trip of ranked MatchResults, projected RevenueScenarios (with
  and without payback, risk-adjusted) and an assessed RiskProfile is
  lossless: numbers within 1e-9, enums restored as members.
- RevenueScenario rejects non-increasing projection periods.
- ScenarioFinancials requires a positive investment.
- RiskProfile.top_categories orders by score, ties by category order.
- Recommendation rationale must be non-empty and is stripped.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from opportunity_engine.models.match import FactorScore, MatchResult
from opportunity_engine.models.projection import (
    ProjectionPoint,
    RevenueScenario,
    ScenarioFinancials,
)
from opportunity_engine.models.recommendation import Recommendation
from opportunity_engine.models.risk import RiskCategory, RiskProfile
from opportunity_engine.scoring.aggregator import rank
from opportunity_engine.scoring.revenue import project_revenue
from opportunity_engine.scoring.risk import assess_risk
from opportunity_engine.taxonomy.engine_taxonomy import (
    RecommendationTier,
    RiskCategoryName,
    RiskLevel,
    ScenarioName,
)


def _financials(**overrides) -> ScenarioFinancials:
    data = dict(investment=100.0, gross_profit=30.0, roi=0.3, payback_period_months=None, npv=-75.0)
    data.update(overrides)
    return ScenarioFinancials(**data)


def _category(name: RiskCategoryName, score: float) -> RiskCategory:
    return RiskCategory(name=name, score=score, level=RiskLevel.LOW, mitigation="m")


class TestFactorScore:
    def test_value_above_one_raises(self):
        with pytest.raises(ValidationError):
            FactorScore(factor_name="x", value=1.01, weight=0.5)

    def test_negative_weight_raises(self):
        with pytest.raises(ValidationError):
            FactorScore(factor_name="x", value=0.5, weight=-0.1)


class TestMatchResult:
    def test_factor_lookup(self):
        m = MatchResult(
            opportunity_id="o", resource_id="r", resource_variant="product",
            overall_score=0.5, confidence=0.5,
            factor_breakdown=[FactorScore(factor_name="a", value=0.5, weight=1.0)],
            missing_factors=["b"],
        )
        assert m.factor("a").value == 0.5
        assert m.factor("b") is None

    def test_overall_score_out_of_range_raises(self):
        with pytest.raises(ValidationError):
            MatchResult(
                opportunity_id="o", resource_id="r", resource_variant="product",
                overall_score=1.2, confidence=0.5, factor_breakdown=[],
            )

    def test_json_round_trip_within_tolerance(self, opportunity, resources):
        for original in rank(opportunity, resources):
            restored = MatchResult.model_validate_json(original.model_dump_json())
            assert restored.resource_id == original.resource_id
            assert abs(restored.overall_score - original.overall_score) <= 1e-9
            assert abs(restored.confidence - original.confidence) <= 1e-9
            for a, b in zip(restored.factor_breakdown, original.factor_breakdown):
                assert a.factor_name == b.factor_name
                assert abs(a.value - b.value) <= 1e-9
            assert restored.missing_factors == original.missing_factors


class TestRevenueScenario:
    def test_non_increasing_periods_raise(self):
        with pytest.raises(ValidationError, match="strictly increasing"):
            RevenueScenario(
                name=ScenarioName.EXPECTED, total_revenue=100.0, probability=0.5,
                timeline="", financials=_financials(),
                monthly_projection=[
                    ProjectionPoint(period=6, cumulative_revenue=50.0),
                    ProjectionPoint(period=3, cumulative_revenue=25.0),
                ],
            )

    def test_revenue_at(self):
        s = RevenueScenario(
            name=ScenarioName.EXPECTED, total_revenue=100.0, probability=0.5,
            timeline="", financials=_financials(),
            monthly_projection=[ProjectionPoint(period=12, cumulative_revenue=100.0)],
        )
        assert s.revenue_at(12) == 100.0
        assert s.revenue_at(6) is None

    def test_zero_investment_raises(self):
        with pytest.raises(ValidationError):
            _financials(investment=0.0)

    def test_pays_back_within_horizon(self):
        assert _financials(payback_period_months=6).pays_back_within_horizon
        assert not _financials().pays_back_within_horizon


class TestRiskProfile:
    def test_top_categories_sorted_by_score(self):
        profile = RiskProfile(
            categories=[
                _category(RiskCategoryName.MARKET, 0.2),
                _category(RiskCategoryName.OPERATIONAL, 0.5),
                _category(RiskCategoryName.FINANCIAL, 0.5),
            ],
            overall_risk_score=0.4, overall_level=RiskLevel.MEDIUM,
        )
        top = profile.top_categories(2)
        assert [c.name for c in top] == [RiskCategoryName.OPERATIONAL, RiskCategoryName.FINANCIAL]

    def test_category_lookup_by_slug(self):
        profile = RiskProfile(
            categories=[_category(RiskCategoryName.MARKET, 0.2)],
            overall_risk_score=0.2, overall_level=RiskLevel.LOW,
        )
        assert profile.category("market").score == 0.2
        assert profile.category("strategic") is None


class TestEngineOutputRoundTrip:
    """JSON round trip of projector and risk assessor output, within 1e-9."""

    @staticmethod
    def _assert_scenarios_equal(restored: RevenueScenario, original: RevenueScenario) -> None:
        assert restored.name is original.name
        assert restored.timeline == original.timeline
        assert restored.risk_adjusted == original.risk_adjusted
        assert abs(restored.total_revenue - original.total_revenue) <= 1e-9
        assert abs(restored.probability - original.probability) <= 1e-9
        assert [p.period for p in restored.monthly_projection] == [
            p.period for p in original.monthly_projection
        ]
        for a, b in zip(restored.monthly_projection, original.monthly_projection):
            assert abs(a.cumulative_revenue - b.cumulative_revenue) <= 1e-9
        fin_r, fin_o = restored.financials, original.financials
        for attr in ("investment", "gross_profit", "roi", "npv"):
            assert abs(getattr(fin_r, attr) - getattr(fin_o, attr)) <= 1e-9
        assert fin_r.payback_period_months == fin_o.payback_period_months

    def test_revenue_scenarios(self, opportunity):
        for original in project_revenue(opportunity):
            restored = RevenueScenario.model_validate_json(original.model_dump_json())
            self._assert_scenarios_equal(restored, original)

    def test_revenue_scenarios_without_payback(self, make_opportunity):
        opp = make_opportunity(investment=10_000_000.0)
        scenarios = project_revenue(opp)
        assert all(s.financials.payback_period_months is None for s in scenarios)
        for original in scenarios:
            restored = RevenueScenario.model_validate_json(original.model_dump_json())
            assert restored.financials.payback_period_months is None
            self._assert_scenarios_equal(restored, original)

    def test_risk_adjusted_scenarios(self, opportunity):
        profile = assess_risk(opportunity)
        for original in project_revenue(opportunity, risk_profile=profile):
            restored = RevenueScenario.model_validate_json(original.model_dump_json())
            assert restored.risk_adjusted is True
            self._assert_scenarios_equal(restored, original)

    def test_risk_profile(self, make_opportunity):
        opp = make_opportunity(risk_signals={"regulation_change": 0.9, "supply_chain": 0.7})
        original = assess_risk(opp)
        restored = RiskProfile.model_validate_json(original.model_dump_json())

        assert abs(restored.overall_risk_score - original.overall_risk_score) <= 1e-9
        assert restored.overall_level is original.overall_level
        assert [c.name for c in restored.categories] == list(RiskCategoryName)
        for a, b in zip(restored.categories, original.categories):
            assert a.name is b.name
            assert a.level is b.level
            assert abs(a.score - b.score) <= 1e-9
            assert a.contributing_factors == b.contributing_factors
            assert a.mitigation == b.mitigation
            assert a.mitigation_resources == b.mitigation_resources
            assert a.mitigation_timeframe == b.mitigation_timeframe
        assert any(c.mitigation_resources for c in restored.categories)


class TestRecommendation:
    def test_blank_rationale_raises(self):
        with pytest.raises(ValidationError, match="rationale"):
            Recommendation(tier=RecommendationTier.PASS, rationale="   ")

    def test_rationale_stripped(self):
        rec = Recommendation(tier=RecommendationTier.PASS, rationale="  low fit  ")
        assert rec.rationale == "low fit"
