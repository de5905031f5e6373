"""
Tests for opportunity_engine/policy.py.

What we test
------------
validate_weights():
  - Accepts weights summing to 1 within epsilon; rejects empty, negative,
    and off-sum maps with ConfigurationError.

MatchPolicy / ScenarioConfig / RiskConfig / RecommendationPolicy:
  - Defaults are internally consistent (DEFAULT_POLICY constructs).
  - Bad weights, missing scenarios, non-monotonic checkpoints, inverted risk
    thresholds, and inverted tier thresholds raise ConfigurationError (not a
    pydantic ValidationError).
  - with_weights() returns a re-validated copy.
  - sample_periods appends the horizon when absent.
"""

from __future__ import annotations

import pytest

from opportunity_engine.errors import ConfigurationError
from opportunity_engine.policy import (
    DEFAULT_FACTOR_WEIGHTS,
    DEFAULT_POLICY,
    MatchPolicy,
    RecommendationPolicy,
    RiskConfig,
    RiskThresholds,
    ScenarioAssumption,
    ScenarioConfig,
    validate_weights,
)
from opportunity_engine.taxonomy.engine_taxonomy import (
    RiskCategoryName,
    RiskLevel,
    ScenarioName,
)


class TestValidateWeights:
    def test_default_factor_weights_sum_to_one(self):
        validate_weights(DEFAULT_FACTOR_WEIGHTS, "defaults")

    def test_within_epsilon_accepted(self):
        validate_weights({"a": 0.5, "b": 0.5 + 1e-9}, "w")

    def test_off_sum_rejected(self):
        with pytest.raises(ConfigurationError, match="sum to 1.0"):
            validate_weights({"a": 0.5, "b": 0.4}, "w")

    def test_negative_rejected(self):
        with pytest.raises(ConfigurationError, match="negative"):
            validate_weights({"a": 1.5, "b": -0.5}, "w")

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError, match="empty"):
            validate_weights({}, "w")


class TestMatchPolicy:
    def test_defaults_valid(self):
        policy = MatchPolicy()
        assert policy.weights["channel_relevance"] == 0.25

    def test_bad_weights_raise_configuration_error(self):
        with pytest.raises(ConfigurationError):
            MatchPolicy(weights={"channel_relevance": 0.9})

    def test_confidence_blend_must_sum_to_one(self):
        with pytest.raises(ConfigurationError, match="Confidence weights"):
            MatchPolicy(completeness_weight=0.5, consistency_weight=0.4)

    def test_with_weights_returns_validated_copy(self):
        policy = MatchPolicy().with_weights({"revenue_size": 1.0})
        assert policy.weights == {"revenue_size": 1.0}
        assert DEFAULT_POLICY.match.weights == DEFAULT_FACTOR_WEIGHTS

    def test_with_weights_rejects_bad_map(self):
        with pytest.raises(ConfigurationError):
            MatchPolicy().with_weights({"revenue_size": 0.3})


class TestScenarioConfig:
    def test_defaults(self):
        cfg = ScenarioConfig()
        assert cfg.scenarios[ScenarioName.CONSERVATIVE].multiplier == 0.6
        assert cfg.scenarios[ScenarioName.EXPECTED].probability == 0.65
        assert cfg.scenarios[ScenarioName.OPTIMISTIC].multiplier == 1.5
        assert cfg.sample_periods == [3, 6, 12, 24]

    def test_horizon_appended_to_sample_periods(self):
        cfg = ScenarioConfig(horizon_months=36, checkpoints=[6, 12])
        assert cfg.sample_periods == [6, 12, 36]

    def test_missing_scenario_raises(self):
        with pytest.raises(ConfigurationError, match="missing scenarios"):
            ScenarioConfig(
                scenarios={ScenarioName.EXPECTED: ScenarioAssumption(multiplier=1.0, probability=0.5)}
            )

    def test_non_increasing_checkpoints_raise(self):
        with pytest.raises(ConfigurationError, match="strictly increasing"):
            ScenarioConfig(checkpoints=[6, 3, 12])

    def test_checkpoint_beyond_horizon_raises(self):
        with pytest.raises(ConfigurationError, match="exceeds horizon"):
            ScenarioConfig(horizon_months=12, checkpoints=[6, 18])


class TestRiskConfig:
    def test_defaults_cover_every_category_and_level(self):
        cfg = RiskConfig()
        for name in RiskCategoryName:
            assert name in cfg.categories
            for level in RiskLevel:
                assert cfg.mitigation_rules[name][level].strategy

    def test_inverted_thresholds_raise(self):
        with pytest.raises(ConfigurationError, match="low_max < medium_max"):
            RiskThresholds(low_max=0.6, medium_max=0.3)

    def test_threshold_classification_boundaries(self):
        t = RiskThresholds()
        assert t.classify(0.2999) == RiskLevel.LOW
        assert t.classify(0.30) == RiskLevel.MEDIUM
        assert t.classify(0.5999) == RiskLevel.MEDIUM
        assert t.classify(0.60) == RiskLevel.HIGH

    def test_category_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError, match="Risk category weights"):
            RiskConfig(category_weights={name: 0.1 for name in RiskCategoryName})


class TestRecommendationPolicy:
    def test_defaults(self):
        policy = RecommendationPolicy()
        assert policy.pursue_min_score == 0.80
        assert policy.evaluate_min_score == 0.60
        assert policy.action_templates

    def test_inverted_tier_thresholds_raise(self):
        with pytest.raises(ConfigurationError):
            RecommendationPolicy(pursue_min_score=0.5, evaluate_min_score=0.7)
