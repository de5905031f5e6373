"""
Engine policy: every weight, threshold, multiplier, and rules table.

One ``EnginePolicy`` instance is injected into every engine component.  Call
sites never carry their own scoring constants; changing a number means
changing the policy (in code, or through ``[policy.*]`` sections of
``config/default.toml``).

Sub-policies
------------
MatchPolicy          : factor weights, confidence blend, normalisation references.
ScenarioConfig       : scenario multipliers / probabilities, ramp strategy,
                       checkpoints, margin, investment ratio, discount rate.
RiskConfig           : per-category factor weights and baselines, category
                       weights, level thresholds, mitigation rules table.
RecommendationPolicy : tier thresholds and priority-ordered action templates.

Validation
----------
All policies are frozen pydantic models.  Internal inconsistencies (weights
that do not sum to 1 within ``weight_epsilon``, non-monotonic thresholds,
missing scenarios or categories) raise ``ConfigurationError`` directly from
the model validator; it is not wrapped in a pydantic ``ValidationError``.
"""

from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from opportunity_engine.errors import ConfigurationError
from opportunity_engine.taxonomy.engine_taxonomy import (
    ActionPriority,
    Availability,
    ComplexityLevel,
    RecommendationTier,
    RiskCategoryName,
    RiskLevel,
    ScenarioName,
)

DEFAULT_WEIGHT_EPSILON = 1e-6


def validate_weights(
    weights: dict[str, float],
    label: str,
    epsilon: float = DEFAULT_WEIGHT_EPSILON,
) -> None:
    """Raise ``ConfigurationError`` unless ``weights`` are non-negative and sum to 1.

    Args:
        weights: Name -> weight mapping.
        label:   Description used in the error message.
        epsilon: Allowed absolute deviation of the sum from 1.0.
    """
    if not weights:
        raise ConfigurationError(f"{label} must not be empty.")
    negative = sorted(name for name, w in weights.items() if w < 0)
    if negative:
        raise ConfigurationError(f"{label} contain negative weights: {negative}.")
    total = math.fsum(weights[name] for name in sorted(weights))
    if abs(total - 1.0) > epsilon:
        raise ConfigurationError(
            f"{label} must sum to 1.0 (±{epsilon:g}), got {total:.6f}."
        )


# ── Match policy ──────────────────────────────────────────────────────────────

DEFAULT_FACTOR_WEIGHTS: dict[str, float] = {
    "channel_relevance":    0.25,
    "market_timing":        0.15,
    "competitive_position": 0.15,
    "revenue_size":         0.15,
    "execution_complexity": 0.15,
    "strategic_fit":        0.15,
}


class MatchPolicy(BaseModel):
    """Weights and normalisation references for factor scoring and aggregation.

    ``completeness_weight`` and ``consistency_weight`` blend the two
    confidence terms and must sum to 1.  ``min_score`` and ``top_n`` trim the
    ranked output; the defaults keep every scored resource.  The
    ``engagement_*`` and ``expense_per_hour`` assumptions price hourly-billed
    resources on each match.
    """

    model_config = ConfigDict(frozen=True)

    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_FACTOR_WEIGHTS))
    completeness_weight: float = 0.6
    consistency_weight: float = 0.4
    weight_epsilon: float = Field(default=DEFAULT_WEIGHT_EPSILON, gt=0.0)
    min_score: float = Field(default=0.0, ge=0.0, le=1.0)
    top_n: Optional[int] = Field(default=None, ge=1)

    reference_market_size: float = Field(default=50_000_000.0, gt=0.0)
    reference_revenue: float = Field(default=5_000_000.0, gt=0.0)
    target_growth_rate: float = Field(default=0.20, gt=0.0)
    reference_market_share: float = Field(default=0.25, gt=0.0, le=1.0)
    unknown_market_size_term: float = Field(default=0.5, ge=0.0, le=1.0)
    market_size_blend: float = Field(default=0.3, ge=0.0, le=1.0)
    track_record_weight: float = Field(default=0.3, ge=0.0, le=1.0)

    engagement_hours_per_week: float = Field(default=20.0, gt=0.0)
    engagement_weeks: int = Field(default=12, ge=1)
    expense_per_hour: float = Field(default=50.0, ge=0.0)

    complexity_scores: dict[ComplexityLevel, float] = Field(
        default_factory=lambda: {
            ComplexityLevel.LOW: 0.9, ComplexityLevel.MEDIUM: 0.7, ComplexityLevel.HIGH: 0.5,
        }
    )
    complexity_timeline_months: dict[ComplexityLevel, int] = Field(
        default_factory=lambda: {
            ComplexityLevel.LOW: 3, ComplexityLevel.MEDIUM: 6, ComplexityLevel.HIGH: 12,
        }
    )
    complexity_timeline_bonus: dict[ComplexityLevel, float] = Field(
        default_factory=lambda: {
            ComplexityLevel.LOW: 0.1, ComplexityLevel.MEDIUM: 0.1, ComplexityLevel.HIGH: 0.2,
        }
    )
    availability_penalties: dict[Availability, float] = Field(
        default_factory=lambda: {
            Availability.AVAILABLE: 0.0, Availability.LIMITED: 0.1, Availability.UNAVAILABLE: 0.3,
        }
    )

    @model_validator(mode="after")
    def validate_policy(self) -> "MatchPolicy":
        missing = [lvl.value for lvl in ComplexityLevel if lvl not in self.complexity_scores]
        if missing:
            raise ConfigurationError(f"complexity_scores missing levels {missing}.")
        validate_weights(self.weights, "Factor weights", self.weight_epsilon)
        validate_weights(
            {"completeness": self.completeness_weight, "consistency": self.consistency_weight},
            "Confidence weights",
            self.weight_epsilon,
        )
        return self

    def with_weights(self, weights: dict[str, float]) -> "MatchPolicy":
        """Return a copy of this policy with ``weights`` replaced (re-validated)."""
        data = self.model_dump()
        data["weights"] = dict(weights)
        return MatchPolicy(**data)


# ── Scenario config ───────────────────────────────────────────────────────────


class ScenarioAssumption(BaseModel):
    """Multiplier, likelihood, and delivery window for one scenario."""

    model_config = ConfigDict(frozen=True)

    multiplier: float = Field(ge=0.0)
    probability: float = Field(ge=0.0, le=1.0)
    timeline: str = ""


def _default_scenarios() -> dict[ScenarioName, ScenarioAssumption]:
    return {
        ScenarioName.CONSERVATIVE: ScenarioAssumption(
            multiplier=0.6, probability=0.85, timeline="18-24 months"
        ),
        ScenarioName.EXPECTED: ScenarioAssumption(
            multiplier=1.0, probability=0.65, timeline="12-18 months"
        ),
        ScenarioName.OPTIMISTIC: ScenarioAssumption(
            multiplier=1.5, probability=0.35, timeline="9-15 months"
        ),
    }


RampStrategy = Literal["linear", "logistic"]


class ScenarioConfig(BaseModel):
    """Revenue projection assumptions.

    ``checkpoints`` are the months at which cumulative revenue is reported;
    the horizon is always reported even if not listed.  ``discount_rate`` is
    annual and converted to its monthly equivalent for NPV.
    """

    model_config = ConfigDict(frozen=True)

    scenarios: dict[ScenarioName, ScenarioAssumption] = Field(default_factory=_default_scenarios)
    horizon_months: int = Field(default=24, ge=1)
    checkpoints: list[int] = [3, 6, 12, 24]
    ramp: RampStrategy = "linear"
    logistic_steepness: float = Field(default=0.35, gt=0.0)
    gross_margin: float = Field(default=0.30, ge=0.0, le=1.0)
    investment_ratio: float = Field(default=0.25, ge=0.0)
    discount_rate: float = Field(default=0.10, ge=0.0)

    @model_validator(mode="after")
    def validate_config(self) -> "ScenarioConfig":
        missing = [s.value for s in ScenarioName if s not in self.scenarios]
        if missing:
            raise ConfigurationError(f"Scenario config is missing scenarios: {missing}.")
        cps = self.checkpoints
        if any(c < 1 for c in cps):
            raise ConfigurationError(f"Checkpoints must be >= 1 month, got {cps}.")
        if any(b <= a for a, b in zip(cps, cps[1:])):
            raise ConfigurationError(f"Checkpoints must be strictly increasing, got {cps}.")
        if cps and cps[-1] > self.horizon_months:
            raise ConfigurationError(
                f"Checkpoint {cps[-1]} exceeds horizon of {self.horizon_months} months."
            )
        return self

    @property
    def sample_periods(self) -> list[int]:
        """Checkpoints with the horizon appended when not already present."""
        periods = list(self.checkpoints)
        if not periods or periods[-1] != self.horizon_months:
            periods.append(self.horizon_months)
        return periods


# ── Risk config ───────────────────────────────────────────────────────────────


class RiskCategoryPolicy(BaseModel):
    """Factor weights and baseline factor values for one risk category.

    ``baselines`` are used when neither the opportunity's ``risk_signals`` nor
    a mapped market signal supplies a factor value.
    """

    model_config = ConfigDict(frozen=True)

    factor_weights: dict[str, float]
    baselines: dict[str, float]


class RiskThresholds(BaseModel):
    """Level boundaries: ``score < low_max`` is low, ``< medium_max`` medium, else high."""

    model_config = ConfigDict(frozen=True)

    low_max: float = 0.30
    medium_max: float = 0.60

    @model_validator(mode="after")
    def validate_monotonic(self) -> "RiskThresholds":
        if not 0.0 < self.low_max < self.medium_max <= 1.0:
            raise ConfigurationError(
                "Risk thresholds must satisfy 0 < low_max < medium_max <= 1, "
                f"got low_max={self.low_max}, medium_max={self.medium_max}."
            )
        return self

    def classify(self, score: float) -> RiskLevel:
        if score < self.low_max:
            return RiskLevel.LOW
        if score < self.medium_max:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH


class MitigationRule(BaseModel):
    """Mitigation guidance for one (category, level) cell."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    resources: list[str] = []
    timeframe: str = ""


def _rule(strategy: str, resources: list[str], timeframe: str) -> MitigationRule:
    return MitigationRule(strategy=strategy, resources=resources, timeframe=timeframe)


def _default_risk_categories() -> dict[RiskCategoryName, RiskCategoryPolicy]:
    third = 1.0 / 3.0
    return {
        RiskCategoryName.MARKET: RiskCategoryPolicy(
            factor_weights={"competition": 0.4, "saturation": 0.3, "demand_volatility": 0.3},
            baselines={"competition": 0.40, "saturation": 0.30, "demand_volatility": 0.36},
        ),
        RiskCategoryName.OPERATIONAL: RiskCategoryPolicy(
            factor_weights={"supply_chain": 0.4, "execution_capacity": 0.35, "quality": 0.25},
            baselines={"supply_chain": 0.30, "execution_capacity": 0.24, "quality": 0.10},
        ),
        RiskCategoryName.FINANCIAL: RiskCategoryPolicy(
            factor_weights={"payment_delay": 0.3, "cost_inflation": 0.4, "credit": 0.3},
            baselines={"payment_delay": 0.18, "cost_inflation": 0.36, "credit": 0.10},
        ),
        RiskCategoryName.REGULATORY: RiskCategoryPolicy(
            factor_weights={"regulation_change": 0.4, "compliance_cost": 0.3, "food_safety": 0.3},
            baselines={"regulation_change": 0.30, "compliance_cost": 0.30, "food_safety": 0.20},
        ),
        RiskCategoryName.STRATEGIC: RiskCategoryPolicy(
            factor_weights={
                "channel_fit": third, "timing": third, "resource_availability": third,
            },
            baselines={"channel_fit": 0.18, "timing": 0.18, "resource_availability": 0.18},
        ),
    }


def _default_category_weights() -> dict[RiskCategoryName, float]:
    return {name: 0.2 for name in RiskCategoryName}


def _default_mitigation_rules() -> dict[RiskCategoryName, dict[RiskLevel, MitigationRule]]:
    high, medium, low = RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW
    return {
        RiskCategoryName.MARKET: {
            high: _rule(
                "Conduct thorough market research and develop a differentiation strategy",
                ["market research", "competitive analysis"], "immediate",
            ),
            medium: _rule(
                "Monitor market conditions and prepare contingency plans",
                ["monitoring tools"], "short-term",
            ),
            low: _rule(
                "Regular market monitoring and competitive analysis",
                ["basic analysis"], "medium-term",
            ),
        },
        RiskCategoryName.OPERATIONAL: {
            high: _rule(
                "Implement robust operational processes and backup systems",
                ["process consulting", "system upgrades"], "immediate",
            ),
            medium: _rule(
                "Develop operational excellence and quality controls",
                ["quality systems"], "short-term",
            ),
            low: _rule(
                "Regular operational reviews and process improvements",
                ["process reviews"], "medium-term",
            ),
        },
        RiskCategoryName.FINANCIAL: {
            high: _rule(
                "Implement financial controls and diversify revenue streams",
                ["financial controls", "risk management"], "immediate",
            ),
            medium: _rule(
                "Monitor financial metrics and maintain reserves",
                ["financial monitoring"], "short-term",
            ),
            low: _rule(
                "Regular financial reviews and planning",
                ["regular reviews"], "medium-term",
            ),
        },
        RiskCategoryName.REGULATORY: {
            high: _rule(
                "Engage regulatory experts and ensure full compliance",
                ["legal counsel", "compliance systems"], "immediate",
            ),
            medium: _rule(
                "Monitor regulatory changes and maintain compliance",
                ["regulatory monitoring"], "short-term",
            ),
            low: _rule(
                "Regular compliance reviews and updates",
                ["compliance reviews"], "medium-term",
            ),
        },
        RiskCategoryName.STRATEGIC: {
            high: _rule(
                "Re-validate strategic fit with leadership before committing resources",
                ["executive sponsorship", "strategy consulting"], "immediate",
            ),
            medium: _rule(
                "Align opportunity scope with portfolio priorities",
                ["portfolio review"], "short-term",
            ),
            low: _rule(
                "Review strategic alignment during quarterly planning",
                ["planning cycle"], "medium-term",
            ),
        },
    }


class RiskConfig(BaseModel):
    """Risk scoring policy.

    ``signal_fallbacks`` maps a risk factor name to a ``MarketSignals`` field
    consulted when the opportunity carries no explicit risk signal for it.
    """

    model_config = ConfigDict(frozen=True)

    categories: dict[RiskCategoryName, RiskCategoryPolicy] = Field(
        default_factory=_default_risk_categories
    )
    category_weights: dict[RiskCategoryName, float] = Field(
        default_factory=_default_category_weights
    )
    thresholds: RiskThresholds = RiskThresholds()
    mitigation_rules: dict[RiskCategoryName, dict[RiskLevel, MitigationRule]] = Field(
        default_factory=_default_mitigation_rules
    )
    signal_fallbacks: dict[str, str] = Field(
        default_factory=lambda: {
            "competition": "competitive_intensity",
            "demand_volatility": "demand_volatility",
        }
    )
    weight_epsilon: float = Field(default=DEFAULT_WEIGHT_EPSILON, gt=0.0)

    @model_validator(mode="after")
    def validate_config(self) -> "RiskConfig":
        for name in RiskCategoryName:
            policy = self.categories.get(name)
            if policy is None:
                raise ConfigurationError(f"Risk config is missing category '{name}'.")
            validate_weights(
                policy.factor_weights, f"Risk factor weights for '{name}'", self.weight_epsilon
            )
            missing = sorted(set(policy.factor_weights) - set(policy.baselines))
            if missing:
                raise ConfigurationError(
                    f"Risk category '{name}' has no baseline for factors {missing}."
                )
            out_of_range = sorted(f for f, v in policy.baselines.items() if not 0.0 <= v <= 1.0)
            if out_of_range:
                raise ConfigurationError(
                    f"Risk category '{name}' baselines out of [0, 1]: {out_of_range}."
                )
            rules = self.mitigation_rules.get(name, {})
            missing_levels = [lvl.value for lvl in RiskLevel if lvl not in rules]
            if missing_levels:
                raise ConfigurationError(
                    f"Mitigation rules for '{name}' missing levels {missing_levels}."
                )
        validate_weights(
            {str(k): v for k, v in self.category_weights.items()},
            "Risk category weights",
            self.weight_epsilon,
        )
        unknown = sorted(str(k) for k in self.category_weights if k not in self.categories)
        if unknown:
            raise ConfigurationError(f"Unknown risk categories in weights: {unknown}.")
        return self


# ── Recommendation policy ─────────────────────────────────────────────────────


class ActionTemplate(BaseModel):
    """A next-action template.

    The template fires when the recommendation tier is in ``tiers`` and every
    trigger that is set holds:

      - ``risk_category`` is assessed at ``min_risk_level`` or above,
      - the overall risk level is ``overall_risk_level`` or above,
      - factor ``weak_factor`` is missing or below the weak-factor threshold,
      - expected revenue is below ``max_expected_revenue``.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    priority: ActionPriority
    timeframe: str
    tiers: list[RecommendationTier]
    risk_category: Optional[RiskCategoryName] = None
    min_risk_level: RiskLevel = RiskLevel.MEDIUM
    overall_risk_level: Optional[RiskLevel] = None
    weak_factor: Optional[str] = None
    max_expected_revenue: Optional[float] = None


def _action(
    title: str,
    priority: ActionPriority,
    timeframe: str,
    tiers: list[RecommendationTier],
    **triggers,
) -> ActionTemplate:
    return ActionTemplate(title=title, priority=priority, timeframe=timeframe, tiers=tiers, **triggers)


def _default_action_templates() -> list[ActionTemplate]:
    pursue, evaluate, pass_ = (
        RecommendationTier.PURSUE, RecommendationTier.EVALUATE, RecommendationTier.PASS,
    )
    high, medium, low = ActionPriority.HIGH, ActionPriority.MEDIUM, ActionPriority.LOW
    return [
        _action("Secure an executive sponsor and approve the pilot budget",
                high, "immediate", [pursue]),
        _action("Launch a pilot program in the target channel",
                high, "0-30 days", [pursue]),
        _action("Implement comprehensive risk mitigation before proceeding",
                high, "immediate", [evaluate, pass_], overall_risk_level=RiskLevel.HIGH),
        _action("Conduct thorough market research and develop a differentiation strategy",
                high, "immediate", [pursue, evaluate],
                risk_category=RiskCategoryName.MARKET, min_risk_level=RiskLevel.HIGH),
        _action("Stress-test operations and secure backup suppliers",
                high, "immediate", [pursue, evaluate],
                risk_category=RiskCategoryName.OPERATIONAL, min_risk_level=RiskLevel.HIGH),
        _action("Put financial controls in place before committing investment",
                high, "immediate", [pursue, evaluate],
                risk_category=RiskCategoryName.FINANCIAL, min_risk_level=RiskLevel.HIGH),
        _action("Conduct a deeper evaluation and validate assumptions with a pilot",
                medium, "short-term", [evaluate]),
        _action("Engage regulatory experts to confirm compliance requirements",
                medium, "short-term", [pursue, evaluate],
                risk_category=RiskCategoryName.REGULATORY),
        _action("Validate channel fit with a channel specialist",
                medium, "short-term", [pursue, evaluate], weak_factor="channel_relevance"),
        _action("Build a competitive differentiation plan",
                medium, "short-term", [pursue, evaluate], weak_factor="competitive_position"),
        _action("Scope a phased implementation to reduce execution complexity",
                medium, "short-term", [pursue, evaluate], weak_factor="execution_complexity"),
        _action("Explore revenue enhancement opportunities",
                medium, "short-term", [pursue, evaluate], max_expected_revenue=100_000.0),
        _action("Define KPIs and success metrics for rollout",
                medium, "30-60 days", [pursue, evaluate]),
        _action("Refresh market growth and trend signals",
                low, "medium-term", [evaluate], weak_factor="market_timing"),
        _action("Reassess strategic alignment with portfolio priorities",
                low, "medium-term", [evaluate, pass_], weak_factor="strategic_fit"),
        _action("Consider restructuring the opportunity scope",
                low, "reconsider next quarter", [pass_]),
        _action("Document the pass rationale and archive the opportunity",
                low, "medium-term", [pass_]),
    ]


class RecommendationPolicy(BaseModel):
    """Tier thresholds and next-action templates.

    ``pursue`` requires ``overall_score >= pursue_min_score`` and a non-high
    overall risk level; ``evaluate`` applies when the score is in
    ``[evaluate_min_score, pursue_min_score)`` or the overall risk level is
    medium; everything else is ``pass``.
    """

    model_config = ConfigDict(frozen=True)

    pursue_min_score: float = 0.80
    evaluate_min_score: float = 0.60
    weak_factor_threshold: float = Field(default=0.50, ge=0.0, le=1.0)
    max_actions: int = Field(default=5, ge=1)
    action_templates: list[ActionTemplate] = Field(default_factory=_default_action_templates)

    @model_validator(mode="after")
    def validate_thresholds(self) -> "RecommendationPolicy":
        if not 0.0 <= self.evaluate_min_score < self.pursue_min_score <= 1.0:
            raise ConfigurationError(
                "Recommendation thresholds must satisfy "
                "0 <= evaluate_min_score < pursue_min_score <= 1, got "
                f"evaluate={self.evaluate_min_score}, pursue={self.pursue_min_score}."
            )
        return self


# ── Engine policy ─────────────────────────────────────────────────────────────


class EnginePolicy(BaseModel):
    """The single shared policy object injected into every engine component."""

    model_config = ConfigDict(frozen=True)

    match: MatchPolicy = MatchPolicy()
    scenarios: ScenarioConfig = ScenarioConfig()
    risk: RiskConfig = RiskConfig()
    recommendation: RecommendationPolicy = RecommendationPolicy()


DEFAULT_POLICY = EnginePolicy()
