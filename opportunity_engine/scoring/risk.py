"""
Risk assessment across the fixed category set.

Category score
--------------
    score(c) = Σ weight(f) · value(f)      for factors f of category c

Factor values are resolved in order:
    1. ``opportunity.risk_signals[f]``
    2. the ``MarketSignals`` field mapped to f in ``signal_fallbacks``
    3. the category baseline from ``RiskConfig``

Overall score is the category-weighted sum (equal weights by default).
Levels use one threshold set for categories and overall profile:
``score < 0.30`` low, ``< 0.60`` medium, otherwise high.

Mitigation guidance comes from the (category, level) rules table.
"""

from __future__ import annotations

import logging
import math

from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.risk import RiskAdjustments, RiskCategory, RiskProfile
from opportunity_engine.policy import DEFAULT_POLICY, RiskCategoryPolicy, RiskConfig, RiskThresholds
from opportunity_engine.taxonomy.engine_taxonomy import RiskCategoryName, RiskLevel

logger = logging.getLogger(__name__)


def assess_risk(
    opportunity: Opportunity,
    risk_config: RiskConfig | None = None,
) -> RiskProfile:
    """Score every risk category and the overall profile for an opportunity.

    Args:
        opportunity: Opportunity to assess.
        risk_config: Risk policy; ``DEFAULT_POLICY.risk`` when omitted.

    Returns:
        ``RiskProfile`` with categories in ``RiskCategoryName`` order.
    """
    config = risk_config or DEFAULT_POLICY.risk

    categories: list[RiskCategory] = []
    for name in RiskCategoryName:
        categories.append(
            _assess_category(opportunity, name, config.categories[name], config)
        )

    overall = math.fsum(
        config.category_weights.get(cat.name, 0.0) * cat.score for cat in categories
    )
    overall = max(0.0, min(1.0, overall))
    profile = RiskProfile(
        categories=categories,
        overall_risk_score=overall,
        overall_level=classify_level(overall, config.thresholds),
    )
    logger.debug(
        "Risk for %s: %.3f (%s)",
        opportunity.opportunity_id, profile.overall_risk_score, profile.overall_level,
    )
    return profile


def classify_level(score: float, thresholds: RiskThresholds | None = None) -> RiskLevel:
    """Map a 0–1 risk score to low / medium / high."""
    return (thresholds or DEFAULT_POLICY.risk.thresholds).classify(score)


def risk_adjustments(profile: RiskProfile) -> RiskAdjustments:
    """Scenario modifiers implied by the overall risk score.

    Higher risk lowers expected revenue and success probability and stretches
    timeline and investment:

        revenue_adjustment    = max(0.5, 1 − s/2)
        timeline_adjustment   = 1 + s
        investment_adjustment = 1 + s/1.5
        success_probability   = max(0.1, 1 − s)
    """
    s = profile.overall_risk_score
    return RiskAdjustments(
        revenue_adjustment=max(0.5, 1.0 - s / 2.0),
        timeline_adjustment=1.0 + s,
        investment_adjustment=1.0 + s / 1.5,
        success_probability=max(0.1, 1.0 - s),
    )


def _assess_category(
    opportunity: Opportunity,
    name: RiskCategoryName,
    policy: RiskCategoryPolicy,
    config: RiskConfig,
) -> RiskCategory:
    factor_names = sorted(policy.factor_weights)
    values = {f: _resolve_factor(opportunity, f, policy, config) for f in factor_names}
    contributions = {f: policy.factor_weights[f] * values[f] for f in factor_names}

    score = max(0.0, min(1.0, math.fsum(contributions[f] for f in factor_names)))
    level = config.thresholds.classify(score)

    ordered = sorted(factor_names, key=lambda f: (-contributions[f], f))
    contributing = [f for f in ordered if values[f] >= config.thresholds.low_max]
    if not contributing:
        contributing = ordered[:1]

    rule = config.mitigation_rules[name][level]
    return RiskCategory(
        name=name,
        score=score,
        level=level,
        contributing_factors=contributing,
        mitigation=rule.strategy,
        mitigation_resources=list(rule.resources),
        mitigation_timeframe=rule.timeframe,
    )


def _resolve_factor(
    opportunity: Opportunity,
    factor: str,
    policy: RiskCategoryPolicy,
    config: RiskConfig,
) -> float:
    if factor in opportunity.risk_signals:
        return opportunity.risk_signals[factor]
    signal_field = config.signal_fallbacks.get(factor)
    if signal_field is not None:
        signal = getattr(opportunity.market_signals, signal_field, None)
        if signal is not None:
            return float(signal)
    return policy.baselines[factor]
