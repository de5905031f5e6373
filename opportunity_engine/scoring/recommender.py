"""
Recommendation engine: combines a match, revenue scenarios, and a risk
profile into a pursue / evaluate / pass decision with next actions.

Tier rules (default ``RecommendationPolicy``, first match wins)
----------------------------------------------------------------
    1. PURSUE   : overall_score >= 0.80  AND  overall risk level != high
    2. EVALUATE : 0.60 <= overall_score < 0.80  OR  overall risk level == medium
    3. PASS     : everything else

Next actions
------------
Templates are evaluated in policy order; a template fires when the tier
matches and each trigger it sets holds (risk category level, overall risk
level, weak or unscored factor, low expected revenue).  Fired actions are
stably sorted by priority (high, medium, low), de-duplicated by title, and
cut to ``max_actions``.
"""

from __future__ import annotations

import logging

from opportunity_engine.errors import InputValidationError
from opportunity_engine.models.match import MatchResult
from opportunity_engine.models.projection import RevenueScenario
from opportunity_engine.models.recommendation import NextAction, Recommendation
from opportunity_engine.models.risk import RiskProfile
from opportunity_engine.policy import (
    DEFAULT_POLICY,
    ActionTemplate,
    RecommendationPolicy,
)
from opportunity_engine.taxonomy.engine_taxonomy import (
    RecommendationTier,
    RiskLevel,
    ScenarioName,
)
from opportunity_engine.utils.logging import log_context

logger = logging.getLogger(__name__)


def determine_tier(
    overall_score: float,
    risk_level: RiskLevel,
    policy: RecommendationPolicy | None = None,
) -> RecommendationTier:
    """Apply the tier rules to a match score and overall risk level."""
    policy = policy or DEFAULT_POLICY.recommendation
    if overall_score >= policy.pursue_min_score and risk_level != RiskLevel.HIGH:
        return RecommendationTier.PURSUE
    if (
        policy.evaluate_min_score <= overall_score < policy.pursue_min_score
        or risk_level == RiskLevel.MEDIUM
    ):
        return RecommendationTier.EVALUATE
    return RecommendationTier.PASS


def recommend(
    match_result: MatchResult,
    revenue_scenarios: list[RevenueScenario],
    risk_profile: RiskProfile,
    policy: RecommendationPolicy | None = None,
) -> Recommendation:
    """Derive the final recommendation for one opportunity/resource pairing.

    Args:
        match_result:      Scored pairing from ``rank()``.
        revenue_scenarios: Output of ``project_revenue()``; must include the
                           expected scenario.
        risk_profile:      Output of ``assess_risk()``.
        policy:            Recommendation policy; defaults when omitted.

    Returns:
        ``Recommendation`` with tier, rationale, and ordered next actions.

    Raises:
        InputValidationError: If the expected scenario is missing.
    """
    policy = policy or DEFAULT_POLICY.recommendation
    expected = _find_scenario(revenue_scenarios, ScenarioName.EXPECTED)
    if expected is None:
        raise InputValidationError(
            "Revenue scenarios do not include the expected scenario",
            record_id=match_result.opportunity_id,
        )

    tier = determine_tier(match_result.overall_score, risk_profile.overall_level, policy)
    actions = _select_actions(tier, match_result, expected, risk_profile, policy)
    rationale = build_rationale(tier, match_result, expected, risk_profile)

    logger.info(
        "Recommendation for %s / %s: %s",
        match_result.opportunity_id, match_result.resource_id, tier,
        extra=log_context(
            match_result.opportunity_id, match_result.resource_id, tier=tier.value
        ),
    )
    return Recommendation(tier=tier, rationale=rationale, next_actions=actions)


def build_rationale(
    tier: RecommendationTier,
    match_result: MatchResult,
    expected: RevenueScenario,
    risk_profile: RiskProfile,
) -> str:
    """Assemble a human-readable rationale for the decision.

    Example::

        "Pursue: match score 84% (confidence 91%) for resource prod-01;
        low overall risk (22%); expected revenue $2,800,000 at 65% probability"
    """
    parts = [
        f"{tier.value.capitalize()}: match score {match_result.overall_score:.0%} "
        f"(confidence {match_result.confidence:.0%}) for resource {match_result.resource_id}",
        f"{risk_profile.overall_level.value} overall risk ({risk_profile.overall_risk_score:.0%})",
        f"expected revenue ${expected.total_revenue:,.0f} at {expected.probability:.0%} probability",
    ]
    top = risk_profile.top_categories(1)
    if top and top[0].level != RiskLevel.LOW:
        parts.append(f"largest risk: {top[0].name.value} ({top[0].level.value})")
    return "; ".join(parts)


def _select_actions(
    tier: RecommendationTier,
    match_result: MatchResult,
    expected: RevenueScenario,
    risk_profile: RiskProfile,
    policy: RecommendationPolicy,
) -> list[NextAction]:
    fired = [
        t for t in policy.action_templates
        if _template_fires(t, tier, match_result, expected, risk_profile, policy)
    ]
    fired.sort(key=lambda t: t.priority.rank)

    actions: list[NextAction] = []
    seen: set[str] = set()
    for template in fired:
        if template.title in seen:
            continue
        seen.add(template.title)
        actions.append(
            NextAction(title=template.title, priority=template.priority, timeframe=template.timeframe)
        )
    return actions[: policy.max_actions]


def _template_fires(
    template: ActionTemplate,
    tier: RecommendationTier,
    match_result: MatchResult,
    expected: RevenueScenario,
    risk_profile: RiskProfile,
    policy: RecommendationPolicy,
) -> bool:
    if tier not in template.tiers:
        return False

    if template.risk_category is not None:
        category = risk_profile.category(template.risk_category)
        if category is None or category.level.rank < template.min_risk_level.rank:
            return False

    if template.overall_risk_level is not None:
        if risk_profile.overall_level.rank < template.overall_risk_level.rank:
            return False

    if template.weak_factor is not None:
        factor = match_result.factor(template.weak_factor)
        if factor is None:
            if template.weak_factor not in match_result.missing_factors:
                return False
        elif factor.value >= policy.weak_factor_threshold:
            return False

    if template.max_expected_revenue is not None:
        if expected.total_revenue >= template.max_expected_revenue:
            return False

    return True


def _find_scenario(
    scenarios: list[RevenueScenario],
    name: ScenarioName,
) -> RevenueScenario | None:
    for scenario in scenarios:
        if scenario.name == name:
            return scenario
    return None
