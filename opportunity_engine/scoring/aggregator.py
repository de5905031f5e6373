"""
Match aggregation and ranking.

Aggregation
-----------
    overall_score = Σ wᵢ·vᵢ / Σ wᵢ      over factors with a known value
    completeness  = known factors / all factors
    consistency   = 1 − variance(known values) / 0.25
    confidence    = completeness_weight · completeness
                  + consistency_weight  · consistency

0.25 is the largest population variance attainable on [0, 1], so
consistency is itself in [0, 1].  Sums are taken with ``math.fsum`` over
factor names in sorted order, so identical inputs give bit-identical output.

If no factor is known (or every known factor has zero weight) there is no
meaningful score and ``InsufficientDataError`` is raised.

Ranking
-------
``rank()`` sorts by overall_score descending, then confidence descending,
then resource_id ascending.  Resources with no scorable factor are skipped
(logged at WARNING).  Each match is priced with ``resource.engagement_cost()`` under the policy's
engagement assumptions (``None`` for resources not billed hourly).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from opportunity_engine.errors import InputValidationError, InsufficientDataError
from opportunity_engine.models.match import FactorScore, MatchResult
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.resource import Resource
from opportunity_engine.policy import DEFAULT_POLICY, EnginePolicy, MatchPolicy
from opportunity_engine.scoring.factors import FactorFn, FactorScorer
from opportunity_engine.utils.logging import log_context

logger = logging.getLogger(__name__)

_MAX_VARIANCE = 0.25


@dataclass(frozen=True)
class AggregateScore:
    """Result of ``aggregate()``.

    Attributes:
        overall_score: Weighted mean of known factor values, in [0, 1].
        confidence:    Completeness/consistency blend, in [0, 1].
        completeness:  Fraction of factors with a known value.
        consistency:   1 − normalised variance of known values.
    """

    overall_score: float
    confidence: float
    completeness: float
    consistency: float


def aggregate(
    factor_scores: Sequence[Optional[FactorScore]],
    policy: MatchPolicy | None = None,
) -> AggregateScore:
    """Combine factor scores into an overall score and confidence.

    Args:
        factor_scores: One entry per factor; ``None`` marks an unknown factor.
        policy:        Supplies the confidence blend weights.

    Returns:
        ``AggregateScore``.

    Raises:
        InsufficientDataError: If no factor has a known, positively weighted value.
    """
    policy = policy or DEFAULT_POLICY.match
    total = len(factor_scores)
    known = sorted(
        (fs for fs in factor_scores if fs is not None),
        key=lambda fs: fs.factor_name,
    )
    if not known:
        raise InsufficientDataError(
            f"All {total} factors are unknown; cannot aggregate a match score."
        )

    weight_sum = math.fsum(fs.weight for fs in known)
    if weight_sum <= 0.0:
        raise InsufficientDataError(
            "Every known factor has zero weight; cannot aggregate a match score."
        )
    overall = math.fsum(fs.weight * fs.value for fs in known) / weight_sum

    values = [fs.value for fs in known]
    mean = math.fsum(values) / len(values)
    variance = math.fsum((v - mean) ** 2 for v in values) / len(values)

    completeness = len(known) / total
    consistency = _clamp(1.0 - variance / _MAX_VARIANCE)
    confidence = (
        policy.completeness_weight * completeness
        + policy.consistency_weight * consistency
    )

    return AggregateScore(
        overall_score=_clamp(overall),
        confidence=_clamp(confidence),
        completeness=completeness,
        consistency=consistency,
    )


def rank(
    opportunity: Opportunity,
    resources: Iterable[Resource],
    weights: dict[str, float] | None = None,
    policy: EnginePolicy | None = None,
    extra_factors: Mapping[str, FactorFn] | None = None,
) -> list[MatchResult]:
    """Score every resource against ``opportunity`` and return them ranked.

    Args:
        opportunity:   Opportunity being matched.
        resources:     Candidate resources; ids must be unique.
        weights:       Optional factor weights overriding the policy.
        policy:        Engine policy; ``DEFAULT_POLICY`` when omitted.
        extra_factors: Additional factor functions for the scorer.

    Returns:
        ``MatchResult`` list sorted by (overall_score desc, confidence desc,
        resource_id asc), filtered by the policy's ``min_score`` and cut to
        ``top_n`` when set.

    Raises:
        InputValidationError: On duplicate resource ids.
        ConfigurationError:   If ``weights`` is not a valid weight map.
    """
    match_policy = (policy or DEFAULT_POLICY).match
    if weights is not None:
        match_policy = match_policy.with_weights(weights)
    scorer = FactorScorer(match_policy, extra_factors)

    seen: set[str] = set()
    results: list[MatchResult] = []

    for resource in resources:
        if resource.resource_id in seen:
            raise InputValidationError(
                "Duplicate resource id in ranking input", record_id=resource.resource_id
            )
        seen.add(resource.resource_id)

        scores = scorer.score_all(opportunity, resource)
        try:
            agg = aggregate(list(scores.values()), match_policy)
        except InsufficientDataError:
            logger.warning(
                "Skipping resource %s for opportunity %s: no scorable factors.",
                resource.resource_id,
                opportunity.opportunity_id,
                extra=log_context(opportunity.opportunity_id, resource.resource_id),
            )
            continue

        breakdown = [fs for fs in scores.values() if fs is not None]
        missing = [name for name, fs in scores.items() if fs is None]
        results.append(
            MatchResult(
                opportunity_id=opportunity.opportunity_id,
                resource_id=resource.resource_id,
                resource_variant=resource.variant,
                overall_score=agg.overall_score,
                confidence=agg.confidence,
                factor_breakdown=breakdown,
                missing_factors=missing,
                reasoning=build_match_reasoning(opportunity, breakdown, missing),
                engagement_cost=resource.engagement_cost(
                    match_policy.engagement_hours_per_week,
                    match_policy.engagement_weeks,
                    match_policy.expense_per_hour,
                ),
            )
        )

    ranked = sorted(results, key=lambda m: (-m.overall_score, -m.confidence, m.resource_id))
    ranked = [m for m in ranked if m.overall_score >= match_policy.min_score]
    if match_policy.top_n is not None:
        ranked = ranked[: match_policy.top_n]

    logger.info(
        "Ranked %d of %d resources for opportunity %s.",
        len(ranked), len(seen), opportunity.opportunity_id,
        extra=log_context(
            opportunity.opportunity_id,
            ranked[0].resource_id if ranked else None,
        ),
    )
    return ranked


def build_match_reasoning(
    opportunity: Opportunity,
    breakdown: list[FactorScore],
    missing: list[str],
) -> str:
    """Assemble a human-readable reasoning string from a factor breakdown.

    Returns a semicolon-separated list of explanation tokens such as:
        "Strong channel alignment with qsr; High revenue potential;
        Not scored: market_timing"
    """
    values = {fs.factor_name: fs.value for fs in breakdown}
    reasons: list[str] = []

    channel = values.get("channel_relevance")
    if channel is not None:
        if channel >= 0.8:
            reasons.append(f"Strong channel alignment with {opportunity.channel}")
        elif channel >= 0.5:
            reasons.append(f"Good channel compatibility with {opportunity.channel}")
        else:
            reasons.append(f"Weak channel fit for {opportunity.channel}")

    if values.get("revenue_size", 0.0) >= 0.7:
        reasons.append("High revenue potential")

    timing = values.get("market_timing")
    if timing is not None and timing >= 0.7:
        reasons.append("Favourable market timing")

    execution = values.get("execution_complexity")
    if execution is not None:
        if execution >= 0.7:
            reasons.append("Feasible implementation timeline")
        elif execution < 0.5:
            reasons.append("Implementation complexity may require extended timeline")

    if values.get("strategic_fit", 0.0) >= 0.7:
        reasons.append("Strong strategic value alignment")

    if missing:
        reasons.append(f"Not scored: {', '.join(missing)}")

    return "; ".join(reasons) or "Moderate compatibility with growth potential"


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))
