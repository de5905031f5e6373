"""
Factor scoring: normalised [0, 1] values for individual match dimensions
between one opportunity and one resource.

Built-in factors
----------------
channel_relevance (needs resource channels):
    affinity * ((1 - blend) + blend * size_term)
    affinity  = 1.0 when the resource serves the opportunity channel, else the
                best adjacency from ``CHANNEL_SIMILARITY``.
    size_term = min(market_size / reference_market_size, 1); a configured
                neutral value when market size is unknown.

market_timing (needs growth_rate or trend_momentum):
    mean(clamp(growth_rate / target_growth_rate), trend_momentum)

competitive_position (needs competitive_intensity or market_share):
    mean(1 - competitive_intensity, min(market_share / reference_share, 1))

revenue_size (needs revenue_potential > 0):
    min(revenue_potential / reference_revenue, 1)

execution_complexity (needs resource complexity):
    complexity base score, plus a bonus when the opportunity timeline is long
    enough for that complexity, minus the availability penalty.

strategic_fit (needs opportunity keywords and resource tags):
    overlap = |tags ∩ keywords| / |keywords|
    blended with the resource track record when it has one.

A factor function returns ``None`` when its required inputs are absent:
"unknown" is never reported as zero.  All functions are pure.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Mapping, Optional

from opportunity_engine.errors import ConfigurationError
from opportunity_engine.models.match import FactorScore
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.resource import Resource
from opportunity_engine.policy import DEFAULT_POLICY, EnginePolicy, MatchPolicy
from opportunity_engine.taxonomy.engine_taxonomy import channel_similarity

logger = logging.getLogger(__name__)

FactorFn = Callable[[Opportunity, Resource, MatchPolicy], Optional[float]]


# ── Built-in factor functions ─────────────────────────────────────────────────

def channel_relevance(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    if not resource.channels:
        return None
    affinity = channel_similarity(opportunity.channel, resource.channels)
    market_size = opportunity.market_signals.market_size
    if market_size is None:
        size_term = policy.unknown_market_size_term
    else:
        size_term = min(market_size / policy.reference_market_size, 1.0)
    blend = policy.market_size_blend
    return affinity * ((1.0 - blend) + blend * size_term)


def market_timing(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    signals = opportunity.market_signals
    terms: list[float] = []
    if signals.growth_rate is not None:
        terms.append(_clamp(signals.growth_rate / policy.target_growth_rate))
    if signals.trend_momentum is not None:
        terms.append(signals.trend_momentum)
    return _mean(terms)


def competitive_position(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    signals = opportunity.market_signals
    terms: list[float] = []
    if signals.competitive_intensity is not None:
        terms.append(1.0 - signals.competitive_intensity)
    if signals.market_share is not None:
        terms.append(min(signals.market_share / policy.reference_market_share, 1.0))
    return _mean(terms)


def revenue_size(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    revenue = opportunity.revenue_potential
    if revenue is None or revenue <= 0:
        return None
    return min(revenue / policy.reference_revenue, 1.0)


def execution_complexity(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    level = resource.complexity
    if level is None:
        return None
    value = policy.complexity_scores[level]
    months = opportunity.timeline_months
    if months is not None and months >= policy.complexity_timeline_months.get(level, math.inf):
        value += policy.complexity_timeline_bonus.get(level, 0.0)
    value -= policy.availability_penalties.get(resource.availability, 0.0)
    return value


def strategic_fit(opportunity: Opportunity, resource: Resource, policy: MatchPolicy) -> Optional[float]:
    keywords = set(opportunity.market_signals.keywords)
    tags = resource.matching_tags
    if not keywords or not tags:
        return None
    overlap = len(keywords & tags) / len(keywords)
    track_record = resource.track_record
    if track_record is None:
        return overlap
    w = policy.track_record_weight
    return (1.0 - w) * overlap + w * track_record


BUILTIN_FACTORS: dict[str, FactorFn] = {
    "channel_relevance":    channel_relevance,
    "market_timing":        market_timing,
    "competitive_position": competitive_position,
    "revenue_size":         revenue_size,
    "execution_complexity": execution_complexity,
    "strategic_fit":        strategic_fit,
}


# ── Scorer ────────────────────────────────────────────────────────────────────

class FactorScorer:
    """Scores the factors named by a ``MatchPolicy``.

    The factor set is the policy's weight map; each name resolves to a
    function from ``BUILTIN_FACTORS`` or from ``extra_factors``.  Adding a
    factor therefore means registering a function and giving it a weight,
    with no change to aggregation.

    Args:
        policy:        Match policy (weights and normalisation references).
        extra_factors: Additional factor functions by name; these override
                       built-ins of the same name.

    Raises:
        ConfigurationError: If a weighted factor has no registered function.
    """

    def __init__(
        self,
        policy: MatchPolicy | None = None,
        extra_factors: Mapping[str, FactorFn] | None = None,
    ) -> None:
        self.policy = policy or DEFAULT_POLICY.match
        self._factors: dict[str, FactorFn] = {**BUILTIN_FACTORS, **(extra_factors or {})}
        unknown = sorted(set(self.policy.weights) - set(self._factors))
        if unknown:
            raise ConfigurationError(f"No factor function registered for {unknown}.")

    @property
    def factor_names(self) -> list[str]:
        """Weighted factor names in sorted (deterministic) order."""
        return sorted(self.policy.weights)

    def score(
        self,
        opportunity: Opportunity,
        resource: Resource,
        factor_name: str,
    ) -> FactorScore | None:
        """Score one factor; ``None`` when its inputs are unavailable.

        Raises:
            ConfigurationError: If ``factor_name`` is not registered.
        """
        fn = self._factors.get(factor_name)
        if fn is None:
            raise ConfigurationError(f"Unknown factor '{factor_name}'.")
        value = fn(opportunity, resource, self.policy)
        if value is None:
            return None
        return FactorScore(
            factor_name=factor_name,
            value=_clamp(value),
            weight=self.policy.weights.get(factor_name, 0.0),
        )

    def score_all(
        self,
        opportunity: Opportunity,
        resource: Resource,
    ) -> dict[str, FactorScore | None]:
        """Score every weighted factor, keyed by factor name in sorted order."""
        scores = {
            name: self.score(opportunity, resource, name) for name in self.factor_names
        }
        logger.debug(
            "Scored %s x %s: %s",
            opportunity.opportunity_id,
            resource.resource_id,
            {name: (fs.value if fs else None) for name, fs in scores.items()},
        )
        return scores


def score(
    opportunity: Opportunity,
    resource: Resource,
    factor_name: str,
    weights: dict[str, float] | None = None,
    policy: EnginePolicy | None = None,
) -> FactorScore | None:
    """Score a single factor for one opportunity/resource pair.

    Args:
        opportunity: Opportunity being matched.
        resource:    Candidate resource.
        factor_name: Registered factor name.
        weights:     Optional weight map overriding the policy's weights.
        policy:      Engine policy; ``DEFAULT_POLICY`` when omitted.

    Returns:
        ``FactorScore`` or ``None`` when the factor cannot be computed.
    """
    match_policy = (policy or DEFAULT_POLICY).match
    if weights is not None:
        match_policy = match_policy.with_weights(weights)
    return FactorScorer(match_policy).score(opportunity, resource, factor_name)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return math.fsum(values) / len(values)
