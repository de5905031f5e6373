"""
Engine facade: one object holding the shared ``EnginePolicy`` and exposing
every scoring operation with that policy applied.

Usage flow
----------
1. engine = OpportunityEngine(policy)            # policy from AppConfig.policy
2. engine.analyze(opportunity, resources)
   -> OpportunityAnalysis  (ranked matches, scenarios, risk, recommendation)
3. engine.analyze_portfolio(opportunities, resources)
   -> PortfolioSummary     (per-opportunity analyses + resource usage rollup)

The facade adds no behaviour of its own beyond sequencing: the three
upstream stages are independent, and ``recommend()`` runs only once all three
outputs exist.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from opportunity_engine.errors import InputValidationError
from opportunity_engine.models.match import FactorScore, MatchResult
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.projection import RevenueScenario
from opportunity_engine.models.recommendation import Recommendation
from opportunity_engine.models.resource import Resource
from opportunity_engine.models.risk import RiskProfile
from opportunity_engine.policy import DEFAULT_POLICY, EnginePolicy
from opportunity_engine.scoring.aggregator import rank
from opportunity_engine.scoring.factors import FactorFn, FactorScorer
from opportunity_engine.scoring.recommender import recommend
from opportunity_engine.scoring.revenue import project_revenue
from opportunity_engine.scoring.risk import assess_risk
from opportunity_engine.taxonomy.engine_taxonomy import ScenarioName
from opportunity_engine.utils.logging import log_context

logger = logging.getLogger(__name__)


@dataclass
class OpportunityAnalysis:
    """Everything the engine derives for one opportunity.

    Attributes:
        opportunity:    The analysed opportunity.
        matches:        Ranked match results (best first).
        scenarios:      Revenue scenarios.
        risk:           Risk profile.
        recommendation: Recommendation for the top match; ``None`` when no
                        resource could be scored.
    """

    opportunity:    Opportunity
    matches:        list[MatchResult]
    scenarios:      list[RevenueScenario]
    risk:           RiskProfile
    recommendation: Optional[Recommendation]

    @property
    def top_match(self) -> Optional[MatchResult]:
        return self.matches[0] if self.matches else None

    @property
    def expected_revenue(self) -> float:
        for scenario in self.scenarios:
            if scenario.name == ScenarioName.EXPECTED:
                return scenario.total_revenue
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (enums as values, floats unrounded)."""
        return {
            "opportunity_id": self.opportunity.opportunity_id,
            "title":          self.opportunity.title,
            "channel":        self.opportunity.channel.value,
            "matches":        [m.model_dump(mode="json") for m in self.matches],
            "scenarios":      [s.model_dump(mode="json") for s in self.scenarios],
            "risk":           self.risk.model_dump(mode="json"),
            "recommendation": (
                self.recommendation.model_dump(mode="json") if self.recommendation else None
            ),
        }


@dataclass
class ResourceUsage:
    """Portfolio rollup for one resource that is a top match somewhere."""

    resource_id:            str
    opportunity_ids:        list[str] = field(default_factory=list)
    total_expected_revenue: float = 0.0
    average_score:          float = 0.0


@dataclass
class PortfolioSummary:
    """Result of ``OpportunityEngine.analyze_portfolio()``."""

    analyses:       list[OpportunityAnalysis]
    resource_usage: list[ResourceUsage]

    @property
    def matched_count(self) -> int:
        return sum(1 for a in self.analyses if a.top_match is not None)

    @property
    def unmatched_count(self) -> int:
        return len(self.analyses) - self.matched_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_opportunities": len(self.analyses),
            "matched_opportunities": self.matched_count,
            "unmatched_opportunities": self.unmatched_count,
            "resource_usage": [
                {
                    "resource_id":            u.resource_id,
                    "opportunity_ids":        list(u.opportunity_ids),
                    "total_expected_revenue": u.total_expected_revenue,
                    "average_score":          u.average_score,
                }
                for u in self.resource_usage
            ],
            "analyses": [a.to_dict() for a in self.analyses],
        }


class OpportunityEngine:
    """Applies one ``EnginePolicy`` to every scoring operation.

    Args:
        policy:        Shared policy; ``DEFAULT_POLICY`` when omitted.
        extra_factors: Additional factor functions available to the scorer.
    """

    def __init__(
        self,
        policy: EnginePolicy | None = None,
        extra_factors: Mapping[str, FactorFn] | None = None,
    ) -> None:
        self.policy = policy or DEFAULT_POLICY
        self.extra_factors = dict(extra_factors or {})
        self._scorer = FactorScorer(self.policy.match, self.extra_factors)

    def score(
        self,
        opportunity: Opportunity,
        resource: Resource,
        factor_name: str,
    ) -> FactorScore | None:
        return self._scorer.score(opportunity, resource, factor_name)

    def rank(
        self,
        opportunity: Opportunity,
        resources: Iterable[Resource],
        weights: dict[str, float] | None = None,
    ) -> list[MatchResult]:
        return rank(opportunity, resources, weights, self.policy, self.extra_factors)

    def project_revenue(
        self,
        opportunity: Opportunity,
        risk_profile: RiskProfile | None = None,
    ) -> list[RevenueScenario]:
        return project_revenue(opportunity, self.policy.scenarios, risk_profile)

    def assess_risk(self, opportunity: Opportunity) -> RiskProfile:
        return assess_risk(opportunity, self.policy.risk)

    def recommend(
        self,
        match_result: MatchResult,
        revenue_scenarios: list[RevenueScenario],
        risk_profile: RiskProfile,
    ) -> Recommendation:
        return recommend(match_result, revenue_scenarios, risk_profile, self.policy.recommendation)

    def analyze(
        self,
        opportunity: Opportunity,
        resources: Iterable[Resource],
        risk_adjusted: bool = False,
    ) -> OpportunityAnalysis:
        """Run every stage for one opportunity.

        Args:
            opportunity:   Opportunity to analyse.
            resources:     Candidate resources.
            risk_adjusted: Scale revenue scenarios by the risk profile.

        Raises:
            MissingRevenueBaseError: If the opportunity has no revenue base.
            InputValidationError:    On duplicate resource ids.
        """
        matches = self.rank(opportunity, resources)
        risk = self.assess_risk(opportunity)
        scenarios = self.project_revenue(opportunity, risk if risk_adjusted else None)
        recommendation = (
            self.recommend(matches[0], scenarios, risk) if matches else None
        )
        if recommendation is None:
            logger.warning(
                "No scorable resources for opportunity %s; no recommendation.",
                opportunity.opportunity_id,
                extra=log_context(opportunity.opportunity_id),
            )
        return OpportunityAnalysis(
            opportunity=opportunity,
            matches=matches,
            scenarios=scenarios,
            risk=risk,
            recommendation=recommendation,
        )

    def analyze_portfolio(
        self,
        opportunities: Iterable[Opportunity],
        resources: Iterable[Resource],
        risk_adjusted: bool = False,
    ) -> PortfolioSummary:
        """Analyse every opportunity and roll up usage of top-matched resources.

        Resource usage is ordered by total expected revenue descending, then
        resource_id ascending.

        Raises:
            InputValidationError: On duplicate opportunity ids.
        """
        resource_list = list(resources)
        analyses: list[OpportunityAnalysis] = []
        seen: set[str] = set()
        for opportunity in opportunities:
            if opportunity.opportunity_id in seen:
                raise InputValidationError(
                    "Duplicate opportunity id in portfolio input",
                    record_id=opportunity.opportunity_id,
                )
            seen.add(opportunity.opportunity_id)
            analyses.append(self.analyze(opportunity, resource_list, risk_adjusted))

        usage: dict[str, ResourceUsage] = {}
        scores: dict[str, list[float]] = {}
        for analysis in analyses:
            top = analysis.top_match
            if top is None:
                continue
            entry = usage.setdefault(top.resource_id, ResourceUsage(resource_id=top.resource_id))
            entry.opportunity_ids.append(analysis.opportunity.opportunity_id)
            entry.total_expected_revenue += analysis.expected_revenue
            scores.setdefault(top.resource_id, []).append(top.overall_score)

        for resource_id, entry in usage.items():
            values = scores[resource_id]
            entry.average_score = math.fsum(values) / len(values)

        ordered = sorted(
            usage.values(), key=lambda u: (-u.total_expected_revenue, u.resource_id)
        )
        logger.info(
            "Portfolio analysed: %d opportunities, %d matched.",
            len(analyses), sum(1 for a in analyses if a.top_match is not None),
        )
        return PortfolioSummary(analyses=analyses, resource_usage=ordered)
