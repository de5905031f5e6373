"""
Revenue projection: conservative / expected / optimistic scenarios with
checkpointed cumulative revenue and ROI, payback, and NPV.

Scenario totals
---------------
    total = revenue_potential × multiplier [× risk revenue_adjustment]

Defaults (``ScenarioConfig``): conservative ×0.6 (p=0.85), expected ×1.0
(p=0.65), optimistic ×1.5 (p=0.35).  Probabilities are independent
likelihoods, not a partition.

Ramp strategies
---------------
Cumulative revenue at month t is ``total × ramp_fraction(t)``:

    linear   : t / H
    logistic : (σ(k(t − H/2)) − σ(−kH/2)) / (σ(kH/2) − σ(−kH/2))

Both are strictly increasing with f(0) = 0 and f(H) = 1, so every scenario
reaches its total exactly at the horizon and scenario ordering holds at every
checkpoint.

Financial metrics
-----------------
    investment   = opportunity.investment or revenue_potential × investment_ratio
    gross_profit = total × gross_margin
    roi          = gross_profit / investment
    payback      = first checkpoint where cumulative revenue >= investment
                   (None = beyond horizon)
    npv          = −investment + Σₘ Δrevenueₘ × gross_margin / (1 + r)ᵐ
                   with r the monthly equivalent of the annual discount rate.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from opportunity_engine.errors import MissingRevenueBaseError, ZeroInvestmentError
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.projection import (
    ProjectionPoint,
    RevenueScenario,
    ScenarioFinancials,
)
from opportunity_engine.models.risk import RiskProfile
from opportunity_engine.policy import DEFAULT_POLICY, RampStrategy, ScenarioConfig
from opportunity_engine.scoring.risk import risk_adjustments
from opportunity_engine.taxonomy.engine_taxonomy import ScenarioName

logger = logging.getLogger(__name__)


def project_revenue(
    opportunity: Opportunity,
    scenario_config: ScenarioConfig | None = None,
    risk_profile: RiskProfile | None = None,
) -> list[RevenueScenario]:
    """Project the three revenue scenarios for an opportunity.

    Args:
        opportunity:     Opportunity with a positive ``revenue_potential``.
        scenario_config: Projection assumptions; policy defaults when omitted.
        risk_profile:    When given, totals are scaled by the profile's
                         revenue adjustment and flagged ``risk_adjusted``.

    Returns:
        Scenarios in order conservative, expected, optimistic.

    Raises:
        MissingRevenueBaseError: If ``revenue_potential`` is absent or <= 0.
        ZeroInvestmentError:     If the resolved investment is 0.
    """
    config = scenario_config or DEFAULT_POLICY.scenarios
    base = opportunity.revenue_potential
    if base is None or base <= 0:
        raise MissingRevenueBaseError(opportunity.opportunity_id)

    adjustment = 1.0
    if risk_profile is not None:
        adjustment = risk_adjustments(risk_profile).revenue_adjustment

    investment = (
        opportunity.investment
        if opportunity.investment is not None
        else base * config.investment_ratio
    )
    periods = config.sample_periods

    scenarios: list[RevenueScenario] = []
    for name in ScenarioName:
        assumption = config.scenarios[name]
        total = base * assumption.multiplier * adjustment
        points = [
            ProjectionPoint(
                period=p,
                cumulative_revenue=total * ramp_fraction(
                    p, config.horizon_months, config.ramp, config.logistic_steepness
                ),
            )
            for p in periods
        ]
        scenarios.append(
            RevenueScenario(
                name=name,
                total_revenue=total,
                probability=assumption.probability,
                timeline=assumption.timeline,
                monthly_projection=points,
                financials=_financials(total, investment, points, config),
                risk_adjusted=risk_profile is not None,
            )
        )

    logger.debug(
        "Projected %s: %s",
        opportunity.opportunity_id,
        {s.name.value: round(s.total_revenue, 2) for s in scenarios},
    )
    return scenarios


def ramp_fraction(
    month: float,
    horizon: int,
    strategy: RampStrategy = "linear",
    steepness: float = 0.35,
) -> float:
    """Fraction of the scenario total reached by ``month`` (0 at start, 1 at horizon)."""
    if month <= 0:
        return 0.0
    if month >= horizon:
        return 1.0
    if strategy == "linear":
        return month / horizon
    if strategy == "logistic":
        mid = horizon / 2.0
        lo = _sigmoid(steepness * (0.0 - mid))
        hi = _sigmoid(steepness * (horizon - mid))
        return (_sigmoid(steepness * (month - mid)) - lo) / (hi - lo)
    raise ValueError(f"Unknown ramp strategy '{strategy}'.")


def compute_roi(gross_profit: float, investment: float) -> float:
    """Return ``gross_profit / investment``.

    Raises:
        ZeroInvestmentError: If ``investment`` is 0; never returns infinity.
    """
    if investment == 0:
        raise ZeroInvestmentError("ROI is undefined for a zero investment.")
    return gross_profit / investment


def payback_period(points: list[ProjectionPoint], investment: float) -> Optional[int]:
    """First checkpoint at which cumulative revenue covers ``investment``.

    Returns:
        Checkpoint month, or ``None`` when the horizon ends first.

    Raises:
        ZeroInvestmentError: If ``investment`` is 0.
    """
    if investment == 0:
        raise ZeroInvestmentError("Payback period is undefined for a zero investment.")
    for point in points:
        if point.cumulative_revenue >= investment:
            return point.period
    return None


def net_present_value(
    total: float,
    investment: float,
    config: ScenarioConfig,
) -> float:
    """NPV of monthly gross-profit increments over the horizon, less investment."""
    monthly_rate = (1.0 + config.discount_rate) ** (1.0 / 12.0) - 1.0
    horizon = config.horizon_months
    flows: list[float] = [-investment]
    previous = 0.0
    for month in range(1, horizon + 1):
        cumulative = total * ramp_fraction(month, horizon, config.ramp, config.logistic_steepness)
        cash = (cumulative - previous) * config.gross_margin
        flows.append(cash / (1.0 + monthly_rate) ** month)
        previous = cumulative
    return math.fsum(flows)


def _financials(
    total: float,
    investment: float,
    points: list[ProjectionPoint],
    config: ScenarioConfig,
) -> ScenarioFinancials:
    gross_profit = total * config.gross_margin
    roi = compute_roi(gross_profit, investment)
    return ScenarioFinancials(
        investment=investment,
        gross_profit=gross_profit,
        roi=roi,
        payback_period_months=payback_period(points, investment),
        npv=net_present_value(total, investment, config),
    )


def _sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))
