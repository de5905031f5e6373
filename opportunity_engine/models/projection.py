"""
Revenue projection output models.

A ``RevenueScenario`` is one named assumption set (conservative, expected,
optimistic) with its total, likelihood, checkpointed cumulative revenue, and
derived financial metrics.

Scenario probabilities are independent per-scenario likelihoods, not a
partition: they are not required to sum to 1.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from opportunity_engine.taxonomy.engine_taxonomy import ScenarioName


class ProjectionPoint(BaseModel):
    """Cumulative revenue reached by the end of ``period`` (months)."""

    model_config = ConfigDict(frozen=True)

    period: int = Field(ge=1)
    cumulative_revenue: float = Field(ge=0.0)


class ScenarioFinancials(BaseModel):
    """Return metrics for one scenario.

    Attributes:
        investment: Up-front investment the scenario is measured against.
        gross_profit: ``total_revenue * gross_margin``.
        roi: ``gross_profit / investment``.
        payback_period_months: First checkpoint at which cumulative revenue
            covers the investment; ``None`` means beyond the horizon.
        npv: Net present value of monthly gross-profit cash flows less the
            up-front investment.
    """

    model_config = ConfigDict(frozen=True)

    investment: float = Field(gt=0.0)
    gross_profit: float
    roi: float
    payback_period_months: Optional[int] = None
    npv: float

    @property
    def pays_back_within_horizon(self) -> bool:
        return self.payback_period_months is not None


class RevenueScenario(BaseModel):
    """One revenue projection scenario.

    Attributes:
        name: Scenario name.
        total_revenue: Revenue reached at the horizon.
        probability: Likelihood of at least this outcome, 0–1.
        timeline: Human-readable delivery window, e.g. ``"12-18 months"``.
        monthly_projection: Cumulative revenue at each checkpoint, ascending.
        financials: ROI / payback / NPV for this scenario.
        risk_adjusted: ``True`` when totals were scaled by a risk profile.
    """

    model_config = ConfigDict(frozen=True)

    name: ScenarioName
    total_revenue: float = Field(ge=0.0)
    probability: float = Field(ge=0.0, le=1.0)
    timeline: str
    monthly_projection: list[ProjectionPoint]
    financials: ScenarioFinancials
    risk_adjusted: bool = False

    @model_validator(mode="after")
    def validate_projection_order(self) -> "RevenueScenario":
        periods = [p.period for p in self.monthly_projection]
        if periods != sorted(set(periods)):
            raise ValueError("monthly_projection periods must be strictly increasing.")
        return self

    def revenue_at(self, period: int) -> float | None:
        """Cumulative revenue at checkpoint ``period``, or ``None`` if not sampled."""
        for point in self.monthly_projection:
            if point.period == period:
                return point.cumulative_revenue
        return None
