"""
Risk assessment output models.

``RiskCategory`` holds one category's score, its low/medium/high level, the
factors driving it, and the mitigation selected from the rules table.
``RiskProfile`` lists every category in the fixed category order plus the
weighted overall score and level.

``RiskAdjustments`` are the scenario modifiers implied by an overall risk
score (used to produce risk-adjusted revenue projections).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from opportunity_engine.taxonomy.engine_taxonomy import RiskCategoryName, RiskLevel


class RiskCategory(BaseModel):
    """Assessment of one risk category.

    Attributes:
        name: Category name.
        score: Weighted factor combination in [0, 1].
        level: Classification of ``score`` under the policy thresholds.
        contributing_factors: Factor names driving the score, largest first.
        mitigation: Mitigation strategy for (category, level).
        mitigation_resources: Resources the mitigation typically requires.
        mitigation_timeframe: When mitigation should start.
    """

    model_config = ConfigDict(frozen=True)

    name: RiskCategoryName
    score: float = Field(ge=0.0, le=1.0)
    level: RiskLevel
    contributing_factors: list[str] = []
    mitigation: str
    mitigation_resources: list[str] = []
    mitigation_timeframe: str = ""


class RiskProfile(BaseModel):
    """Complete risk assessment for an opportunity."""

    model_config = ConfigDict(frozen=True)

    categories: list[RiskCategory]
    overall_risk_score: float = Field(ge=0.0, le=1.0)
    overall_level: RiskLevel

    def category(self, name: str) -> RiskCategory | None:
        for cat in self.categories:
            if cat.name == name:
                return cat
        return None

    def top_categories(self, n: int = 3) -> list[RiskCategory]:
        """Highest-scoring categories; ties broken by category order."""
        indexed = list(enumerate(self.categories))
        indexed.sort(key=lambda pair: (-pair[1].score, pair[0]))
        return [cat for _, cat in indexed[:n]]


class RiskAdjustments(BaseModel):
    """Scenario modifiers derived from an overall risk score.

    Attributes:
        revenue_adjustment: Multiplier applied to scenario totals (>= 0.5).
        timeline_adjustment: Multiplier on delivery timelines (>= 1).
        investment_adjustment: Multiplier on required investment (>= 1).
        success_probability: Probability of success (>= 0.1).
    """

    model_config = ConfigDict(frozen=True)

    revenue_adjustment: float
    timeline_adjustment: float
    investment_adjustment: float
    success_probability: float
