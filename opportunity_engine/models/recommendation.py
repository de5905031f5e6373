"""
Recommendation output models.

``Recommendation`` is the final pursue/evaluate/pass decision for one
opportunity/resource pairing, with an ordered list of ``NextAction`` items.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from opportunity_engine.taxonomy.engine_taxonomy import ActionPriority, RecommendationTier


class NextAction(BaseModel):
    """A concrete follow-up step with urgency and suggested timeframe."""

    model_config = ConfigDict(frozen=True)

    title: str
    priority: ActionPriority
    timeframe: str


class Recommendation(BaseModel):
    """Tiered decision for an opportunity/resource pairing.

    Attributes:
        tier: ``pursue``, ``evaluate``, or ``pass``.
        rationale: Human-readable explanation of the decision.
        next_actions: Follow-up steps, most urgent first.
    """

    model_config = ConfigDict(frozen=True)

    tier: RecommendationTier
    rationale: str
    next_actions: list[NextAction] = []

    @field_validator("rationale")
    @classmethod
    def validate_rationale_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("rationale must not be empty.")
        return v.strip()
