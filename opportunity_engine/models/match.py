"""
Match output models.

``FactorScore`` is one named, weighted dimension of a match.  ``MatchResult``
is the scored pairing of one opportunity with one resource.

Invariant: ``MatchResult.overall_score`` is a deterministic function of
``factor_breakdown`` and the weight policy in effect.  Factors that could not
be scored are listed in ``missing_factors`` rather than recorded as zero.

Both models are frozen and round-trip losslessly through
``model_dump_json()`` / ``model_validate_json()``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from opportunity_engine.models.resource import EngagementCost
from opportunity_engine.taxonomy.engine_taxonomy import ResourceVariant


class FactorScore(BaseModel):
    """A single factor's normalised value and policy weight.

    Attributes:
        factor_name: Registered factor name, e.g. ``"channel_relevance"``.
        value: Normalised score in [0, 1].
        weight: Policy weight applied to this factor (not renormalised).
    """

    model_config = ConfigDict(frozen=True)

    factor_name: str
    value: float = Field(ge=0.0, le=1.0)
    weight: float = Field(ge=0.0)


class MatchResult(BaseModel):
    """Scored opportunity/resource pairing.

    Attributes:
        opportunity_id: The opportunity that was matched.
        resource_id: The matched resource.
        resource_variant: Variant of the matched resource.
        overall_score: Weighted mean of known factor values, in [0, 1].
        confidence: Completeness/consistency blend, in [0, 1].
        factor_breakdown: Known factor scores in factor-name order.
        missing_factors: Factor names that could not be scored.
        reasoning: Semicolon-separated explanation tokens.
        engagement_cost: Estimated engagement cost for hourly-billed
            resources (experts with a rate); ``None`` otherwise.
    """

    model_config = ConfigDict(frozen=True)

    opportunity_id: str
    resource_id: str
    resource_variant: ResourceVariant
    overall_score: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    factor_breakdown: list[FactorScore]
    missing_factors: list[str] = []
    reasoning: str = ""
    engagement_cost: Optional[EngagementCost] = None

    def factor(self, name: str) -> FactorScore | None:
        """Return the breakdown entry for ``name``, or ``None`` if unknown."""
        for fs in self.factor_breakdown:
            if fs.factor_name == name:
                return fs
        return None
