"""
Opportunity input models.

``Opportunity`` is a candidate AFH partnership or deal.  It arrives fully
resolved from the CRUD service and the market-signal ingestion service; the
engine treats it as immutable input.

``MarketSignals`` carries the structured attributes the factor scorer needs.
Every signal is optional: a missing signal makes the dependent factor
*unknown* (lowering match confidence), it is never read as zero.

``revenue_potential`` is deliberately allowed to be absent or non-positive at
the model level.  The revenue projector is the component that owns that
contract and raises ``MissingRevenueBaseError`` for it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from opportunity_engine.taxonomy.engine_taxonomy import Channel


class MarketSignals(BaseModel):
    """Market attributes used by the factor scorer.

    Attributes:
        market_size: Addressable market size in currency units.
        growth_rate: Annual market growth as a fraction (``0.12`` = 12%).
            May be negative for contracting markets.
        trend_momentum: Strength of supporting consumer trends, 0–1.
        competitive_intensity: Competitive pressure in the segment, 0–1.
        market_share: Current share held in the segment, 0–1.
        demand_volatility: Demand instability (seasonality, shocks), 0–1.
        keywords: Needs / themes describing the opportunity, matched against
            resource capability tags.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    market_size: Optional[float] = Field(default=None, ge=0.0)
    growth_rate: Optional[float] = None
    trend_momentum: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    competitive_intensity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    market_share: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    demand_volatility: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    keywords: list[str] = []

    @field_validator("keywords")
    @classmethod
    def normalise_keywords(cls, v: list[str]) -> list[str]:
        return normalise_tags(v)


class Opportunity(BaseModel):
    """A business opportunity scored by the engine.

    Attributes:
        opportunity_id: Stable identifier from the CRUD service.
        title: Display title.
        channel: AFH channel the opportunity belongs to.
        region: Sales region, e.g. ``"us-west"``.
        revenue_potential: Base revenue estimate in currency units, or
            ``None`` when not yet sized.
        market_signals: Resolved market attributes.
        timeline_months: Horizon the opportunity must be delivered within.
        investment: Up-front investment; ``None`` lets the projector derive it
            from the scenario config's ``investment_ratio``.
        risk_signals: Observed risk factor values (0–1) keyed by factor name,
            e.g. ``{"competition": 0.7}``.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    opportunity_id: str = Field(min_length=1)
    title: str
    channel: Channel
    region: str = "global"
    revenue_potential: Optional[float] = None
    market_signals: MarketSignals = MarketSignals()
    timeline_months: Optional[int] = Field(default=None, ge=1)
    investment: Optional[float] = Field(default=None, ge=0.0)
    risk_signals: dict[str, float] = {}

    @field_validator("risk_signals")
    @classmethod
    def validate_risk_signals(cls, v: dict[str, float]) -> dict[str, float]:
        for name, value in v.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(
                    f"risk_signals['{name}'] must be in [0.0, 1.0], got {value}."
                )
        return v


def normalise_tags(tags: list[str]) -> list[str]:
    """Lower-case, strip, and de-duplicate tags while keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
