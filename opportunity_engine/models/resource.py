"""
Matchable resource models: products, experts, and playbooks.

``Resource`` is a tagged union discriminated on ``variant``.  All three
variants share one capability contract so the factor scorer never inspects
variant-specific fields directly:

  - ``resource_id``, ``name``
  - ``capability_tags`` — normalised tags matched against opportunity keywords
  - ``channels``        — AFH channels the resource serves
  - ``complexity``      — implementation effort, or ``None`` when unknown
  - ``availability``    — engagement availability (experts vary; others default)
  - ``track_record``    — historical success on a 0–1 scale, or ``None``
  - ``matching_tags``   — every tag that counts for relevance matching
  - ``engagement_cost()`` — cost of engaging the resource, or ``None``

Parse untyped records with ``RESOURCE_ADAPTER.validate_python(record)``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from opportunity_engine.models.opportunity import normalise_tags
from opportunity_engine.taxonomy.engine_taxonomy import (
    Availability,
    Channel,
    ComplexityLevel,
)


WEEKS_PER_MONTH = 4.33


class EngagementCost(BaseModel):
    """Estimated cost of engaging an hourly-billed resource.

    Attributes:
        hourly_rate: Billing rate in currency units.
        hours_per_week: Planned weekly hours.
        duration_weeks: Planned engagement length.
        estimated_hours: ``hours_per_week * duration_weeks``.
        weekly_cost: ``hourly_rate * hours_per_week``.
        monthly_cost: ``weekly_cost * 4.33``.
        total_cost: ``hourly_rate * estimated_hours``.
        expense_estimate: Travel and expenses, ``estimated_hours * expense_per_hour``.
    """

    model_config = ConfigDict(frozen=True)

    hourly_rate: float = Field(ge=0.0)
    hours_per_week: float = Field(gt=0.0)
    duration_weeks: int = Field(ge=1)
    estimated_hours: float = Field(ge=0.0)
    weekly_cost: float = Field(ge=0.0)
    monthly_cost: float = Field(ge=0.0)
    total_cost: float = Field(ge=0.0)
    expense_estimate: float = Field(ge=0.0)


class _ResourceBase(BaseModel):
    """Fields and behaviour shared by every resource variant."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    resource_id: str = Field(min_length=1)
    name: str
    capability_tags: list[str] = []
    channels: list[Channel] = []
    complexity: Optional[ComplexityLevel] = None
    availability: Availability = Availability.AVAILABLE

    @field_validator("capability_tags")
    @classmethod
    def normalise_capability_tags(cls, v: list[str]) -> list[str]:
        return normalise_tags(v)

    @property
    def track_record(self) -> Optional[float]:
        """Historical success rate on a 0–1 scale; ``None`` when not tracked."""
        return None

    @property
    def matching_tags(self) -> frozenset[str]:
        """Tags used for relevance matching against opportunity keywords."""
        return frozenset(self.capability_tags)

    def engagement_cost(
        self,
        hours_per_week: float = 20.0,
        duration_weeks: int = 12,
        expense_per_hour: float = 50.0,
    ) -> Optional[EngagementCost]:
        """Cost of engaging this resource; ``None`` when it is not billed hourly."""
        return None


class Product(_ResourceBase):
    """A product or solution from the portfolio."""

    variant: Literal["product"] = "product"
    category: str = ""
    revenue_model: str = ""


class Expert(_ResourceBase):
    """An industry expert available for engagement.

    ``track_record`` blends success rate (70%) with seniority (30%), where
    20 years of experience counts as full seniority.
    """

    variant: Literal["expert"] = "expert"
    expertise_tags: list[str] = []
    years_experience: int = Field(default=0, ge=0)
    success_rate: float = Field(ge=0.0, le=1.0)
    hourly_rate: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("expertise_tags")
    @classmethod
    def normalise_expertise_tags(cls, v: list[str]) -> list[str]:
        return normalise_tags(v)

    @property
    def track_record(self) -> Optional[float]:
        seniority = min(self.years_experience / 20.0, 1.0)
        return self.success_rate * 0.7 + seniority * 0.3

    @property
    def matching_tags(self) -> frozenset[str]:
        return frozenset(self.capability_tags) | frozenset(self.expertise_tags)

    def engagement_cost(
        self,
        hours_per_week: float = 20.0,
        duration_weeks: int = 12,
        expense_per_hour: float = 50.0,
    ) -> Optional[EngagementCost]:
        if self.hourly_rate is None:
            return None
        hours = hours_per_week * duration_weeks
        weekly = self.hourly_rate * hours_per_week
        return EngagementCost(
            hourly_rate=self.hourly_rate,
            hours_per_week=hours_per_week,
            duration_weeks=duration_weeks,
            estimated_hours=hours,
            weekly_cost=weekly,
            monthly_cost=weekly * WEEKS_PER_MONTH,
            total_cost=self.hourly_rate * hours,
            expense_estimate=hours * expense_per_hour,
        )


class Playbook(_ResourceBase):
    """A repeatable go-to-market playbook with a measured success rate."""

    variant: Literal["playbook"] = "playbook"
    success_rate: float = Field(ge=0.0, le=1.0)

    @property
    def track_record(self) -> Optional[float]:
        return self.success_rate


Resource = Annotated[Union[Product, Expert, Playbook], Field(discriminator="variant")]

RESOURCE_ADAPTER: TypeAdapter[Resource] = TypeAdapter(Resource)
