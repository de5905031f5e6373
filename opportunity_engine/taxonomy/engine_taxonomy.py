"""
Classification taxonomy for the AFH opportunity engine.

Every categorical value the engine produces or consumes is a ``StrEnum`` so
that it serialises as a plain slug and compares equal to that slug:

  - ``Channel``            — AFH sales channel an opportunity belongs to.
  - ``ResourceVariant``    — discriminator of the matchable resource union.
  - ``ComplexityLevel``    — implementation effort of a resource.
  - ``Availability``       — engagement availability of an expert.
  - ``RiskLevel``          — the single low/medium/high classification used
                             for every risk category and the overall profile.
  - ``RiskCategoryName``   — the fixed set of risk categories.
  - ``ScenarioName``       — the three revenue projection scenarios.
  - ``RecommendationTier`` — final pursue/evaluate/pass decision.
  - ``ActionPriority``     — urgency of a recommended next action.

``CHANNEL_SIMILARITY`` is the canonical adjacency table used when a resource
does not serve an opportunity's channel directly. It is symmetric in intent but
stored in full so lookups never depend on argument order.

This module has NO imports from any other ``opportunity_engine`` package.
"""

from enum import StrEnum


class Channel(StrEnum):
    """Away-From-Home sales channel."""

    QSR = "qsr"
    """Quick-service restaurants."""

    FAST_CASUAL = "fast_casual"
    COFFEE = "coffee"
    CASUAL_DINING = "casual_dining"

    WORKPLACE = "workplace"
    """Corporate cafeterias and office micro-markets."""

    EDUCATION = "education"
    HEALTHCARE = "healthcare"

    LEISURE = "leisure"
    """Stadiums, theme parks, cinemas and travel hubs."""


class ResourceVariant(StrEnum):
    """Discriminator for the ``Resource`` tagged union."""

    PRODUCT = "product"
    EXPERT = "expert"
    PLAYBOOK = "playbook"


class ComplexityLevel(StrEnum):
    """Implementation complexity of a resource."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Availability(StrEnum):
    """Engagement availability of an expert."""

    AVAILABLE = "available"
    LIMITED = "limited"
    UNAVAILABLE = "unavailable"


class RiskLevel(StrEnum):
    """Three-band risk classification, computed once and consumed everywhere."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordinal position: low=0, medium=1, high=2."""
        return _RISK_LEVEL_RANK[self]


_RISK_LEVEL_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


class RiskCategoryName(StrEnum):
    """Fixed set of risk categories assessed for every opportunity."""

    MARKET = "market"
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    REGULATORY = "regulatory"
    STRATEGIC = "strategic"


class ScenarioName(StrEnum):
    """Revenue projection scenarios, in canonical output order."""

    CONSERVATIVE = "conservative"
    EXPECTED = "expected"
    OPTIMISTIC = "optimistic"


class RecommendationTier(StrEnum):
    """Final decision for an opportunity / resource pairing."""

    PURSUE = "pursue"
    EVALUATE = "evaluate"
    PASS = "pass"


class ActionPriority(StrEnum):
    """Urgency of a next action; ``rank`` 0 is the most urgent."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _ACTION_PRIORITY_RANK[self]


_ACTION_PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


# ── Channel adjacency ─────────────────────────────────────────────────────────

CHANNEL_SIMILARITY: dict[Channel, dict[Channel, float]] = {
    Channel.QSR: {
        Channel.FAST_CASUAL: 0.8, Channel.COFFEE: 0.6, Channel.CASUAL_DINING: 0.4,
        Channel.LEISURE: 0.5, Channel.WORKPLACE: 0.3,
    },
    Channel.FAST_CASUAL: {
        Channel.QSR: 0.8, Channel.CASUAL_DINING: 0.7, Channel.COFFEE: 0.5,
        Channel.WORKPLACE: 0.4, Channel.LEISURE: 0.4,
    },
    Channel.COFFEE: {
        Channel.QSR: 0.6, Channel.FAST_CASUAL: 0.5, Channel.CASUAL_DINING: 0.3,
        Channel.WORKPLACE: 0.5,
    },
    Channel.CASUAL_DINING: {
        Channel.FAST_CASUAL: 0.7, Channel.QSR: 0.4, Channel.COFFEE: 0.3,
        Channel.LEISURE: 0.5,
    },
    Channel.WORKPLACE: {
        Channel.EDUCATION: 0.6, Channel.HEALTHCARE: 0.5, Channel.COFFEE: 0.5,
        Channel.FAST_CASUAL: 0.4, Channel.QSR: 0.3,
    },
    Channel.EDUCATION: {
        Channel.WORKPLACE: 0.6, Channel.HEALTHCARE: 0.5,
    },
    Channel.HEALTHCARE: {
        Channel.WORKPLACE: 0.5, Channel.EDUCATION: 0.5,
    },
    Channel.LEISURE: {
        Channel.QSR: 0.5, Channel.CASUAL_DINING: 0.5, Channel.FAST_CASUAL: 0.4,
    },
}


def channel_similarity(target: Channel, served: list[Channel]) -> float:
    """Return the affinity of a resource serving ``served`` for ``target``.

    1.0 when ``target`` is served directly, otherwise the best adjacency
    score from ``CHANNEL_SIMILARITY`` (0.0 when no adjacent channel is served).
    """
    if target in served:
        return 1.0
    row = CHANNEL_SIMILARITY.get(target, {})
    return max((row.get(ch, 0.0) for ch in served), default=0.0)
