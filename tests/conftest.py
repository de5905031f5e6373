"""
Shared pytest fixtures for the opportunity engine test suite.

Provides:
  - Factory fixtures (``make_opportunity``, ``make_product``, ``make_expert``,
    ``make_playbook``) that build valid domain objects with keyword overrides.
  - Ready-made sample objects for tests that only need one of each.
  - ``input_file``: writes an input JSON document to ``tmp_path``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from opportunity_engine.models.opportunity import MarketSignals, Opportunity
from opportunity_engine.models.resource import Expert, Playbook, Product
from opportunity_engine.taxonomy.engine_taxonomy import (
    Availability,
    Channel,
    ComplexityLevel,
)


# ── Domain object factories ───────────────────────────────────────────────────

@pytest.fixture
def make_signals() -> Callable[..., MarketSignals]:
    """Factory for ``MarketSignals``; every field can be overridden."""
    def _make(**overrides: Any) -> MarketSignals:
        data: dict[str, Any] = dict(
            market_size=40_000_000.0,
            growth_rate=0.15,
            trend_momentum=0.7,
            competitive_intensity=0.5,
            market_share=0.10,
            demand_volatility=0.3,
            keywords=["breakfast", "plant-based", "value"],
        )
        data.update(overrides)
        return MarketSignals(**data)
    return _make


@pytest.fixture
def make_opportunity(make_signals) -> Callable[..., Opportunity]:
    """Factory for ``Opportunity``: a QSR breakfast deal sized at 2.8M."""
    def _make(**overrides: Any) -> Opportunity:
        data: dict[str, Any] = dict(
            opportunity_id="opp-1",
            title="Breakfast menu refresh",
            channel=Channel.QSR,
            region="us-west",
            revenue_potential=2_800_000.0,
            market_signals=make_signals(),
            timeline_months=12,
        )
        data.update(overrides)
        return Opportunity(**data)
    return _make


@pytest.fixture
def make_product() -> Callable[..., Product]:
    def _make(**overrides: Any) -> Product:
        data: dict[str, Any] = dict(
            resource_id="prod-01",
            name="Plant-based breakfast sandwich",
            capability_tags=["breakfast", "plant-based"],
            channels=[Channel.QSR, Channel.FAST_CASUAL],
            complexity=ComplexityLevel.LOW,
            category="bakery",
            revenue_model="wholesale",
        )
        data.update(overrides)
        return Product(**data)
    return _make


@pytest.fixture
def make_expert() -> Callable[..., Expert]:
    def _make(**overrides: Any) -> Expert:
        data: dict[str, Any] = dict(
            resource_id="exp-01",
            name="Casual dining menu engineer",
            capability_tags=["breakfast"],
            expertise_tags=["value", "menu engineering"],
            channels=[Channel.CASUAL_DINING],
            complexity=ComplexityLevel.MEDIUM,
            availability=Availability.LIMITED,
            years_experience=10,
            success_rate=0.8,
            hourly_rate=250.0,
        )
        data.update(overrides)
        return Expert(**data)
    return _make


@pytest.fixture
def make_playbook() -> Callable[..., Playbook]:
    def _make(**overrides: Any) -> Playbook:
        data: dict[str, Any] = dict(
            resource_id="pb-01",
            name="QSR limited-time-offer launch",
            capability_tags=["value"],
            channels=[Channel.QSR],
            complexity=ComplexityLevel.HIGH,
            success_rate=0.6,
        )
        data.update(overrides)
        return Playbook(**data)
    return _make


# ── Sample objects ────────────────────────────────────────────────────────────

@pytest.fixture
def opportunity(make_opportunity) -> Opportunity:
    return make_opportunity()


@pytest.fixture
def product(make_product) -> Product:
    return make_product()


@pytest.fixture
def expert(make_expert) -> Expert:
    return make_expert()


@pytest.fixture
def playbook(make_playbook) -> Playbook:
    return make_playbook()


@pytest.fixture
def resources(product, expert, playbook) -> list:
    """One resource of each variant."""
    return [product, expert, playbook]


# ── Input files ───────────────────────────────────────────────────────────────

@pytest.fixture
def sample_input_document(opportunity, resources) -> dict[str, Any]:
    """A valid input document as plain JSON-compatible data."""
    return {
        "opportunities": [opportunity.model_dump(mode="json")],
        "resources": [r.model_dump(mode="json") for r in resources],
    }


@pytest.fixture
def input_file(tmp_path: Path) -> Callable[[Any], Path]:
    """Write ``document`` as JSON under ``tmp_path`` and return the path."""
    def _write(document: Any, name: str = "input.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return _write
