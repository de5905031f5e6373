"""
Input loader: JSON records → validated ``Opportunity`` / ``Resource`` models.

File format
-----------
One JSON object with two arrays::

    {
      "opportunities": [{"opportunity_id": "opp-1", "title": "...", ...}],
      "resources":     [{"variant": "product", "resource_id": "prod-1", ...}]
    }

Validation rules
----------------
- Every record is validated by its pydantic model; failures are re-raised as
  ``InputValidationError`` naming the record id when one is present.
- Duplicate ``opportunity_id`` or ``resource_id`` values are rejected.
- Unknown top-level keys are ignored; missing arrays are treated as empty.

Usage
-----
    from opportunity_engine.inputs import load_input_file

    batch = load_input_file(Path("data/inputs/q3_pipeline.json"))
    for opp in batch.opportunities:
        ...
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from opportunity_engine.errors import InputValidationError
from opportunity_engine.models.opportunity import Opportunity
from opportunity_engine.models.resource import RESOURCE_ADAPTER, Resource

logger = logging.getLogger(__name__)


@dataclass
class InputBatch:
    """Validated contents of one input file."""

    opportunities: list[Opportunity]
    resources:     list[Resource]

    def find_opportunity(self, opportunity_id: str) -> Opportunity:
        """Return the opportunity with ``opportunity_id``.

        Raises:
            InputValidationError: If no opportunity has that id.
        """
        for opp in self.opportunities:
            if opp.opportunity_id == opportunity_id:
                return opp
        raise InputValidationError("Unknown opportunity id", record_id=opportunity_id)


def load_opportunity(record: dict[str, Any]) -> Opportunity:
    """Validate one opportunity record.

    Raises:
        InputValidationError: If the record fails model validation.
    """
    try:
        return Opportunity.model_validate(record)
    except ValidationError as exc:
        raise InputValidationError(
            f"Invalid opportunity: {_summarise(exc)}",
            record_id=_record_id(record, "opportunity_id"),
        ) from exc


def load_resource(record: dict[str, Any]) -> Resource:
    """Validate one resource record, dispatching on its ``variant`` field.

    Raises:
        InputValidationError: If the record fails model validation or names
            an unknown variant.
    """
    try:
        return RESOURCE_ADAPTER.validate_python(record)
    except ValidationError as exc:
        raise InputValidationError(
            f"Invalid resource: {_summarise(exc)}",
            record_id=_record_id(record, "resource_id"),
        ) from exc


def load_input_data(raw: dict[str, Any]) -> InputBatch:
    """Validate an already-parsed input document.

    Raises:
        InputValidationError: On a malformed document, an invalid record, or
            a duplicate id.
    """
    if not isinstance(raw, dict):
        raise InputValidationError("Input document must be a JSON object")

    opp_records = raw.get("opportunities", [])
    res_records = raw.get("resources", [])
    if not isinstance(opp_records, list) or not isinstance(res_records, list):
        raise InputValidationError("'opportunities' and 'resources' must be arrays")

    opportunities = [load_opportunity(r) for r in opp_records]
    resources = [load_resource(r) for r in res_records]

    _check_unique([o.opportunity_id for o in opportunities], "opportunity")
    _check_unique([r.resource_id for r in resources], "resource")

    logger.info(
        "Loaded %d opportunities and %d resources.", len(opportunities), len(resources)
    )
    return InputBatch(opportunities=opportunities, resources=resources)


def load_input_file(path: Path) -> InputBatch:
    """Read and validate an input JSON file.

    Raises:
        FileNotFoundError:    If ``path`` does not exist.
        InputValidationError: If the file is not valid JSON or any record is
            invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InputValidationError(f"Input file {path} is not valid JSON: {exc}") from exc

    return load_input_data(raw)


# ── Helpers ───────────────────────────────────────────────────────────────────


def _check_unique(ids: list[str], kind: str) -> None:
    seen: set[str] = set()
    for record_id in ids:
        if record_id in seen:
            raise InputValidationError(f"Duplicate {kind} id", record_id=record_id)
        seen.add(record_id)


def _record_id(record: Any, key: str) -> str | None:
    if isinstance(record, dict):
        value = record.get(key)
        return str(value) if value is not None else None
    return None


def _summarise(exc: ValidationError) -> str:
    """Condense a pydantic error into ``field: message`` pairs."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<record>"
        parts.append(f"{loc}: {err.get('msg', '')}")
    return "; ".join(parts)
