"""
Logging setup and record context for the opportunity engine.

Call ``configure_logging(config)`` once at CLI entry, before any engine work.
Library modules only ever use ``logging.getLogger(__name__)``.

Engine context
--------------
Scoring and facade log calls attach the entity they are about through
``extra=log_context(...)``::

    logger.warning("Skipping resource ...", extra=log_context(opp_id, res_id))

Both formatters render that context:

  text::

    2026-02-24T15:00:00Z [WARNING] opportunity_engine.scoring.aggregator: Skipping ... {opportunity_id=opp-1 resource_id=prod-01}

  JSON (``json_format = true`` in the ``[logging]`` section), one object per line::

    {"ts": "...", "level": "WARNING", "logger": "...", "msg": "...",
     "opportunity_id": "opp-1", "resource_id": "prod-01"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from opportunity_engine.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Context keys rendered first, in this order; other extras follow sorted.
CONTEXT_KEYS = ("opportunity_id", "resource_id")

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def log_context(
    opportunity_id: Optional[str] = None,
    resource_id: Optional[str] = None,
    **fields: Any,
) -> dict[str, Any]:
    """Build the ``extra=`` mapping for an engine log call, dropping ``None`` values."""
    context: dict[str, Any] = {
        "opportunity_id": opportunity_id,
        "resource_id": resource_id,
        **fields,
    }
    return {k: v for k, v in context.items() if v is not None}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the engine context attached to ``record`` via ``extra=``."""
    extras = {
        key: val
        for key, val in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }
    ordered = {k: extras.pop(k) for k in CONTEXT_KEYS if k in extras}
    ordered.update(sorted(extras.items()))
    return ordered


class _ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends ``{key=value ...}`` engine context."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        rendered = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{line} {{{rendered}}}"


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, ``msg``, then the engine context
    at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(record_context(record))
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Console output goes to stderr so stdout carries only command reports.
    A file handler is added when ``config.log_file`` is set.

    Args:
        config: Logging configuration section from ``AppConfig``.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter: logging.Formatter = (
        _JsonFormatter() if config.json_format else _ContextFormatter()
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
