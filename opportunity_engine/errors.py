"""
Exception hierarchy for the opportunity engine.

Every error the engine raises derives from ``EngineError`` so callers (and the
CLI) can catch the whole family at one boundary.  The engine never substitutes
a default for a missing financial figure or an invalid policy: these errors
are raised at the point of detection and propagate unchanged.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all opportunity engine errors."""


class InputValidationError(EngineError):
    """Raised when an opportunity or resource record is malformed.

    Attributes:
        record_id: Identifier of the offending record, when known.
    """

    def __init__(self, message: str, record_id: str | None = None) -> None:
        self.record_id = record_id
        if record_id is not None:
            message = f"{message} (record '{record_id}')"
        super().__init__(message)


class InsufficientDataError(EngineError):
    """Raised when every factor for an opportunity/resource pair is unknown."""


class ConfigurationError(EngineError):
    """Raised when a policy is internally inconsistent.

    Examples: factor weights that do not sum to 1, non-monotonic risk
    thresholds, or a reference to an unregistered factor.
    """


class MissingRevenueBaseError(EngineError):
    """Raised when an opportunity has no positive ``revenue_potential``.

    Attributes:
        opportunity_id: The opportunity that could not be projected.
    """

    def __init__(self, opportunity_id: str) -> None:
        self.opportunity_id = opportunity_id
        super().__init__(
            f"Opportunity '{opportunity_id}' has no positive revenue_potential; "
            "revenue cannot be projected."
        )


class ZeroInvestmentError(EngineError, ZeroDivisionError):
    """Raised when ROI is requested against a zero investment.

    Subclasses ``ZeroDivisionError`` and therefore ``ArithmeticError``.
    """
