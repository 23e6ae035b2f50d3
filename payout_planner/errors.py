"""
errors.py — exception taxonomy for Payout Planner.

Two families, never conflated:
  - Input errors (client-caused) subclass ValueError → HTTP 422.
  - Integration/computation defects do NOT subclass ValueError → HTTP 500.

UnknownZoneError is deliberately a LookupError: a zone that reaches a
calculator without passing validate() is a wiring bug, not a user mistake.
"""
from __future__ import annotations

from typing import Any


class InputValidationError(ValueError):
    """Raised at the HTTP boundary when validate() reports one or more errors."""

    def __init__(self, details: list[dict[str, Any]]):
        self.details = details
        super().__init__("; ".join(d["issue"] for d in details) or "Invalid input")


class InvalidRatioError(ValueError):
    """Salary ratio outside the inclusive range [0, 100]."""


class RateTableError(ValueError):
    """Rate table constructed with gaps or inconsistent values."""


class UnknownZoneError(LookupError):
    """Employer zone id not present in the active rate table."""

    def __init__(self, zone: Any):
        self.zone = zone
        super().__init__(f"Invalid employer zone: {zone!r}. Cannot calculate without a valid zone.")


class OptimizationError(RuntimeError):
    """No ratio on the search grid produced a scenario."""


__all__ = [
    "InputValidationError",
    "InvalidRatioError",
    "RateTableError",
    "UnknownZoneError",
    "OptimizationError",
]
