"""
schemas.py — input validation data contracts (pydantic v2).

Defines:
  - StrategyType enum
  - WithdrawalStrategy, PensionSettings, RetentionSettings, SanitizedInput
  - FieldValidation, ValidationResult  (validator outputs)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

UNITS:
  - retention.percentage stays on the 0–100 scale everywhere.
  - pension.rate is ALWAYS fractional (0.02–0.07) once sanitized.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class StrategyType(str, Enum):
    salary = "salary"
    dividend = "dividend"
    combination = "combination"


# ---------------------------------------------------------------------------
# Sanitized input: the only shape calculators accept from the outside world
# ---------------------------------------------------------------------------

class WithdrawalStrategy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: StrategyType
    salary_ratio: float = Field(..., ge=0, le=100)
    dividend_ratio: float = Field(..., ge=0, le=100)


class PensionSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = False
    rate: float = 0.0   # fractional; 0 when disabled


class RetentionSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = False
    percentage: float = Field(default=0.0, ge=0, le=100)


class SanitizedInput(BaseModel):
    """
    Output of validate() on success. Consumed verbatim by the calculators
    (via ScenarioOptions.from_sanitized). Never built from raw client data.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    profit: float = Field(..., ge=0)
    employer_zone: str
    withdrawal_strategy: WithdrawalStrategy
    pension: PensionSettings = PensionSettings()
    retention: RetentionSettings = RetentionSettings()
    share_cost_basis: Optional[float] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Validator outputs
# ---------------------------------------------------------------------------

class FieldValidation(BaseModel):
    """Result of one field validator. `value` is None whenever is_valid is False."""
    model_config = ConfigDict(extra="forbid")

    is_valid: bool
    value: Any = None
    errors: List[str] = Field(default_factory=list)
    warning: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Aggregate of every field validator. All errors are collected — the caller
    can show every problem at once. sanitized_input is None unless is_valid.
    """
    model_config = ConfigDict(extra="forbid")

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)
    sanitized_input: Optional[SanitizedInput] = None


# ---------------------------------------------------------------------------
# Error response models: used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # e.g. "employer_zone"
    issue: str                     # Human-readable description of the problem


class ErrorBody(BaseModel):
    """Error envelope body."""
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, INTERNAL_ERROR, ...
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "StrategyType",
    "WithdrawalStrategy",
    "PensionSettings",
    "RetentionSettings",
    "SanitizedInput",
    "FieldValidation",
    "ValidationResult",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
