"""
Input validator — runs before any money math.

Each field validator is independent and returns a FieldValidation
{is_valid, value, errors, warning}. validate() runs every (field, validator)
pair unconditionally and aggregates ALL errors, so a client sees every problem
in one response rather than discovering them one at a time.

Rules:
  1. profit              required, numeric, 0 <= profit <= rate table max_profit
  2. employer_zone       required, exact case-sensitive match of a table zone
  3. withdrawal_strategy salary | dividend | combination(salary_ratio in [0, 100])
  4. pension             optional; enabled → rate in [2%, 7%], given as 0.02 or 2
  5. retention           optional; enabled → percentage in [0, 100]
  6. share_cost_basis    optional; numeric >= 0

Numeric-looking text ("1 000" is NOT numeric, "1000" and " 1000.5 " are) is
coerced. Missing optional blocks resolve to an explicit disabled state.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Callable, Optional

from payout_planner.rates import RateTable, resolve_rates
from payout_planner.validation.schemas import (
    FieldValidation,
    PensionSettings,
    RetentionSettings,
    SanitizedInput,
    StrategyType,
    ValidationResult,
    WithdrawalStrategy,
)

logger = logging.getLogger(__name__)

_MIN_PERCENTAGE = 0
_MAX_PERCENTAGE = 100
_RATE_EPSILON   = 1e-12   # 0.07 vs 7/100 float noise at the pension bounds

_MISSING = object()


def _is_missing(value: Any) -> bool:
    return value is None or value is _MISSING or (isinstance(value, str) and value.strip() == "")


def _to_number(value: Any) -> Optional[float]:
    """Coerce int/float/numeric text to float. None if not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _fail(message: str) -> FieldValidation:
    return FieldValidation(is_valid=False, value=None, errors=[message])


# ===========================================================================
# FIELD VALIDATORS
# ===========================================================================

def validate_profit(profit: Any, rates: Optional[RateTable] = None) -> FieldValidation:
    rates = resolve_rates(rates)
    if _is_missing(profit):
        return _fail("Annual profit before tax is required")

    number = _to_number(profit)
    if number is None:
        return _fail("Profit must be a number")
    if number < 0:
        return _fail("Profit cannot be negative")
    if number > rates.max_profit:
        return _fail(f"Profit exceeds the maximum allowed amount of {rates.max_profit:,.0f}")

    return FieldValidation(is_valid=True, value=number)


def validate_employer_zone(zone: Any, rates: Optional[RateTable] = None) -> FieldValidation:
    rates = resolve_rates(rates)
    if _is_missing(zone):
        return _fail("Employer contribution zone is required")
    if isinstance(zone, bool):
        return _fail(f"Invalid zone. Valid values are: {', '.join(rates.zones)}")

    zone_str = str(zone)
    if zone_str not in rates.zones:
        return _fail(f"Invalid zone. Valid values are: {', '.join(rates.zones)}")

    return FieldValidation(is_valid=True, value=zone_str)


def validate_percentage(percentage: Any, field_name: str) -> FieldValidation:
    """Inclusive [0, 100]. `field_name` only shapes the messages."""
    if _is_missing(percentage):
        return _fail(f"{field_name} is required")

    number = _to_number(percentage)
    if number is None:
        return _fail(f"{field_name} must be a number")
    if number < _MIN_PERCENTAGE or number > _MAX_PERCENTAGE:
        return _fail(f"{field_name} must be between {_MIN_PERCENTAGE} and {_MAX_PERCENTAGE}")

    return FieldValidation(is_valid=True, value=number)


def validate_withdrawal_strategy(strategy: Any) -> FieldValidation:
    if not isinstance(strategy, Mapping):
        return _fail("Withdrawal strategy is required")

    valid_types = [t.value for t in StrategyType]
    strategy_type = strategy.get("type")
    if strategy_type not in valid_types:
        return _fail(f"Invalid strategy type. Valid values are: {', '.join(valid_types)}")

    if strategy_type == StrategyType.combination.value:
        ratio = validate_percentage(strategy.get("salary_ratio"), "Salary ratio")
        if not ratio.is_valid:
            return ratio
        return FieldValidation(
            is_valid=True,
            value=WithdrawalStrategy(
                type=StrategyType.combination,
                salary_ratio=ratio.value,
                dividend_ratio=100 - ratio.value,
            ),
        )

    salary_ratio = 100.0 if strategy_type == StrategyType.salary.value else 0.0
    return FieldValidation(
        is_valid=True,
        value=WithdrawalStrategy(
            type=StrategyType(strategy_type),
            salary_ratio=salary_ratio,
            dividend_ratio=100 - salary_ratio,
        ),
    )


def validate_pension_settings(
    pension_settings: Any, rates: Optional[RateTable] = None,
) -> FieldValidation:
    """
    Optional occupational pension. The rate is accepted either as a fraction
    (0 < r < 1, e.g. 0.02) or as whole percent (e.g. 2); both normalise to a
    fraction. Anything outside the 2%–7% statutory band is rejected in either
    unit — never clamped.
    """
    rates = resolve_rates(rates)
    if _is_missing(pension_settings):
        return FieldValidation(is_valid=True, value=PensionSettings(enabled=False, rate=0.0))
    if not isinstance(pension_settings, Mapping):
        return _fail("Invalid pension setting")

    enabled = pension_settings.get("enabled", False)
    if enabled is False:
        return FieldValidation(is_valid=True, value=PensionSettings(enabled=False, rate=0.0))
    if enabled is not True:
        return _fail("Invalid pension setting: 'enabled' must be true or false")

    rate = _to_number(pension_settings.get("rate"))
    if rate is None:
        return _fail("Pension rate must be a number")

    fraction = rate if 0 < rate < 1 else rate / 100
    min_pct = rates.pension_min_rate * 100
    max_pct = rates.pension_max_rate * 100
    if fraction < rates.pension_min_rate - _RATE_EPSILON:
        return _fail(f"Pension rate must be at least {min_pct:g}% (statutory minimum)")
    if fraction > rates.pension_max_rate + _RATE_EPSILON:
        return _fail(f"Pension rate above {max_pct:g}% is not tax-deductible")

    return FieldValidation(is_valid=True, value=PensionSettings(enabled=True, rate=fraction))


def validate_retention_settings(retention_settings: Any) -> FieldValidation:
    if _is_missing(retention_settings):
        return FieldValidation(is_valid=True, value=RetentionSettings(enabled=False, percentage=0.0))
    if not isinstance(retention_settings, Mapping):
        return _fail("Invalid retention setting")

    enabled = retention_settings.get("enabled", False)
    if enabled is False:
        return FieldValidation(is_valid=True, value=RetentionSettings(enabled=False, percentage=0.0))
    if enabled is not True:
        return _fail("Invalid retention setting: 'enabled' must be true or false")

    result = validate_percentage(retention_settings.get("percentage"), "Retention percentage")
    if not result.is_valid:
        return result
    return FieldValidation(
        is_valid=True,
        value=RetentionSettings(enabled=True, percentage=result.value),
    )


def validate_share_cost_basis(cost_basis: Any) -> FieldValidation:
    if _is_missing(cost_basis):
        return FieldValidation(
            is_valid=True,
            value=None,
            warning="Share cost basis not provided - shareholder allowance is not calculated",
        )

    number = _to_number(cost_basis)
    if number is None:
        return _fail("Share cost basis must be a number")
    if number < 0:
        return _fail("Share cost basis cannot be negative")

    return FieldValidation(is_valid=True, value=number)


# ===========================================================================
# AGGREGATE VALIDATION
# ===========================================================================

def _field_validators(rates: RateTable) -> list[tuple[str, Callable[[Any], FieldValidation]]]:
    return [
        ("profit",              lambda v: validate_profit(v, rates)),
        ("employer_zone",       lambda v: validate_employer_zone(v, rates)),
        ("withdrawal_strategy", validate_withdrawal_strategy),
        ("pension",             lambda v: validate_pension_settings(v, rates)),
        ("retention",           validate_retention_settings),
        ("share_cost_basis",    validate_share_cost_basis),
    ]


def validate(raw_input: Any, rates: Optional[RateTable] = None) -> ValidationResult:
    """
    Validate a raw request body. Never raises for bad input; every problem is
    reported in ValidationResult.errors and sanitized_input stays None.
    """
    rates = resolve_rates(rates)
    if not isinstance(raw_input, Mapping):
        return ValidationResult(is_valid=False, errors=["Input must be an object"])

    errors: list[str] = []
    warnings: list[str] = []
    field_errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    for field, validator in _field_validators(rates):
        result = validator(raw_input.get(field, _MISSING))
        if not result.is_valid:
            errors.extend(result.errors)
            field_errors[field] = list(result.errors)
            continue
        values[field] = result.value
        if result.warning:
            warnings.append(result.warning)

    if errors:
        # Count only, no profit or cost basis values in logs
        logger.info("Input validation failed: %d error(s) in %s", len(errors), ", ".join(field_errors))
        return ValidationResult(
            is_valid=False,
            errors=errors,
            warnings=warnings,
            field_errors=field_errors,
        )

    return ValidationResult(
        is_valid=True,
        warnings=warnings,
        sanitized_input=SanitizedInput(**values),
    )


__all__ = [
    "validate_profit",
    "validate_employer_zone",
    "validate_percentage",
    "validate_withdrawal_strategy",
    "validate_pension_settings",
    "validate_retention_settings",
    "validate_share_cost_basis",
    "validate",
]
