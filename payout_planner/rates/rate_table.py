"""
rate_table.py — versioned, immutable rate table (one per tax year).

Calculators never import rate constants directly; they receive a RateTable
argument. Swapping tax years means registering a new table, not editing
formulas.

Usage:
    from payout_planner.rates import get_rate_table
    rates = get_rate_table(2025)
    rates.employer_rate("1")   # 0.141
"""
from __future__ import annotations

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from payout_planner.errors import RateTableError, UnknownZoneError
from payout_planner.rates import tax_year_2025 as ty2025

logger = logging.getLogger(__name__)

# The seven employer-contribution zones. Every table must price all of them.
EMPLOYER_ZONES: Tuple[str, ...] = ("1", "1a", "2", "3", "4", "4a", "5")


class Bracket(BaseModel):
    """One bracket-tax step: `rate` applies to income above `threshold`."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    threshold: float
    rate: float
    description: str = ""


class MinimumDeductionRule(BaseModel):
    """clamp(gross × rate, floor, cap), never above gross itself."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rate: float
    floor: float
    cap: float


class RateTable(BaseModel):
    """
    All named rates, thresholds and limits for one tax year.

    Construct via RateTable.load() so that gaps surface as RateTableError at
    startup instead of a wrong number deep inside a scenario.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_year: int
    corporate_tax_rate: float
    employer_contribution_rates: Mapping[str, float]
    zone_descriptions: Mapping[str, str] = Field(default={}, validate_default=True)
    personal_tax_rate: float
    brackets: Tuple[Bracket, ...]
    employee_contribution_rate: float
    employee_contribution_threshold: float
    dividend_gross_up_factor: float
    minimum_deduction: MinimumDeductionRule
    personal_allowance: float
    shareholder_allowance_rate: float
    pension_min_rate: float
    pension_max_rate: float
    max_profit: float
    last_updated: Optional[str] = None
    sources: Tuple[Mapping[str, str], ...] = ()
    notes: Tuple[str, ...] = ()

    # The registry hands one instance to every caller, so nested containers are read-only too
    @field_validator("employer_contribution_rates", "zone_descriptions", mode="after")
    @classmethod
    def _freeze_mapping(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_validator("sources", mode="after")
    @classmethod
    def _freeze_sources(cls, value: Tuple[Mapping[str, str], ...]) -> Tuple[Mapping[str, str], ...]:
        return tuple(MappingProxyType(dict(source)) for source in value)

    @field_serializer("employer_contribution_rates", "zone_descriptions")
    def _dump_mapping(self, value: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(value)

    @field_serializer("sources")
    def _dump_sources(self, value: Tuple[Mapping[str, str], ...]) -> List[Dict[str, str]]:
        return [dict(source) for source in value]

    @model_validator(mode="after")
    def check_complete(self) -> "RateTable":
        problems: list[str] = []

        zones = set(self.employer_contribution_rates)
        missing = [z for z in EMPLOYER_ZONES if z not in zones]
        extra = sorted(zones - set(EMPLOYER_ZONES))
        if missing:
            problems.append(f"zones without an employer contribution rate: {', '.join(missing)}")
        if extra:
            problems.append(f"unknown zones in employer contribution rates: {', '.join(extra)}")
        undescribed_rate = [z for z in self.zone_descriptions if z not in zones]
        if undescribed_rate:
            problems.append(f"described zones without a rate: {', '.join(undescribed_rate)}")
        negative = [z for z, r in self.employer_contribution_rates.items() if r < 0]
        if negative:
            problems.append(f"negative employer contribution rate for zones: {', '.join(negative)}")

        if not self.brackets:
            problems.append("bracket table is empty")
        else:
            if self.brackets[0].threshold <= 0:
                problems.append("first bracket threshold must be > 0")
            for lower, upper in zip(self.brackets, self.brackets[1:]):
                if upper.threshold <= lower.threshold:
                    problems.append(
                        f"bracket thresholds must be strictly increasing "
                        f"({lower.threshold:,.0f} then {upper.threshold:,.0f})"
                    )
            if any(b.rate < 0 for b in self.brackets):
                problems.append("bracket rates must be >= 0")

        for name in (
            "corporate_tax_rate", "personal_tax_rate", "employee_contribution_rate",
            "shareholder_allowance_rate",
        ):
            value = getattr(self, name)
            if not 0 <= value < 1:
                problems.append(f"{name} must be in [0, 1), got {value}")

        if self.dividend_gross_up_factor <= 1:
            problems.append("dividend_gross_up_factor must be > 1")
        if self.minimum_deduction.floor > self.minimum_deduction.cap:
            problems.append("minimum deduction floor exceeds its cap")
        if not 0 < self.pension_min_rate <= self.pension_max_rate < 1:
            problems.append("pension rate bounds must satisfy 0 < min <= max < 1")
        if self.max_profit <= 0:
            problems.append("max_profit must be > 0")

        if problems:
            raise ValueError("; ".join(problems))
        return self

    @classmethod
    def load(cls, **values) -> "RateTable":
        """Build a table, converting pydantic failures into RateTableError."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise RateTableError(f"Invalid rate table: {exc}") from exc

    # --- Read-only lookups ---------------------------------------------------

    @property
    def zones(self) -> List[str]:
        return list(self.employer_contribution_rates)

    def employer_rate(self, zone: str) -> float:
        """Employer contribution rate for `zone`. No fallback to a nominal zone."""
        try:
            return self.employer_contribution_rates[zone]
        except (KeyError, TypeError):
            raise UnknownZoneError(zone) from None

    @property
    def effective_dividend_tax_rate(self) -> float:
        """Nominal maximum personal rate on dividends (personal rate × gross-up)."""
        return self.personal_tax_rate * self.dividend_gross_up_factor

    @property
    def combined_dividend_rate(self) -> float:
        """Corporate + dividend tax as one rate on pre-tax profit."""
        return 1 - (1 - self.corporate_tax_rate) * (1 - self.effective_dividend_tax_rate)


def _build_2025() -> RateTable:
    return RateTable.load(
        tax_year=ty2025.TAX_YEAR,
        corporate_tax_rate=ty2025.CORPORATE_TAX_RATE,
        employer_contribution_rates=dict(ty2025.EMPLOYER_CONTRIBUTION_RATES),
        zone_descriptions=dict(ty2025.ZONE_DESCRIPTIONS),
        personal_tax_rate=ty2025.PERSONAL_TAX_RATE,
        brackets=tuple(
            Bracket(
                threshold=threshold,
                rate=rate,
                description=f"Step {i}: {rate * 100:.1f}% of income above {threshold:,.0f}",
            )
            for i, (threshold, rate) in enumerate(ty2025.BRACKET_TAX_2025, start=1)
        ),
        employee_contribution_rate=ty2025.EMPLOYEE_CONTRIBUTION_RATE,
        employee_contribution_threshold=ty2025.EMPLOYEE_CONTRIBUTION_THRESHOLD,
        dividend_gross_up_factor=ty2025.DIVIDEND_GROSS_UP_FACTOR,
        minimum_deduction=MinimumDeductionRule(
            rate=ty2025.MINIMUM_DEDUCTION_RATE,
            floor=ty2025.MINIMUM_DEDUCTION_FLOOR,
            cap=ty2025.MINIMUM_DEDUCTION_CAP,
        ),
        personal_allowance=ty2025.PERSONAL_ALLOWANCE,
        shareholder_allowance_rate=ty2025.SHAREHOLDER_ALLOWANCE_RATE,
        pension_min_rate=ty2025.PENSION_MIN_RATE,
        pension_max_rate=ty2025.PENSION_MAX_RATE,
        max_profit=ty2025.MAX_PROFIT,
        last_updated="2025-01-29",
        sources=tuple(ty2025.SOURCES),
        notes=tuple(ty2025.NOTES),
    )


_BUILDERS = {
    2025: _build_2025,
}


@lru_cache(maxsize=None)
def get_rate_table(tax_year: int) -> RateTable:
    """Return the (cached, shared) rate table for `tax_year`."""
    try:
        builder = _BUILDERS[tax_year]
    except KeyError:
        raise RateTableError(
            f"No rate table registered for tax year {tax_year}. "
            f"Available: {', '.join(str(y) for y in sorted(_BUILDERS))}"
        ) from None
    table = builder()
    logger.info("Loaded rate table for tax year %d", tax_year)
    return table


def available_tax_years() -> List[int]:
    return sorted(_BUILDERS)


def resolve_rates(rates: Optional[RateTable] = None) -> RateTable:
    """Explicit table wins; otherwise the table for the configured tax year."""
    if rates is not None:
        return rates
    from payout_planner.config import settings
    return get_rate_table(settings.tax_year)
