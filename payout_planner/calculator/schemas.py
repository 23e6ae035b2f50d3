"""
schemas.py — calculator data contracts (pydantic v2).

Defines:
  - ScenarioOptions           (pension / retention / cost basis knobs)
  - CalculationStep           (one human-auditable step)
  - Component results         (GrossSalaryResult, BracketTaxResult, ... )
  - CompanyBreakdown, PersonalBreakdown, TaxSummary, FinalResults
  - ScenarioResult            (universal output of every calculator)
  - ScenarioError             ({error: message} for a failed scenario)
  - Optimizer + comparator outputs

MONEY ROUNDING:
  Monetary fields are whole currency units, rounded half-up ONLY when a result
  object is built. Rates (effective_*) are never rounded.

RECONCILIATION (every ScenarioResult):
  net_private_payout + total_tax_paid + retained_in_company + pension_accrued
  == profit  (± a few units from independent rounding)
"""
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from payout_planner.validation.schemas import SanitizedInput


# ---------------------------------------------------------------------------
# ScenarioOptions: everything besides profit / zone / ratio
# ---------------------------------------------------------------------------

class ScenarioOptions(BaseModel):
    """
    Calculator knobs. retention_percentage is on the 0–100 scale;
    pension_rate is fractional and only read when include_pension is True.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    include_pension: bool = False
    pension_rate: float = Field(default=0.02, ge=0, lt=1)
    retention_percentage: float = Field(default=0.0, ge=0, le=100)
    share_cost_basis: float = Field(default=0.0, ge=0)

    @classmethod
    def from_sanitized(cls, sanitized: SanitizedInput) -> "ScenarioOptions":
        return cls(
            include_pension=sanitized.pension.enabled,
            pension_rate=sanitized.pension.rate if sanitized.pension.enabled else 0.02,
            retention_percentage=sanitized.retention.percentage,
            share_cost_basis=sanitized.share_cost_basis or 0.0,
        )


class CalculationStep(BaseModel):
    model_config = ConfigDict(extra="forbid")

    step: str
    details: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Component results
# ---------------------------------------------------------------------------

class GrossSalaryResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    gross_salary: float
    employer_contribution: float
    pension_contribution: float
    pension_employer_contribution: float
    total_employer_cost: float
    employer_rate: float
    cost_factor: float
    calculation_steps: List[str] = Field(default_factory=list)


class BracketSlice(BaseModel):
    model_config = ConfigDict(extra="forbid")

    step: int
    threshold: float
    rate: float
    taxable_amount: float
    tax: float
    description: str


class BracketTaxResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_bracket_tax: float
    breakdown: List[BracketSlice] = Field(default_factory=list)
    calculation_steps: List[str] = Field(default_factory=list)


class EmployeeContributionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contribution: float
    rate: float
    taxable_base: float
    calculation_steps: List[str] = Field(default_factory=list)


class MinimumDeductionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    minimum_deduction: float
    rate: float
    floor: float
    cap: float
    calculation_steps: List[str] = Field(default_factory=list)


class IncomeTaxResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    income_tax: float
    taxable_income: float
    minimum_deduction: float
    personal_allowance: float
    rate: float
    calculation_steps: List[str] = Field(default_factory=list)


class CorporateTaxResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profit: float
    corporate_tax: float
    profit_after_tax: float
    rate: float
    calculation_steps: List[str] = Field(default_factory=list)


class ShareholderAllowanceResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cost_basis: float
    allowance_rate: float
    allowance: float
    calculation_steps: List[str] = Field(default_factory=list)


class DividendTaxResult(BaseModel):
    """
    effective_rate = tax / dividend_amount (what was actually paid).
    theoretical_max_rate = personal rate × gross-up (nominal ceiling, no allowance).
    They differ as soon as an allowance applies.
    """
    model_config = ConfigDict(extra="forbid")

    dividend_amount: float
    allowance: float
    taxable_dividend: float
    gross_up_factor: float
    grossed_up_dividend: float
    personal_tax_rate: float
    dividend_tax: float
    net_dividend: float
    effective_rate: float
    theoretical_max_rate: float
    calculation_steps: List[str] = Field(default_factory=list)


class CombinedDividendTaxResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profit: float
    corporate_tax: float
    profit_after_corporate_tax: float
    dividend_distributed: float
    allowance: float
    dividend_tax: float
    total_tax: float
    net_private_payout: float
    combined_effective_rate: float
    calculation_steps: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# ScenarioResult: universal calculator output
# ---------------------------------------------------------------------------

class CompanyBreakdown(BaseModel):
    """
    Company-level figures. Fields that do not apply to a scenario type stay 0
    (e.g. dividend_distributed for a pure salary scenario).
    """
    model_config = ConfigDict(extra="forbid")

    profit: float
    retained_before_tax: float = 0
    retained_after_tax: float = 0
    corporate_tax_on_retained: float = 0
    available_for_extraction: float = 0
    salary_portion: float = 0
    dividend_portion: float = 0
    gross_salary_paid: float = 0
    employer_contribution: float = 0
    pension_contribution: float = 0
    pension_employer_contribution: float = 0
    total_employer_cost: float = 0
    corporate_tax: float = 0
    dividend_distributed: float = 0


class PersonalBreakdown(BaseModel):
    model_config = ConfigDict(extra="forbid")

    gross_salary: float = 0
    employee_contribution: float = 0
    bracket_tax: float = 0
    income_tax: float = 0
    total_salary_tax: float = 0
    net_salary: float = 0
    dividend_received: float = 0
    shareholder_allowance: float = 0
    taxable_dividend: float = 0
    dividend_tax: float = 0
    net_dividend: float = 0
    pension_accrued: float = 0


class TaxSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employer_contribution: float = 0   # incl. contribution on pension
    corporate_tax: float = 0
    salary_tax: float = 0              # employee contribution + bracket + income tax
    dividend_tax: float = 0
    total_tax: float
    effective_tax_rate: float
    effective_personal_tax_rate: Optional[float] = None
    effective_dividend_tax_rate: Optional[float] = None


class FinalResults(BaseModel):
    model_config = ConfigDict(extra="forbid")

    net_private_payout: float
    total_tax_paid: float
    effective_tax_rate: float
    retained_in_company: float
    pension_accrued: float = 0


class ScenarioResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scenario_type: Literal["salary", "dividend", "combination"]
    scenario_name: str
    input: Dict[str, Union[float, str, bool, None]]
    company: CompanyBreakdown
    personal: PersonalBreakdown
    tax_summary: TaxSummary
    results: FinalResults
    calculation_steps: List[CalculationStep] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)


class ScenarioError(BaseModel):
    """A scenario whose construction failed. Never mixed with partial numbers."""
    model_config = ConfigDict(extra="forbid")

    error: str


ScenarioOutcome = Union[ScenarioResult, ScenarioError]


# ---------------------------------------------------------------------------
# Optimizer outputs
# ---------------------------------------------------------------------------

class SearchPoint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    salary_ratio: float
    net_payout: float
    total_tax: float
    effective_rate: float


class BaselinePoint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ratio: float
    net_payout: float
    total_tax: float
    effective_rate: float


class OptimizationComparison(BaseModel):
    model_config = ConfigDict(extra="forbid")

    optimal: BaselinePoint
    all_salary: BaselinePoint
    all_dividend: BaselinePoint
    split_50_50: BaselinePoint


class OptimizationSavings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vs_all_salary: float
    vs_all_dividend: float
    vs_split_50_50: float


class OptimizationAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    summary: str
    factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class OptimizationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    optimal_ratio: float
    optimal_scenario: ScenarioResult
    search_results: List[SearchPoint]
    comparison: OptimizationComparison
    savings: OptimizationSavings
    analysis: OptimizationAnalysis


class Breakpoint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    threshold: float
    rate: float
    description: str
    marginal_tax_rate: float
    total_cost_with_aga: float


class BreakpointsResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    zone: str
    aga_rate: float
    breakpoints: List[Breakpoint]
    dividend_effective_rate: float
    combined_dividend_rate: float
    analysis: str


# ---------------------------------------------------------------------------
# Comparator outputs
# ---------------------------------------------------------------------------

class ComparisonRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    name: str
    gross_payout: float
    net_payout: float
    total_tax: float
    effective_rate: float
    retained: float
    rank: int = 0
    difference_from_best: float = 0
    percent_difference_from_best: float = 0


class ComparisonTable(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rows: List[ComparisonRow] = Field(default_factory=list)
    best_scenario: Optional[str] = None
    worst_scenario: Optional[str] = None
    max_difference: Optional[float] = None


class PrimaryRecommendation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scenario: str
    reason: str
    net_payout: float
    effective_rate: float


class AlternativeRecommendation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scenario: str
    net_payout: float
    difference: float
    reason: str


class Consideration(BaseModel):
    model_config = ConfigDict(extra="forbid")

    topic: str
    description: str
    relevance: Literal["high", "medium", "low"]


class Tradeoff(BaseModel):
    model_config = ConfigDict(extra="forbid")

    option: str
    pros: List[str]
    cons: List[str]


class Recommendations(BaseModel):
    model_config = ConfigDict(extra="forbid")

    primary: Optional[PrimaryRecommendation] = None
    alternatives: List[AlternativeRecommendation] = Field(default_factory=list)
    considerations: List[Consideration] = Field(default_factory=list)
    tradeoffs: List[Tradeoff] = Field(default_factory=list)


class OptimizationDetails(BaseModel):
    model_config = ConfigDict(extra="forbid")

    optimal_ratio: float
    comparison: OptimizationComparison
    savings: OptimizationSavings
    analysis: OptimizationAnalysis


class AllScenariosResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    errors: List[str] = Field(default_factory=list)
    input: Optional[SanitizedInput] = None
    warnings: List[str] = Field(default_factory=list)
    scenarios: Dict[str, ScenarioOutcome] = Field(default_factory=dict)
    optimization_details: Optional[OptimizationDetails] = None
    comparison: Optional[ComparisonTable] = None
    recommendations: Optional[Recommendations] = None


# ---------------------------------------------------------------------------
# HTTP request bodies for the single-calculator endpoints
# ---------------------------------------------------------------------------

class SalaryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profit: float = Field(..., ge=0)
    employer_zone: str
    options: ScenarioOptions = ScenarioOptions()


class DividendRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profit: float = Field(..., ge=0)
    options: ScenarioOptions = ScenarioOptions()


class CombinationRequest(BaseModel):
    """salary_ratio is range-checked by the calculator (InvalidRatioError → 422)."""
    model_config = ConfigDict(extra="forbid")

    profit: float = Field(..., ge=0)
    employer_zone: str
    salary_ratio: float
    options: ScenarioOptions = ScenarioOptions()


class OptimizeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profit: float = Field(..., ge=0)
    employer_zone: str
    options: ScenarioOptions = ScenarioOptions()
    step: Optional[float] = Field(default=None, gt=0, le=100)


__all__ = [
    "ScenarioOptions",
    "CalculationStep",
    "GrossSalaryResult",
    "BracketSlice",
    "BracketTaxResult",
    "EmployeeContributionResult",
    "MinimumDeductionResult",
    "IncomeTaxResult",
    "CorporateTaxResult",
    "ShareholderAllowanceResult",
    "DividendTaxResult",
    "CombinedDividendTaxResult",
    "CompanyBreakdown",
    "PersonalBreakdown",
    "TaxSummary",
    "FinalResults",
    "ScenarioResult",
    "ScenarioError",
    "ScenarioOutcome",
    "SearchPoint",
    "BaselinePoint",
    "OptimizationComparison",
    "OptimizationSavings",
    "OptimizationAnalysis",
    "OptimizationResult",
    "Breakpoint",
    "BreakpointsResult",
    "ComparisonRow",
    "ComparisonTable",
    "PrimaryRecommendation",
    "AlternativeRecommendation",
    "Consideration",
    "Tradeoff",
    "Recommendations",
    "OptimizationDetails",
    "AllScenariosResult",
    "SalaryRequest",
    "DividendRequest",
    "CombinationRequest",
    "OptimizeRequest",
]
