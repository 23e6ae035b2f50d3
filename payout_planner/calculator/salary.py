"""
Salary extraction calculator.
Pure functions, no I/O. Same input + same RateTable → same output.

Tax components on salary:
  1. Employer contribution (arbeidsgiveravgift) — paid by the company ON TOP of salary
  2. Employee contribution (trygdeavgift) — flat on the whole salary above a threshold
  3. Bracket tax (trinnskatt) — progressive, marginal slices
  4. Income tax — flat rate after minimum deduction and personal allowance

Public component functions return rounded result objects. Scenario assembly
works from the unrounded _raw helpers and rounds once, when it builds the
ScenarioResult.
"""
from __future__ import annotations

from typing import Optional

from payout_planner.calculator.money import kr, pct, round_money
from payout_planner.calculator.schemas import (
    BracketSlice,
    BracketTaxResult,
    CalculationStep,
    CompanyBreakdown,
    EmployeeContributionResult,
    FinalResults,
    GrossSalaryResult,
    IncomeTaxResult,
    MinimumDeductionResult,
    PersonalBreakdown,
    ScenarioOptions,
    ScenarioResult,
    TaxSummary,
)
from payout_planner.rates import RateTable, resolve_rates

SALARY_ASSUMPTIONS: list[str] = [
    "The owner is between 17 and 69 years old",
    "No other sources of income",
    "Standard employment relationship",
    "Single shareholder who is also the only employee",
    "Minimum deduction is applied automatically",
    "Personal allowance is deducted",
]


# ===========================================================================
# INTERNAL HELPERS (unrounded)
# ===========================================================================

def _check_pension_rate(include_pension: bool, pension_rate: float, rates: RateTable) -> None:
    if not include_pension:
        return
    if not rates.pension_min_rate - 1e-12 <= pension_rate <= rates.pension_max_rate + 1e-12:
        raise ValueError(
            f"Pension rate {pension_rate:.4f} outside the deductible range "
            f"{pct(rates.pension_min_rate)}–{pct(rates.pension_max_rate)}"
        )


def _gross_salary_raw(
    budget: float,
    employer_rate: float,
    include_pension: bool,
    pension_rate: float,
) -> tuple[float, float, float, float, float]:
    """
    budget = S + S·aga + S·p + S·p·aga  →  S = budget / (1 + aga + p·(1 + aga))
    Returns (gross, employer contribution, pension, contribution on pension, cost factor).
    """
    pension_factor = pension_rate if include_pension else 0.0
    cost_factor = 1 + employer_rate + pension_factor * (1 + employer_rate)
    gross = budget / cost_factor
    employer_contribution = gross * employer_rate
    pension = gross * pension_factor
    pension_contribution_on_top = pension * employer_rate
    return gross, employer_contribution, pension, pension_contribution_on_top, cost_factor


def _bracket_slices(gross_salary: float, rates: RateTable) -> list[tuple[int, float, float, float, float]]:
    """
    (step, threshold, rate, slice, slice_tax) for every bracket the income reaches.
    Each slice runs from its own threshold to the next threshold or income.
    """
    slices = []
    brackets = rates.brackets
    for i, bracket in enumerate(brackets):
        if gross_salary <= bracket.threshold:
            break
        upper = brackets[i + 1].threshold if i + 1 < len(brackets) else float("inf")
        taxable = min(gross_salary, upper) - bracket.threshold
        slices.append((i + 1, bracket.threshold, bracket.rate, taxable, taxable * bracket.rate))
    return slices


def _bracket_tax_raw(gross_salary: float, rates: RateTable) -> float:
    return sum(tax for *_, tax in _bracket_slices(gross_salary, rates))


def _employee_contribution_raw(gross_salary: float, rates: RateTable) -> float:
    # Cliff, not a slice: at/below the threshold nothing, above it the whole salary
    if gross_salary <= rates.employee_contribution_threshold:
        return 0.0
    return gross_salary * rates.employee_contribution_rate


def _minimum_deduction_raw(gross_salary: float, rates: RateTable) -> float:
    rule = rates.minimum_deduction
    deduction = max(gross_salary * rule.rate, rule.floor)
    deduction = min(deduction, rule.cap)
    return min(deduction, gross_salary)   # never more than the income itself


def _income_tax_raw(gross_salary: float, rates: RateTable) -> tuple[float, float, float]:
    """Returns (income tax, taxable income, minimum deduction)."""
    deduction = _minimum_deduction_raw(gross_salary, rates)
    taxable = max(0.0, gross_salary - deduction - rates.personal_allowance)
    return taxable * rates.personal_tax_rate, taxable, deduction


# ===========================================================================
# PUBLIC COMPONENT CALCULATORS
# ===========================================================================

def max_gross_salary(
    budget: float,
    zone: str,
    include_pension: bool = False,
    pension_rate: Optional[float] = None,
    rates: Optional[RateTable] = None,
) -> GrossSalaryResult:
    """
    Largest gross salary the company can pay out of `budget` once employer
    contribution (and optional pension + contribution on pension) is added.

    Raises UnknownZoneError for a zone the table does not price — there is
    no nominal default zone.
    """
    rates = resolve_rates(rates)
    employer_rate = rates.employer_rate(zone)
    if pension_rate is None:
        pension_rate = rates.pension_min_rate
    _check_pension_rate(include_pension, pension_rate, rates)

    gross, employer_contribution, pension, pension_on_top, cost_factor = _gross_salary_raw(
        budget, employer_rate, include_pension, pension_rate,
    )
    pension_factor = pension_rate if include_pension else 0.0

    return GrossSalaryResult(
        gross_salary=round_money(gross),
        employer_contribution=round_money(employer_contribution),
        pension_contribution=round_money(pension),
        pension_employer_contribution=round_money(pension_on_top),
        total_employer_cost=round_money(gross + employer_contribution + pension + pension_on_top),
        employer_rate=employer_rate,
        cost_factor=cost_factor,
        calculation_steps=[
            f"1. Employer contribution rate for zone {zone}: {pct(employer_rate)}",
            f"2. Pension rate: {pct(pension_factor)}",
            f"3. Total cost factor: {cost_factor:.4f}",
            f"4. Maximum gross salary: {kr(budget)} / {cost_factor:.4f} = {kr(gross)}",
            f"5. Employer contribution: {kr(gross)} × {pct(employer_rate)} = {kr(employer_contribution)}",
        ],
    )


def bracket_tax(gross_salary: float, rates: Optional[RateTable] = None) -> BracketTaxResult:
    """
    Progressive bracket tax. Total = sum of per-slice taxes, never
    top-rate × total income, so raising income never lowers net income.
    """
    rates = resolve_rates(rates)
    slices = _bracket_slices(gross_salary, rates)
    breakdown = [
        BracketSlice(
            step=step,
            threshold=threshold,
            rate=rate,
            taxable_amount=round_money(taxable),
            tax=round_money(tax),
            description=f"Step {step}: {kr(taxable)} × {pct(rate)} = {kr(tax)}",
        )
        for step, threshold, rate, taxable, tax in slices
    ]
    return BracketTaxResult(
        total_bracket_tax=round_money(sum(s[4] for s in slices)),
        breakdown=breakdown,
        calculation_steps=[b.description for b in breakdown],
    )


def employee_contribution(gross_salary: float, rates: Optional[RateTable] = None) -> EmployeeContributionResult:
    rates = resolve_rates(rates)
    rate = rates.employee_contribution_rate
    threshold = rates.employee_contribution_threshold

    if gross_salary <= threshold:
        return EmployeeContributionResult(
            contribution=0,
            rate=rate,
            taxable_base=0,
            calculation_steps=[
                f"Gross income ({kr(gross_salary)}) is not above the threshold ({kr(threshold)})",
                "Employee contribution: 0 kr",
            ],
        )

    contribution = _employee_contribution_raw(gross_salary, rates)
    return EmployeeContributionResult(
        contribution=round_money(contribution),
        rate=rate,
        taxable_base=round_money(gross_salary),
        calculation_steps=[
            f"Employee contribution rate on salary: {pct(rate)}",
            f"Employee contribution: {kr(gross_salary)} × {pct(rate)} = {kr(contribution)}",
        ],
    )


def minimum_deduction(gross_salary: float, rates: Optional[RateTable] = None) -> MinimumDeductionResult:
    rates = resolve_rates(rates)
    rule = rates.minimum_deduction
    deduction = _minimum_deduction_raw(gross_salary, rates)
    return MinimumDeductionResult(
        minimum_deduction=round_money(deduction),
        rate=rule.rate,
        floor=rule.floor,
        cap=rule.cap,
        calculation_steps=[
            f"Minimum deduction rate: {pct(rule.rate, 0)}",
            f"Computed: {kr(gross_salary)} × {pct(rule.rate, 0)} = {kr(gross_salary * rule.rate)}",
            f"Floor: {kr(rule.floor)}, cap: {kr(rule.cap)}",
            f"Minimum deduction: {kr(deduction)}",
        ],
    )


def income_tax(gross_salary: float, rates: Optional[RateTable] = None) -> IncomeTaxResult:
    rates = resolve_rates(rates)
    tax, taxable, deduction = _income_tax_raw(gross_salary, rates)
    return IncomeTaxResult(
        income_tax=round_money(tax),
        taxable_income=round_money(taxable),
        minimum_deduction=round_money(deduction),
        personal_allowance=rates.personal_allowance,
        rate=rates.personal_tax_rate,
        calculation_steps=[
            f"Gross salary: {kr(gross_salary)}",
            f"Minimum deduction: {kr(deduction)}",
            f"Personal allowance: {kr(rates.personal_allowance)}",
            f"Ordinary income: {kr(gross_salary)} - {kr(deduction)} - "
            f"{kr(rates.personal_allowance)} = {kr(taxable)}",
            f"Income tax: {kr(taxable)} × {pct(rates.personal_tax_rate, 0)} = {kr(tax)}",
        ],
    )


# ===========================================================================
# SALARY SCENARIO
# ===========================================================================

def salary_scenario(
    profit: float,
    zone: str,
    options: Optional[ScenarioOptions] = None,
    rates: Optional[RateTable] = None,
) -> ScenarioResult:
    """
    Everything that is not retained is paid out as salary.

    Sequence:
      1. retained = profit × retention%, budget = profit − retained
      2. gross-up solve for the largest salary the budget can carry
      3. employee contribution, bracket tax, income tax on the gross salary
      4. corporate tax on the retained slice only
      5. total tax = employer contributions + personal tax + corporate tax on retained
    """
    rates = resolve_rates(rates)
    options = options or ScenarioOptions()
    employer_rate = rates.employer_rate(zone)
    _check_pension_rate(options.include_pension, options.pension_rate, rates)
    steps: list[CalculationStep] = []

    # Step 1: Amount available for extraction
    retained = profit * options.retention_percentage / 100
    budget = profit - retained
    steps.append(CalculationStep(
        step="Available for extraction",
        details=[f"Profit: {kr(profit)} - retained: {kr(retained)} = {kr(budget)}"],
    ))

    # Step 2: Gross salary
    gross, employer_contribution, pension, pension_on_top, cost_factor = _gross_salary_raw(
        budget, employer_rate, options.include_pension, options.pension_rate,
    )
    steps.append(CalculationStep(
        step="Gross salary",
        details=[
            f"Employer contribution rate for zone {zone}: {pct(employer_rate)}",
            f"Pension rate: {pct(options.pension_rate if options.include_pension else 0.0)}",
            f"Total cost factor: {cost_factor:.4f}",
            f"Maximum gross salary: {kr(budget)} / {cost_factor:.4f} = {kr(gross)}",
            f"Employer contribution: {kr(gross)} × {pct(employer_rate)} = {kr(employer_contribution)}",
        ],
    ))

    # Step 3: Personal tax components
    ee_contribution = _employee_contribution_raw(gross, rates)
    steps.append(CalculationStep(
        step="Employee contribution",
        details=employee_contribution(gross, rates).calculation_steps,
    ))

    bracket = _bracket_tax_raw(gross, rates)
    steps.append(CalculationStep(
        step="Bracket tax",
        details=bracket_tax(gross, rates).calculation_steps,
    ))

    tax_on_income, _, _ = _income_tax_raw(gross, rates)
    steps.append(CalculationStep(
        step="Income tax",
        details=income_tax(gross, rates).calculation_steps,
    ))

    # Step 4: Corporate tax on retained profit
    corporate_on_retained = retained * rates.corporate_tax_rate
    if retained > 0:
        steps.append(CalculationStep(
            step="Corporate tax on retained profit",
            details=[
                f"{kr(retained)} × {pct(rates.corporate_tax_rate, 0)} = {kr(corporate_on_retained)}",
            ],
        ))

    # Step 5: Totals
    personal_tax = ee_contribution + bracket + tax_on_income
    net_salary = gross - personal_tax
    employer_total = employer_contribution + pension_on_top
    total_tax = employer_total + personal_tax + corporate_on_retained
    retained_after_tax = retained - corporate_on_retained
    effective_rate = total_tax / profit if profit > 0 else 0.0
    effective_personal_rate = personal_tax / gross if gross > 0 else 0.0

    steps.append(CalculationStep(
        step="Summary",
        details=[
            f"Total personal tax: {kr(ee_contribution)} + {kr(bracket)} + "
            f"{kr(tax_on_income)} = {kr(personal_tax)}",
            f"Net salary: {kr(gross)} - {kr(personal_tax)} = {kr(net_salary)}",
            f"Total tax: {kr(total_tax)}",
            f"Effective tax rate: {pct(effective_rate, 2)}",
        ],
    ))

    return ScenarioResult(
        scenario_type="salary",
        scenario_name="100% Salary",
        input={
            "profit": profit,
            "zone": zone,
            "include_pension": options.include_pension,
            "pension_rate": options.pension_rate,
            "retention_percentage": options.retention_percentage,
        },
        company=CompanyBreakdown(
            profit=round_money(profit),
            retained_before_tax=round_money(retained),
            retained_after_tax=round_money(retained_after_tax),
            corporate_tax_on_retained=round_money(corporate_on_retained),
            available_for_extraction=round_money(budget),
            salary_portion=round_money(budget),
            gross_salary_paid=round_money(gross),
            employer_contribution=round_money(employer_contribution),
            pension_contribution=round_money(pension),
            pension_employer_contribution=round_money(pension_on_top),
            total_employer_cost=round_money(gross + employer_total + pension),
            corporate_tax=round_money(corporate_on_retained),
        ),
        personal=PersonalBreakdown(
            gross_salary=round_money(gross),
            employee_contribution=round_money(ee_contribution),
            bracket_tax=round_money(bracket),
            income_tax=round_money(tax_on_income),
            total_salary_tax=round_money(personal_tax),
            net_salary=round_money(net_salary),
            pension_accrued=round_money(pension),
        ),
        tax_summary=TaxSummary(
            employer_contribution=round_money(employer_total),
            corporate_tax=round_money(corporate_on_retained),
            salary_tax=round_money(personal_tax),
            total_tax=round_money(total_tax),
            effective_tax_rate=effective_rate,
            effective_personal_tax_rate=effective_personal_rate,
        ),
        results=FinalResults(
            net_private_payout=round_money(net_salary),
            total_tax_paid=round_money(total_tax),
            effective_tax_rate=effective_rate,
            retained_in_company=round_money(retained_after_tax),
            pension_accrued=round_money(pension),
        ),
        calculation_steps=steps,
        assumptions=list(SALARY_ASSUMPTIONS),
    )
