"""
Combination calculator — split the extractable budget between salary and dividend.

  salary_portion   = budget × ratio / 100   → gross-up solve + salary taxes
  dividend_portion = budget − salary_portion → corporate tax + dividend tax

The salary side reuses the salary calculator's helpers (employee contribution
threshold included), so ratio 100 reproduces salary_scenario. The dividend side
is taxed WITHOUT the shareholder allowance, so ratio 0 only matches
dividend_scenario when no cost basis is given.
"""
from __future__ import annotations

from typing import Optional

from payout_planner.calculator.dividend import _dividend_tax_raw
from payout_planner.calculator.money import kr, pct, round_money
from payout_planner.calculator.salary import (
    _bracket_tax_raw,
    _check_pension_rate,
    _employee_contribution_raw,
    _gross_salary_raw,
    _income_tax_raw,
)
from payout_planner.calculator.schemas import (
    CalculationStep,
    CompanyBreakdown,
    FinalResults,
    PersonalBreakdown,
    ScenarioOptions,
    ScenarioResult,
    TaxSummary,
)
from payout_planner.errors import InvalidRatioError
from payout_planner.rates import RateTable, resolve_rates

COMBINATION_ASSUMPTIONS: list[str] = [
    "Salary is paid first, the rest is distributed as dividend",
    "Salary taxes follow the salary model (employer contribution, employee contribution, bracket and income tax)",
    "Dividend is taxed after corporate tax",
    "Shareholder allowance not included in the combination calculation",
]


def _check_ratio(salary_ratio: float) -> float:
    try:
        ratio = float(salary_ratio)
    except (TypeError, ValueError):
        raise InvalidRatioError(f"Salary ratio must be a number, got {salary_ratio!r}") from None
    if not 0 <= ratio <= 100:
        raise InvalidRatioError(f"Salary ratio must be between 0 and 100, got {ratio:g}")
    return ratio


def combination_scenario(
    profit: float,
    zone: str,
    salary_ratio: float,
    options: Optional[ScenarioOptions] = None,
    rates: Optional[RateTable] = None,
) -> ScenarioResult:
    """
    Net payout = net salary + net dividend.
    Total tax  = employer contributions + personal salary tax
               + corporate tax (dividend portion + retained) + dividend tax.
    """
    ratio = _check_ratio(salary_ratio)
    rates = resolve_rates(rates)
    options = options or ScenarioOptions()
    employer_rate = rates.employer_rate(zone)
    _check_pension_rate(options.include_pension, options.pension_rate, rates)
    dividend_ratio = 100 - ratio
    steps: list[CalculationStep] = []

    # Step 1: Retention and split
    retained = profit * options.retention_percentage / 100
    budget = profit - retained
    salary_portion = budget * ratio / 100
    dividend_portion = budget - salary_portion
    steps.append(CalculationStep(
        step="Split of available profit",
        details=[
            f"Profit: {kr(profit)} - retained: {kr(retained)} = {kr(budget)}",
            f"Salary share ({ratio:g}%): {kr(salary_portion)}",
            f"Dividend share ({dividend_ratio:g}%): {kr(dividend_portion)}",
        ],
    ))

    # Step 2: Salary side
    gross, employer_contribution, pension, pension_on_top, cost_factor = _gross_salary_raw(
        salary_portion, employer_rate, options.include_pension, options.pension_rate,
    )
    ee_contribution = _employee_contribution_raw(gross, rates)
    bracket = _bracket_tax_raw(gross, rates)
    tax_on_income, _, _ = _income_tax_raw(gross, rates)
    salary_tax = ee_contribution + bracket + tax_on_income
    net_salary = gross - salary_tax
    employer_total = employer_contribution + pension_on_top
    steps.append(CalculationStep(
        step="Salary",
        details=[
            f"Gross salary: {kr(salary_portion)} / {cost_factor:.4f} = {kr(gross)}",
            f"Employer contribution ({pct(employer_rate)}): {kr(employer_total)}",
            f"Employee contribution: {kr(ee_contribution)}",
            f"Bracket tax: {kr(bracket)}",
            f"Income tax: {kr(tax_on_income)}",
            f"Net salary: {kr(net_salary)}",
        ],
    ))

    # Step 3: Dividend side, no shareholder allowance
    corporate_on_dividend = dividend_portion * rates.corporate_tax_rate
    distributed = dividend_portion - corporate_on_dividend
    div_tax, taxable_dividend, _ = _dividend_tax_raw(distributed, 0.0, rates)
    net_dividend = distributed - div_tax
    steps.append(CalculationStep(
        step="Dividend",
        details=[
            f"Corporate tax: {kr(dividend_portion)} × {pct(rates.corporate_tax_rate, 0)} = "
            f"{kr(corporate_on_dividend)}",
            f"Dividend distributed: {kr(distributed)}",
            f"Dividend tax: {kr(distributed)} × {rates.dividend_gross_up_factor} × "
            f"{pct(rates.personal_tax_rate, 0)} = {kr(div_tax)}",
            f"Net dividend: {kr(net_dividend)}",
        ],
    ))

    # Step 4: Corporate tax on retained profit
    corporate_on_retained = retained * rates.corporate_tax_rate
    retained_after_tax = retained - corporate_on_retained
    if retained > 0:
        steps.append(CalculationStep(
            step="Corporate tax on retained profit",
            details=[
                f"{kr(retained)} × {pct(rates.corporate_tax_rate, 0)} = {kr(corporate_on_retained)}",
            ],
        ))

    # Step 5: Totals
    total_corporate = corporate_on_dividend + corporate_on_retained
    net_payout = net_salary + net_dividend
    total_tax = employer_total + salary_tax + total_corporate + div_tax
    effective_rate = total_tax / profit if profit > 0 else 0.0
    steps.append(CalculationStep(
        step="Summary",
        details=[
            f"Net private payout: {kr(net_salary)} + {kr(net_dividend)} = {kr(net_payout)}",
            f"Total tax: {kr(total_tax)}",
            f"Effective tax rate: {pct(effective_rate, 2)}",
        ],
    ))

    return ScenarioResult(
        scenario_type="combination",
        scenario_name=f"Combination ({ratio:g}% salary / {dividend_ratio:g}% dividend)",
        input={
            "profit": profit,
            "zone": zone,
            "salary_ratio": ratio,
            "dividend_ratio": dividend_ratio,
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
            salary_portion=round_money(salary_portion),
            dividend_portion=round_money(dividend_portion),
            gross_salary_paid=round_money(gross),
            employer_contribution=round_money(employer_contribution),
            pension_contribution=round_money(pension),
            pension_employer_contribution=round_money(pension_on_top),
            total_employer_cost=round_money(gross + employer_total + pension),
            corporate_tax=round_money(total_corporate),
            dividend_distributed=round_money(distributed),
        ),
        personal=PersonalBreakdown(
            gross_salary=round_money(gross),
            employee_contribution=round_money(ee_contribution),
            bracket_tax=round_money(bracket),
            income_tax=round_money(tax_on_income),
            total_salary_tax=round_money(salary_tax),
            net_salary=round_money(net_salary),
            dividend_received=round_money(distributed),
            taxable_dividend=round_money(taxable_dividend),
            dividend_tax=round_money(div_tax),
            net_dividend=round_money(net_dividend),
            pension_accrued=round_money(pension),
        ),
        tax_summary=TaxSummary(
            employer_contribution=round_money(employer_total),
            corporate_tax=round_money(total_corporate),
            salary_tax=round_money(salary_tax),
            dividend_tax=round_money(div_tax),
            total_tax=round_money(total_tax),
            effective_tax_rate=effective_rate,
            effective_personal_tax_rate=salary_tax / gross if gross > 0 else 0.0,
            effective_dividend_tax_rate=div_tax / distributed if distributed > 0 else 0.0,
        ),
        results=FinalResults(
            net_private_payout=round_money(net_payout),
            total_tax_paid=round_money(total_tax),
            effective_tax_rate=effective_rate,
            retained_in_company=round_money(retained_after_tax),
            pension_accrued=round_money(pension),
        ),
        calculation_steps=steps,
        assumptions=list(COMBINATION_ASSUMPTIONS),
    )
