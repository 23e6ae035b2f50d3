"""
Dividend extraction calculator (shareholder model).
Pure functions, no I/O.

  1. Corporate tax on the WHOLE profit — retained earnings are taxed too,
     they are just not distributed
  2. Shareholder allowance = cost basis × allowance rate, capped at the
     distributable amount
  3. Dividend tax = (dividend − allowance) × gross-up factor × personal rate

With the 2025 table: 22% × 1.72 = 37.84% nominal dividend rate, and
1 − 0.78 × 0.6216 ≈ 51.52% combined with corporate tax.
"""
from __future__ import annotations

from typing import Optional

from payout_planner.calculator.money import kr, pct, round_money
from payout_planner.calculator.schemas import (
    CalculationStep,
    CombinedDividendTaxResult,
    CompanyBreakdown,
    CorporateTaxResult,
    DividendTaxResult,
    FinalResults,
    PersonalBreakdown,
    ScenarioOptions,
    ScenarioResult,
    ShareholderAllowanceResult,
    TaxSummary,
)
from payout_planner.rates import RateTable, resolve_rates

DIVIDEND_ASSUMPTIONS: list[str] = [
    "Single shareholder",
    "No other dividend income this year",
    "Shares are held at year end (required for the shareholder allowance)",
    "All profit after tax is distributed as dividend unless retained",
    "No unused shareholder allowance carried forward from previous years",
]


# ===========================================================================
# INTERNAL HELPERS (unrounded)
# ===========================================================================

def _dividend_tax_raw(dividend_amount: float, allowance: float, rates: RateTable) -> tuple[float, float, float]:
    """Returns (tax, taxable dividend, grossed-up dividend)."""
    taxable = max(0.0, dividend_amount - allowance)
    grossed_up = taxable * rates.dividend_gross_up_factor
    return grossed_up * rates.personal_tax_rate, taxable, grossed_up


# ===========================================================================
# PUBLIC COMPONENT CALCULATORS
# ===========================================================================

def corporate_tax(profit: float, rates: Optional[RateTable] = None) -> CorporateTaxResult:
    rates = resolve_rates(rates)
    tax = profit * rates.corporate_tax_rate
    after_tax = profit - tax
    return CorporateTaxResult(
        profit=profit,
        corporate_tax=round_money(tax),
        profit_after_tax=round_money(after_tax),
        rate=rates.corporate_tax_rate,
        calculation_steps=[
            f"Profit before tax: {kr(profit)}",
            f"Corporate tax rate: {pct(rates.corporate_tax_rate, 0)}",
            f"Corporate tax: {kr(profit)} × {pct(rates.corporate_tax_rate, 0)} = {kr(tax)}",
            f"Profit after tax: {kr(profit)} - {kr(tax)} = {kr(after_tax)}",
        ],
    )


def shareholder_allowance(
    cost_basis: Optional[float],
    allowance_rate: Optional[float] = None,
    rates: Optional[RateTable] = None,
) -> ShareholderAllowanceResult:
    """cost basis × allowance rate. No cost basis → no allowance."""
    if allowance_rate is None:
        allowance_rate = resolve_rates(rates).shareholder_allowance_rate

    if not cost_basis or cost_basis <= 0:
        return ShareholderAllowanceResult(
            cost_basis=0,
            allowance_rate=allowance_rate,
            allowance=0,
            calculation_steps=["Share cost basis not provided - no shareholder allowance"],
        )

    allowance = cost_basis * allowance_rate
    return ShareholderAllowanceResult(
        cost_basis=cost_basis,
        allowance_rate=allowance_rate,
        allowance=round_money(allowance),
        calculation_steps=[
            f"Share cost basis: {kr(cost_basis)}",
            f"Allowance rate: {pct(allowance_rate, 2)}",
            f"Shareholder allowance: {kr(cost_basis)} × {pct(allowance_rate, 2)} = {kr(allowance)}",
        ],
    )


def dividend_tax(
    dividend_amount: float,
    allowance: float = 0.0,
    rates: Optional[RateTable] = None,
) -> DividendTaxResult:
    rates = resolve_rates(rates)
    tax, taxable, grossed_up = _dividend_tax_raw(dividend_amount, allowance, rates)
    effective_rate = tax / dividend_amount if dividend_amount > 0 else 0.0
    net = dividend_amount - tax
    factor = rates.dividend_gross_up_factor

    return DividendTaxResult(
        dividend_amount=dividend_amount,
        allowance=allowance,
        taxable_dividend=round_money(taxable),
        gross_up_factor=factor,
        grossed_up_dividend=round_money(grossed_up),
        personal_tax_rate=rates.personal_tax_rate,
        dividend_tax=round_money(tax),
        net_dividend=round_money(net),
        effective_rate=effective_rate,
        theoretical_max_rate=rates.effective_dividend_tax_rate,
        calculation_steps=[
            f"Dividend: {kr(dividend_amount)}",
            f"Shareholder allowance: {kr(allowance)}",
            f"Taxable dividend: {kr(dividend_amount)} - {kr(allowance)} = {kr(taxable)}",
            f"Gross-up factor: {factor}",
            f"Grossed-up dividend: {kr(taxable)} × {factor} = {kr(grossed_up)}",
            f"Dividend tax: {kr(grossed_up)} × {pct(rates.personal_tax_rate, 0)} = {kr(tax)}",
            f"Effective dividend tax rate: {pct(effective_rate, 2)}",
            f"Net dividend: {kr(dividend_amount)} - {kr(tax)} = {kr(net)}",
        ],
    )


def combined_dividend_tax(
    profit: float,
    allowance: float = 0.0,
    rates: Optional[RateTable] = None,
) -> CombinedDividendTaxResult:
    """Corporate tax + dividend tax when the whole profit is distributed."""
    rates = resolve_rates(rates)
    corp = profit * rates.corporate_tax_rate
    distributed = profit - corp
    tax, _, _ = _dividend_tax_raw(distributed, allowance, rates)
    total = corp + tax
    net = distributed - tax
    combined_rate = total / profit if profit > 0 else 0.0

    corporate_steps = corporate_tax(profit, rates).calculation_steps
    dividend_steps = dividend_tax(distributed, allowance, rates).calculation_steps
    return CombinedDividendTaxResult(
        profit=profit,
        corporate_tax=round_money(corp),
        profit_after_corporate_tax=round_money(distributed),
        dividend_distributed=round_money(distributed),
        allowance=allowance,
        dividend_tax=round_money(tax),
        total_tax=round_money(total),
        net_private_payout=round_money(net),
        combined_effective_rate=combined_rate,
        calculation_steps=[
            "--- COMPANY LEVEL ---",
            *corporate_steps,
            "--- PERSONAL LEVEL ---",
            *dividend_steps,
            "--- TOTAL ---",
            f"Total tax: {kr(corp)} + {kr(tax)} = {kr(total)}",
            f"Net private payout: {kr(net)}",
            f"Combined effective tax rate: {pct(combined_rate, 2)}",
        ],
    )


# ===========================================================================
# DIVIDEND SCENARIO
# ===========================================================================

def dividend_scenario(
    profit: float,
    options: Optional[ScenarioOptions] = None,
    rates: Optional[RateTable] = None,
) -> ScenarioResult:
    """
    Everything that is not retained is distributed as dividend.

    The allowance is capped at the distributable amount, so it can lower
    dividend tax to zero but never below.
    """
    rates = resolve_rates(rates)
    options = options or ScenarioOptions()
    steps: list[CalculationStep] = []

    # Step 1: Retention
    retained = profit * options.retention_percentage / 100
    distributed_before_tax = profit - retained
    steps.append(CalculationStep(
        step="Retained profit",
        details=[
            f"{options.retention_percentage:.0f}% of profit ({kr(retained)}) stays in the company"
            if retained > 0 else "All profit is extracted as dividend",
        ],
    ))

    # Step 2: Corporate tax on the whole profit, split by destination
    total_corporate = profit * rates.corporate_tax_rate
    corporate_on_retained = retained * rates.corporate_tax_rate
    corporate_on_distributed = distributed_before_tax * rates.corporate_tax_rate
    retained_after_tax = retained - corporate_on_retained
    distributable = distributed_before_tax - corporate_on_distributed
    steps.append(CalculationStep(
        step="Corporate tax",
        details=[
            f"Total corporate tax: {kr(total_corporate)}",
            f"- on retained profit: {kr(corporate_on_retained)}",
            f"- on distributed profit: {kr(corporate_on_distributed)}",
            f"Available for dividend: {kr(distributable)}",
        ],
    ))

    # Step 3: Shareholder allowance, capped at what is distributed
    allowance_result = shareholder_allowance(
        options.share_cost_basis, rates.shareholder_allowance_rate,
    )
    allowance = min(options.share_cost_basis * rates.shareholder_allowance_rate, distributable)
    steps.append(CalculationStep(
        step="Shareholder allowance",
        details=allowance_result.calculation_steps,
    ))

    # Step 4: Dividend tax
    tax, taxable, _ = _dividend_tax_raw(distributable, allowance, rates)
    net_dividend = distributable - tax
    steps.append(CalculationStep(
        step="Dividend tax",
        details=dividend_tax(distributable, allowance, rates).calculation_steps,
    ))

    # Step 5: Totals
    total_tax = total_corporate + tax
    effective_rate = total_tax / profit if profit > 0 else 0.0
    effective_dividend_rate = tax / distributable if distributable > 0 else 0.0
    steps.append(CalculationStep(
        step="Summary",
        details=[
            f"Total corporate tax: {kr(total_corporate)}",
            f"Total dividend tax: {kr(tax)}",
            f"Total tax: {kr(total_tax)}",
            f"Net private payout: {kr(net_dividend)}",
            f"Effective tax rate: {pct(effective_rate, 2)}",
        ],
    ))

    return ScenarioResult(
        scenario_type="dividend",
        scenario_name="100% Dividend",
        input={
            "profit": profit,
            "retention_percentage": options.retention_percentage,
            "share_cost_basis": options.share_cost_basis,
        },
        company=CompanyBreakdown(
            profit=round_money(profit),
            retained_before_tax=round_money(retained),
            retained_after_tax=round_money(retained_after_tax),
            corporate_tax_on_retained=round_money(corporate_on_retained),
            available_for_extraction=round_money(distributed_before_tax),
            dividend_portion=round_money(distributed_before_tax),
            corporate_tax=round_money(total_corporate),
            dividend_distributed=round_money(distributable),
        ),
        personal=PersonalBreakdown(
            dividend_received=round_money(distributable),
            shareholder_allowance=round_money(allowance),
            taxable_dividend=round_money(taxable),
            dividend_tax=round_money(tax),
            net_dividend=round_money(net_dividend),
        ),
        tax_summary=TaxSummary(
            corporate_tax=round_money(total_corporate),
            dividend_tax=round_money(tax),
            total_tax=round_money(total_tax),
            effective_tax_rate=effective_rate,
            effective_dividend_tax_rate=effective_dividend_rate,
        ),
        results=FinalResults(
            net_private_payout=round_money(net_dividend),
            total_tax_paid=round_money(total_tax),
            effective_tax_rate=effective_rate,
            retained_in_company=round_money(retained_after_tax),
        ),
        calculation_steps=steps,
        assumptions=list(DIVIDEND_ASSUMPTIONS),
    )
