"""
Ratio optimizer — brute-force search over the salary share.

find_optimal_ratio() evaluates combination_scenario() for every ratio on the
grid 0, step, 2·step, ... 100 and keeps the one with the highest net payout.
Ties keep the LOWEST ratio (strictly-greater update, scanned in ratio order),
also when the grid is evaluated on a thread pool: results are collected in
ratio order first and the winner is picked afterwards.

breakpoints() lists the bracket thresholds with the marginal rate on salary at
each step, next to the combined dividend rate for the same zone.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from payout_planner.calculator.combination import combination_scenario
from payout_planner.calculator.money import pct
from payout_planner.calculator.salary import _check_pension_rate
from payout_planner.calculator.schemas import (
    BaselinePoint,
    Breakpoint,
    BreakpointsResult,
    OptimizationAnalysis,
    OptimizationComparison,
    OptimizationResult,
    OptimizationSavings,
    ScenarioOptions,
    ScenarioResult,
    SearchPoint,
)
from payout_planner.errors import OptimizationError
from payout_planner.rates import RateTable, resolve_rates

logger = logging.getLogger(__name__)

# Analysis buckets on the optimal salary ratio
SALARY_HEAVY_RATIO  = 90
DIVIDEND_HEAVY_RATIO = 10
_HIGH_AGA_ZONES     = ("1", "1a")
_ZERO_AGA_ZONES     = ("5",)


def _ratio_grid(step: float) -> list[float]:
    if step <= 0 or step > 100:
        raise ValueError(f"Optimizer step must be in (0, 100], got {step}")
    n = int(100 / step + 1e-9)
    return [round(i * step, 10) for i in range(n + 1)]


def _baseline(ratio: float, scenario: ScenarioResult) -> BaselinePoint:
    return BaselinePoint(
        ratio=ratio,
        net_payout=scenario.results.net_private_payout,
        total_tax=scenario.results.total_tax_paid,
        effective_rate=scenario.results.effective_tax_rate,
    )


def _analysis(optimal_ratio: float, zone: str, rates: RateTable) -> OptimizationAnalysis:
    aga_rate = rates.employer_rate(zone)
    if optimal_ratio >= SALARY_HEAVY_RATIO:
        analysis = OptimizationAnalysis(
            summary="A high salary share is optimal at this profit level.",
            factors=[
                "Bracket tax is lower than dividend tax at this income level",
                "Minimum deduction and personal allowance reduce the tax base",
            ],
            recommendations=[
                "Consider raising the pension contribution for further tax savings",
                "Salary earns national insurance pension rights",
            ],
        )
    elif optimal_ratio <= DIVIDEND_HEAVY_RATIO:
        analysis = OptimizationAnalysis(
            summary="Dividend is the most tax-efficient option at this profit level.",
            factors=[
                "High employer contribution makes salary expensive",
                "High bracket tax on large salaries",
            ],
            recommendations=[
                "Consider whether pension accrual matters (requires salary)",
                "A shareholder allowance can reduce dividend tax",
            ],
        )
    else:
        analysis = OptimizationAnalysis(
            summary=f"A combination with {optimal_ratio:g}% salary gives the best result.",
            factors=[
                "Salary up to a certain level is tax-efficient",
                "Dividend is cheaper for amounts above the bracket thresholds",
                f"Employer contribution rate in zone {zone}: {pct(aga_rate)}",
            ],
            recommendations=[
                "Adjust the split to your personal needs",
                "Consider pension, sick pay and other social security rights",
            ],
        )

    if zone in _ZERO_AGA_ZONES:
        analysis.factors.append("No employer contribution in zone 5 makes salary more attractive")
    elif zone in _HIGH_AGA_ZONES:
        analysis.factors.append(f"High employer contribution ({pct(aga_rate)}) raises the cost of salary")
    return analysis


def find_optimal_ratio(
    profit: float,
    zone: str,
    options: Optional[ScenarioOptions] = None,
    rates: Optional[RateTable] = None,
    step: Optional[float] = None,
    max_workers: Optional[int] = None,
) -> OptimizationResult:
    """
    Search the salary ratio that maximises net private payout.

    Raises:
        UnknownZoneError: zone not in the rate table (checked before the search).
        ValueError: pension rate outside the deductible band (checked before the search).
        OptimizationError: no ratio on the grid produced a scenario.
    """
    from payout_planner.config import settings

    rates = resolve_rates(rates)
    options = options or ScenarioOptions()
    step = settings.optimizer_step if step is None else step
    max_workers = settings.optimizer_workers if max_workers is None else max_workers

    # Zone and pension rate fail for every ratio alike, so they are not skippable
    rates.employer_rate(zone)
    _check_pension_rate(options.include_pension, options.pension_rate, rates)
    grid = _ratio_grid(step)

    def evaluate(ratio: float) -> Optional[ScenarioResult]:
        try:
            return combination_scenario(profit, zone, ratio, options, rates)
        except (ValueError, ArithmeticError) as exc:
            logger.debug("Skipping salary ratio %s: %s", ratio, exc)
            return None

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(evaluate, grid))
    else:
        outcomes = [evaluate(ratio) for ratio in grid]

    search_results: list[SearchPoint] = []
    optimal_ratio: Optional[float] = None
    optimal: Optional[ScenarioResult] = None
    for ratio, scenario in zip(grid, outcomes):
        if scenario is None:
            continue
        search_results.append(SearchPoint(
            salary_ratio=ratio,
            net_payout=scenario.results.net_private_payout,
            total_tax=scenario.results.total_tax_paid,
            effective_rate=scenario.results.effective_tax_rate,
        ))
        if optimal is None or scenario.results.net_private_payout > optimal.results.net_private_payout:
            optimal_ratio, optimal = ratio, scenario

    if optimal is None:
        raise OptimizationError(f"No salary ratio could be evaluated for zone {zone}")

    all_salary = combination_scenario(profit, zone, 100, options, rates)
    all_dividend = combination_scenario(profit, zone, 0, options, rates)
    split_50_50 = combination_scenario(profit, zone, 50, options, rates)
    best_net = optimal.results.net_private_payout

    logger.debug(
        "Optimizer evaluated %d/%d ratios in zone %s, optimum at %s%%",
        len(search_results), len(grid), zone, optimal_ratio,
    )

    return OptimizationResult(
        optimal_ratio=optimal_ratio,
        optimal_scenario=optimal.model_copy(update={
            "scenario_name": f"Optimised ({optimal_ratio:g}% salary / {100 - optimal_ratio:g}% dividend)",
        }),
        search_results=search_results,
        comparison=OptimizationComparison(
            optimal=_baseline(optimal_ratio, optimal),
            all_salary=_baseline(100, all_salary),
            all_dividend=_baseline(0, all_dividend),
            split_50_50=_baseline(50, split_50_50),
        ),
        savings=OptimizationSavings(
            vs_all_salary=best_net - all_salary.results.net_private_payout,
            vs_all_dividend=best_net - all_dividend.results.net_private_payout,
            vs_split_50_50=best_net - split_50_50.results.net_private_payout,
        ),
        analysis=_analysis(optimal_ratio, zone, rates),
    )


def breakpoints(zone: str, rates: Optional[RateTable] = None) -> BreakpointsResult:
    """Marginal salary rate at each bracket threshold vs. the combined dividend rate."""
    rates = resolve_rates(rates)
    aga_rate = rates.employer_rate(zone)
    base_marginal = rates.personal_tax_rate + rates.employee_contribution_rate

    points = []
    for i, bracket in enumerate(rates.brackets, start=1):
        marginal = base_marginal + bracket.rate
        points.append(Breakpoint(
            name=f"Bracket tax step {i}",
            threshold=bracket.threshold,
            rate=bracket.rate,
            description=f"Above {bracket.threshold:,.0f} kr: {pct(bracket.rate)} extra tax",
            marginal_tax_rate=marginal,
            total_cost_with_aga=marginal + aga_rate * (1 - marginal),
        ))

    return BreakpointsResult(
        zone=zone,
        aga_rate=aga_rate,
        breakpoints=points,
        dividend_effective_rate=rates.effective_dividend_tax_rate,
        combined_dividend_rate=rates.combined_dividend_rate,
        analysis=f"With {pct(aga_rate)} employer contribution in zone {zone}",
    )
