"""
Scenario comparator.

generate_all_scenarios() is the one-call entry point behind POST /api/calculate:
validate → 100% salary, 100% dividend, 50/50, optimised, (30% retention
variant) → ranked comparison table → recommendations.

A scenario that fails is reported as ScenarioError({error}) in place; it never
aborts the run and never shows up in the ranking.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from payout_planner.calculator.combination import combination_scenario
from payout_planner.calculator.dividend import dividend_scenario
from payout_planner.calculator.money import kr
from payout_planner.calculator.optimizer import find_optimal_ratio
from payout_planner.calculator.salary import salary_scenario
from payout_planner.calculator.schemas import (
    AllScenariosResult,
    AlternativeRecommendation,
    ComparisonRow,
    ComparisonTable,
    Consideration,
    OptimizationDetails,
    PrimaryRecommendation,
    Recommendations,
    ScenarioError,
    ScenarioOptions,
    ScenarioOutcome,
    ScenarioResult,
    Tradeoff,
)
from payout_planner.rates import RateTable, resolve_rates
from payout_planner.validation.validator import validate

logger = logging.getLogger(__name__)

# Retention share used for the "what if I keep some in the company" variant
RETENTION_VARIANT_PERCENTAGE = 30.0
MAX_ALTERNATIVES = 2

REPORT_DISCLAIMER = (
    "This is a calculation for planning purposes. "
    "Consult a tax advisor for professional advice."
)

# Only these compete for the primary recommendation; the retention variant
# keeps money in the company and is not a like-for-like payout.
_RECOMMENDABLE = ("all_salary", "all_dividend", "split_50_50", "optimised")

_PRIMARY_REASONS = {
    "all_salary": (
        "With a profit of {profit} and employer contribution zone {zone}, a pure salary "
        "strategy gives the best net payout. Bracket tax is still lower than the combined "
        "corporate and dividend tax."
    ),
    "all_dividend": (
        "With a profit of {profit}, a pure dividend strategy is the most efficient. High "
        "employer contribution and bracket tax make salary less attractive."
    ),
    "split_50_50": "A 50/50 split balances tax efficiency and social security rights.",
    "optimised": (
        "The optimised split balances the bracket tax thresholds against the flat dividend "
        "rate to minimise total tax."
    ),
}
_DEFAULT_PRIMARY_REASON = "Based on the calculations this is the most tax-efficient strategy."

_ALTERNATIVE_REASONS = {
    "all_salary": "Earns pension and social security rights",
    "all_dividend": "Simpler to administer, no payroll",
    "split_50_50": "Balanced approach with diversification",
    "optimised": "Most tax-efficient under current rules",
}

CONSIDERATIONS = [
    Consideration(
        topic="Pension accrual",
        description="Salary earns national insurance and occupational pension rights. Dividend earns none.",
        relevance="high",
    ),
    Consideration(
        topic="Sick pay",
        description="Sick pay is based on salary income. A pure dividend strategy gives no sick pay basis.",
        relevance="high",
    ),
    Consideration(
        topic="Flexibility",
        description="Retained profit can be invested in the company or distributed as dividend later.",
        relevance="medium",
    ),
    Consideration(
        topic="Future rule changes",
        description="Tax rules change. Mixing salary and dividend spreads that risk.",
        relevance="medium",
    ),
]

TRADEOFFS = [
    Tradeoff(
        option="High salary",
        pros=["Pension accrual", "Sick pay basis", "Unemployment benefits"],
        cons=["Higher marginal tax at high income", "Employer contribution"],
    ),
    Tradeoff(
        option="High dividend",
        pros=["Lower tax at high income", "No employer contribution"],
        cons=["No social security accrual", "Double taxation (company + personal)"],
    ),
    Tradeoff(
        option="Retention",
        pros=["Investment opportunities", "Tax planning over time", "Buffer for weak years"],
        cons=["Money tied up in the company", "Future dividend tax"],
    ),
]


# ===========================================================================
# RANKING
# ===========================================================================

def rank_scenarios(named_scenarios: Mapping[str, ScenarioOutcome]) -> ComparisonTable:
    """
    Rank successful scenarios by net payout, highest first.

    The sort is stable: equal payouts keep their insertion order. Errored
    scenarios are left out. percent_difference_from_best is 0 when the best
    payout is 0.
    """
    rows = [
        ComparisonRow(
            key=key,
            name=scenario.scenario_name,
            gross_payout=scenario.results.net_private_payout + scenario.results.total_tax_paid,
            net_payout=scenario.results.net_private_payout,
            total_tax=scenario.results.total_tax_paid,
            effective_rate=scenario.results.effective_tax_rate,
            retained=scenario.results.retained_in_company,
        )
        for key, scenario in named_scenarios.items()
        if isinstance(scenario, ScenarioResult)
    ]
    rows.sort(key=lambda r: r.net_payout, reverse=True)

    if not rows:
        return ComparisonTable()

    best = rows[0].net_payout
    for rank, row in enumerate(rows, start=1):
        row.rank = rank
        row.difference_from_best = best - row.net_payout
        row.percent_difference_from_best = row.difference_from_best / best * 100 if best > 0 else 0

    return ComparisonTable(
        rows=rows,
        best_scenario=rows[0].name,
        worst_scenario=rows[-1].name,
        max_difference=rows[-1].difference_from_best,
    )


# ===========================================================================
# RECOMMENDATIONS
# ===========================================================================

def generate_recommendations(
    scenarios: Mapping[str, ScenarioOutcome],
    profit: float,
    zone: str,
) -> Recommendations:
    candidates = [
        (key, scenarios[key]) for key in _RECOMMENDABLE
        if isinstance(scenarios.get(key), ScenarioResult)
    ]
    candidates.sort(key=lambda kv: kv[1].results.net_private_payout, reverse=True)

    recommendations = Recommendations(
        considerations=list(CONSIDERATIONS),
        tradeoffs=list(TRADEOFFS),
    )
    if not candidates:
        return recommendations

    best_key, best = candidates[0]
    best_net = best.results.net_private_payout
    recommendations.primary = PrimaryRecommendation(
        scenario=best.scenario_name,
        reason=_PRIMARY_REASONS.get(best_key, _DEFAULT_PRIMARY_REASON).format(profit=kr(profit), zone=zone),
        net_payout=best_net,
        effective_rate=best.results.effective_tax_rate,
    )
    recommendations.alternatives = [
        AlternativeRecommendation(
            scenario=alt.scenario_name,
            net_payout=alt.results.net_private_payout,
            difference=best_net - alt.results.net_private_payout,
            reason=_ALTERNATIVE_REASONS.get(key, ""),
        )
        for key, alt in candidates[1:1 + MAX_ALTERNATIVES]
    ]
    return recommendations


# ===========================================================================
# FULL COMPARISON RUN
# ===========================================================================

def _run(key: str, build: Callable[[], ScenarioResult]) -> ScenarioOutcome:
    try:
        return build()
    except Exception as exc:
        logger.warning("Scenario %s failed: %s: %s", key, type(exc).__name__, exc)
        return ScenarioError(error=str(exc))


def generate_all_scenarios(
    raw_input: Any,
    rates: Optional[RateTable] = None,
    step: Optional[float] = None,
    max_workers: Optional[int] = None,
) -> AllScenariosResult:
    """
    Validate raw input and build every standard scenario.

    Invalid input returns success=False with the validator's errors and no
    scenarios; nothing is computed in that case.
    """
    rates = resolve_rates(rates)
    validation = validate(raw_input, rates)
    if not validation.is_valid:
        return AllScenariosResult(success=False, errors=validation.errors, warnings=validation.warnings)

    sanitized = validation.sanitized_input
    profit = sanitized.profit
    zone = sanitized.employer_zone
    options = ScenarioOptions.from_sanitized(sanitized)

    scenarios: Dict[str, ScenarioOutcome] = {}
    scenarios["all_salary"] = _run("all_salary", lambda: salary_scenario(profit, zone, options, rates))
    scenarios["all_dividend"] = _run("all_dividend", lambda: dividend_scenario(profit, options, rates))
    scenarios["split_50_50"] = _run(
        "split_50_50", lambda: combination_scenario(profit, zone, 50, options, rates),
    )

    optimization_details: Optional[OptimizationDetails] = None
    try:
        optimization = find_optimal_ratio(profit, zone, options, rates, step=step, max_workers=max_workers)
    except Exception as exc:
        logger.warning("Scenario optimised failed: %s: %s", type(exc).__name__, exc)
        scenarios["optimised"] = ScenarioError(error=str(exc))
    else:
        scenarios["optimised"] = optimization.optimal_scenario
        optimization_details = OptimizationDetails(
            optimal_ratio=optimization.optimal_ratio,
            comparison=optimization.comparison,
            savings=optimization.savings,
            analysis=optimization.analysis,
        )

    if options.retention_percentage == 0:
        ratio = optimization_details.optimal_ratio if optimization_details else 50
        retention_options = options.model_copy(update={"retention_percentage": RETENTION_VARIANT_PERCENTAGE})
        scenarios["with_retention"] = _run(
            "with_retention",
            lambda: combination_scenario(profit, zone, ratio, retention_options, rates),
        )

    return AllScenariosResult(
        success=True,
        input=sanitized,
        warnings=validation.warnings,
        scenarios=scenarios,
        optimization_details=optimization_details,
        comparison=rank_scenarios(scenarios),
        recommendations=generate_recommendations(scenarios, profit, zone),
    )


# ===========================================================================
# DETAILED REPORT
# ===========================================================================

def detailed_report(scenario: Optional[ScenarioOutcome], rates: Optional[RateTable] = None) -> Dict[str, Any]:
    """Flatten one scenario into a printable report with metadata."""
    if not isinstance(scenario, ScenarioResult):
        return {"error": "Invalid scenario"}

    rates = resolve_rates(rates)
    return {
        "summary": {
            "scenario_name": scenario.scenario_name,
            "net_private_payout": scenario.results.net_private_payout,
            "total_tax_paid": scenario.results.total_tax_paid,
            "effective_tax_rate": scenario.results.effective_tax_rate,
            "retained_in_company": scenario.results.retained_in_company,
            "pension_accrued": scenario.results.pension_accrued,
        },
        "company_level": scenario.company.model_dump(),
        "personal_level": scenario.personal.model_dump(),
        "tax_breakdown": scenario.tax_summary.model_dump(),
        "calculation_steps": [s.model_dump() for s in scenario.calculation_steps],
        "assumptions": list(scenario.assumptions),
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "tax_year": rates.tax_year,
            "disclaimer": REPORT_DISCLAIMER,
        },
    }
