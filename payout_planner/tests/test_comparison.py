"""
Scenario comparator tests — ranking, recommendations, the full comparison run
and the detailed report.
"""
from __future__ import annotations

import pytest

from payout_planner.calculator import comparison
from payout_planner.calculator.comparison import (
    RETENTION_VARIANT_PERCENTAGE,
    detailed_report,
    generate_all_scenarios,
    generate_recommendations,
    rank_scenarios,
)
from payout_planner.calculator.dividend import dividend_scenario
from payout_planner.calculator.salary import salary_scenario
from payout_planner.calculator.schemas import ScenarioError, ScenarioResult
from payout_planner.rates import RateTable
from payout_planner.tests.scenario_fixtures import FULL_REQUEST


# ---------------------------------------------------------------------------
# rank_scenarios
# ---------------------------------------------------------------------------

def test_rank_orders_by_net_payout(rates: RateTable) -> None:
    salary = salary_scenario(1_000_000, "1", rates=rates)
    dividend = dividend_scenario(1_000_000, rates=rates)
    table = rank_scenarios({"dividend": dividend, "salary": salary})

    assert [r.key for r in table.rows] == ["salary", "dividend"]
    assert [r.rank for r in table.rows] == [1, 2]
    assert table.rows[0].difference_from_best == 0
    assert table.rows[1].difference_from_best == pytest.approx(
        salary.results.net_private_payout - dividend.results.net_private_payout
    )
    assert table.best_scenario == "100% Salary"
    assert table.worst_scenario == "100% Dividend"
    assert table.max_difference == table.rows[-1].difference_from_best


def test_rank_gross_payout_is_net_plus_tax(rates: RateTable) -> None:
    salary = salary_scenario(1_000_000, "1", rates=rates)
    row = rank_scenarios({"salary": salary}).rows[0]
    assert row.gross_payout == row.net_payout + row.total_tax


def test_rank_is_stable_for_equal_payouts(rates: RateTable) -> None:
    scenario = salary_scenario(500_000, "2", rates=rates)
    table = rank_scenarios({"first": scenario, "second": scenario.model_copy(), "third": scenario.model_copy()})
    assert [r.key for r in table.rows] == ["first", "second", "third"]
    assert [r.rank for r in table.rows] == [1, 2, 3]


def test_rank_skips_errored_scenarios(rates: RateTable) -> None:
    table = rank_scenarios({
        "broken": ScenarioError(error="boom"),
        "salary": salary_scenario(1_000_000, "1", rates=rates),
    })
    assert [r.key for r in table.rows] == ["salary"]


def test_rank_empty() -> None:
    table = rank_scenarios({"broken": ScenarioError(error="boom")})
    assert table.rows == []
    assert table.best_scenario is None


def test_rank_percent_guarded_for_zero_best(rates: RateTable) -> None:
    table = rank_scenarios({
        "a": salary_scenario(0, "1", rates=rates),
        "b": dividend_scenario(0, rates=rates),
    })
    assert all(r.percent_difference_from_best == 0 for r in table.rows)


# ---------------------------------------------------------------------------
# generate_recommendations
# ---------------------------------------------------------------------------

def test_recommendations_pick_best_and_two_alternatives(rates: RateTable) -> None:
    result = generate_all_scenarios(FULL_REQUEST, rates, step=5, max_workers=1)
    recs = generate_recommendations(result.scenarios, 1_000_000, "1")

    candidates = [
        s for k, s in result.scenarios.items()
        if k != "with_retention" and isinstance(s, ScenarioResult)
    ]
    best = max(s.results.net_private_payout for s in candidates)
    assert recs.primary.net_payout == best
    assert len(recs.alternatives) == 2
    assert all(a.difference >= 0 for a in recs.alternatives)
    assert recs.considerations
    assert {t.option for t in recs.tradeoffs} == {"High salary", "High dividend", "Retention"}


def test_recommendations_without_scenarios() -> None:
    recs = generate_recommendations({"all_salary": ScenarioError(error="boom")}, 1_000_000, "1")
    assert recs.primary is None
    assert recs.alternatives == []
    assert recs.considerations


# ---------------------------------------------------------------------------
# generate_all_scenarios
# ---------------------------------------------------------------------------

def test_full_run_builds_every_scenario(rates: RateTable) -> None:
    result = generate_all_scenarios(FULL_REQUEST, rates, step=5, max_workers=1)

    assert result.success
    assert set(result.scenarios) == {
        "all_salary", "all_dividend", "split_50_50", "optimised", "with_retention",
    }
    assert all(isinstance(s, ScenarioResult) for s in result.scenarios.values())
    assert result.optimization_details is not None
    assert result.comparison.rows[0].rank == 1
    payouts = [r.net_payout for r in result.comparison.rows]
    assert payouts == sorted(payouts, reverse=True)


def test_full_run_retention_variant_at_optimal_ratio(rates: RateTable) -> None:
    result = generate_all_scenarios(FULL_REQUEST, rates, step=5, max_workers=1)
    variant = result.scenarios["with_retention"]
    assert variant.input["retention_percentage"] == RETENTION_VARIANT_PERCENTAGE
    assert variant.input["salary_ratio"] == result.optimization_details.optimal_ratio
    assert variant.results.retained_in_company > 0


def test_full_run_skips_variant_when_retention_requested(rates: RateTable) -> None:
    request = dict(FULL_REQUEST, retention={"enabled": True, "percentage": 20})
    result = generate_all_scenarios(request, rates, step=5, max_workers=1)
    assert "with_retention" not in result.scenarios
    assert result.scenarios["all_salary"].company.retained_before_tax == 200_000


def test_full_run_uses_cost_basis_for_dividend_only(rates: RateTable) -> None:
    result = generate_all_scenarios(FULL_REQUEST, rates, step=5, max_workers=1)
    assert result.scenarios["all_dividend"].personal.shareholder_allowance == 5_000
    assert result.scenarios["split_50_50"].personal.shareholder_allowance == 0


def test_full_run_invalid_input(rates: RateTable) -> None:
    result = generate_all_scenarios({"profit": "lots", "employer_zone": "1"}, rates)
    assert not result.success
    assert result.errors
    assert result.scenarios == {}
    assert result.comparison is None


def test_full_run_reports_failed_scenario(monkeypatch: pytest.MonkeyPatch, rates: RateTable) -> None:
    def broken(*args, **kwargs):
        raise ZeroDivisionError("division by zero")

    monkeypatch.setattr(comparison, "dividend_scenario", broken)
    result = generate_all_scenarios(FULL_REQUEST, rates, step=10, max_workers=1)

    assert result.success
    assert result.scenarios["all_dividend"] == ScenarioError(error="division by zero")
    assert "all_dividend" not in [r.key for r in result.comparison.rows]


# ---------------------------------------------------------------------------
# detailed_report
# ---------------------------------------------------------------------------

def test_detailed_report(rates: RateTable) -> None:
    scenario = salary_scenario(1_000_000, "1", rates=rates)
    report = detailed_report(scenario, rates)

    assert report["summary"]["scenario_name"] == "100% Salary"
    assert report["summary"]["net_private_payout"] == scenario.results.net_private_payout
    assert report["company_level"]["gross_salary_paid"] == scenario.company.gross_salary_paid
    assert report["calculation_steps"][0]["step"] == "Available for extraction"
    assert report["metadata"]["tax_year"] == 2025
    assert report["metadata"]["generated_at"].endswith("+00:00")
    assert report["metadata"]["disclaimer"]


@pytest.mark.parametrize("scenario", [None, ScenarioError(error="boom")])
def test_detailed_report_invalid_scenario(scenario) -> None:
    assert detailed_report(scenario) == {"error": "Invalid scenario"}
