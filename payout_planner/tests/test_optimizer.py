"""
Optimizer tests — search correctness, tie-break determinism, skipped ratios,
thread-pool evaluation and breakpoints.
"""
from __future__ import annotations

import pytest

from payout_planner.calculator import optimizer
from payout_planner.calculator.combination import combination_scenario
from payout_planner.calculator.optimizer import breakpoints, find_optimal_ratio
from payout_planner.calculator.schemas import ScenarioOptions
from payout_planner.errors import OptimizationError, UnknownZoneError
from payout_planner.rates import RateTable


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("zone", ["1", "5"])
@pytest.mark.parametrize("profit", [300_000, 1_000_000, 4_000_000])
def test_optimum_beats_every_baseline(profit: float, zone: str, rates: RateTable) -> None:
    result = find_optimal_ratio(profit, zone, rates=rates, max_workers=1)
    best = result.comparison.optimal.net_payout
    assert best >= result.comparison.all_salary.net_payout
    assert best >= result.comparison.all_dividend.net_payout
    assert best >= result.comparison.split_50_50.net_payout
    assert best == max(p.net_payout for p in result.search_results)
    assert result.savings.vs_all_salary >= 0
    assert result.savings.vs_all_dividend >= 0
    assert result.savings.vs_split_50_50 >= 0


def test_optimal_scenario_is_the_combination_at_the_optimal_ratio(rates: RateTable) -> None:
    result = find_optimal_ratio(1_000_000, "1", rates=rates, max_workers=1)
    direct = combination_scenario(1_000_000, "1", result.optimal_ratio, rates=rates)
    assert result.optimal_scenario.results == direct.results
    assert result.optimal_scenario.scenario_name.startswith("Optimised (")


def test_default_grid_has_101_points(rates: RateTable) -> None:
    result = find_optimal_ratio(1_000_000, "1", rates=rates, step=1, max_workers=1)
    ratios = [p.salary_ratio for p in result.search_results]
    assert ratios == [float(r) for r in range(101)]


def test_coarse_step(rates: RateTable) -> None:
    result = find_optimal_ratio(1_000_000, "1", rates=rates, step=10, max_workers=1)
    assert [p.salary_ratio for p in result.search_results] == [float(r) for r in range(0, 101, 10)]


@pytest.mark.parametrize("step", [0, -5, 150])
def test_invalid_step(step: float, rates: RateTable) -> None:
    with pytest.raises(ValueError):
        find_optimal_ratio(1_000_000, "1", rates=rates, step=step, max_workers=1)


def test_tie_keeps_lowest_ratio(rates: RateTable) -> None:
    # Zero profit: every ratio nets 0
    result = find_optimal_ratio(0, "1", rates=rates, max_workers=1)
    assert result.optimal_ratio == 0


def test_tie_break_survives_thread_pool(rates: RateTable) -> None:
    result = find_optimal_ratio(0, "1", rates=rates, max_workers=8)
    assert result.optimal_ratio == 0


@pytest.mark.parametrize("zone", ["1", "4a", "5"])
def test_thread_pool_matches_sequential(zone: str, rates: RateTable) -> None:
    options = ScenarioOptions(retention_percentage=10)
    sequential = find_optimal_ratio(1_500_000, zone, options, rates, max_workers=1)
    concurrent = find_optimal_ratio(1_500_000, zone, options, rates, max_workers=4)
    assert concurrent.optimal_ratio == sequential.optimal_ratio
    assert concurrent.search_results == sequential.search_results


def test_optimizer_is_deterministic(rates: RateTable) -> None:
    first = find_optimal_ratio(2_000_000, "2", rates=rates, max_workers=1)
    second = find_optimal_ratio(2_000_000, "2", rates=rates, max_workers=1)
    assert first.optimal_ratio == second.optimal_ratio


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------

def test_failing_ratios_are_skipped(monkeypatch: pytest.MonkeyPatch, rates: RateTable) -> None:
    def odd_ratios_fail(profit, zone, ratio, options=None, rates=None):
        if int(ratio) % 2:
            raise ArithmeticError("odd ratio")
        return combination_scenario(profit, zone, ratio, options, rates)

    monkeypatch.setattr(optimizer, "combination_scenario", odd_ratios_fail)
    result = find_optimal_ratio(1_000_000, "1", rates=rates, max_workers=1)
    assert len(result.search_results) == 51
    assert all(int(p.salary_ratio) % 2 == 0 for p in result.search_results)
    assert int(result.optimal_ratio) % 2 == 0


def test_all_ratios_failing_raises(monkeypatch: pytest.MonkeyPatch, rates: RateTable) -> None:
    def always_fail(*args, **kwargs):
        raise ValueError("broken")

    monkeypatch.setattr(optimizer, "combination_scenario", always_fail)
    with pytest.raises(OptimizationError):
        find_optimal_ratio(1_000_000, "1", rates=rates, max_workers=1)


def test_unknown_zone_propagates(rates: RateTable) -> None:
    with pytest.raises(UnknownZoneError):
        find_optimal_ratio(1_000_000, "6", rates=rates, max_workers=1)


def test_pension_outside_band_rejected_before_search(rates: RateTable) -> None:
    options = ScenarioOptions(include_pension=True, pension_rate=0.5)
    with pytest.raises(ValueError, match="Pension rate"):
        find_optimal_ratio(1_000_000, "1", options, rates, max_workers=1)


# ---------------------------------------------------------------------------
# Analysis text
# ---------------------------------------------------------------------------

def test_analysis_mentions_zone_specifics(rates: RateTable) -> None:
    zone_5 = find_optimal_ratio(1_000_000, "5", rates=rates, step=10, max_workers=1)
    zone_1 = find_optimal_ratio(1_000_000, "1", rates=rates, step=10, max_workers=1)
    assert any("zone 5" in f for f in zone_5.analysis.factors)
    assert any("High employer contribution" in f for f in zone_1.analysis.factors)
    assert zone_1.analysis.summary
    assert zone_1.analysis.recommendations


# ---------------------------------------------------------------------------
# Breakpoints
# ---------------------------------------------------------------------------

def test_breakpoints_zone_1(rates: RateTable) -> None:
    result = breakpoints("1", rates)
    assert result.aga_rate == 0.141
    assert [b.threshold for b in result.breakpoints] == [b.threshold for b in rates.brackets]

    first = result.breakpoints[0]
    # 22% + 7.8% + 1.7%
    assert first.marginal_tax_rate == pytest.approx(0.315)
    assert first.total_cost_with_aga == pytest.approx(0.315 + 0.141 * (1 - 0.315))
    assert result.dividend_effective_rate == pytest.approx(0.3784)
    assert result.combined_dividend_rate == pytest.approx(0.515152)


def test_breakpoints_zone_5_has_no_contribution_markup(rates: RateTable) -> None:
    for point in breakpoints("5", rates).breakpoints:
        assert point.total_cost_with_aga == pytest.approx(point.marginal_tax_rate)


def test_breakpoints_unknown_zone(rates: RateTable) -> None:
    with pytest.raises(UnknownZoneError):
        breakpoints("9", rates)
