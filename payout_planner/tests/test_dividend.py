"""
Dividend calculator tests — tax year 2025.
Tolerance: ±5 kr on monetary assertions.
"""
from __future__ import annotations

import pytest

from payout_planner.calculator.dividend import (
    combined_dividend_tax,
    corporate_tax,
    dividend_scenario,
    dividend_tax,
    shareholder_allowance,
)
from payout_planner.calculator.schemas import ScenarioOptions
from payout_planner.rates import RateTable
from payout_planner.tests.scenario_fixtures import DIVIDEND_1M


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def test_corporate_tax(rates: RateTable) -> None:
    result = corporate_tax(1_000_000, rates)
    assert result.corporate_tax == 220_000
    assert result.profit_after_tax == 780_000


@pytest.mark.parametrize("cost_basis,expected", [(None, 0), (0, 0), (-10, 0), (100_000, 5_000)])
def test_shareholder_allowance(cost_basis, expected: float, rates: RateTable) -> None:
    assert shareholder_allowance(cost_basis, rates=rates).allowance == expected


def test_shareholder_allowance_explicit_rate() -> None:
    assert shareholder_allowance(200_000, 0.03).allowance == 6_000


def test_dividend_tax_without_allowance(rates: RateTable) -> None:
    result = dividend_tax(100_000, rates=rates)
    assert result.dividend_tax == pytest.approx(37_840, abs=1)
    assert result.effective_rate == pytest.approx(0.3784)
    assert result.theoretical_max_rate == pytest.approx(0.3784)


def test_dividend_tax_allowance_lowers_effective_rate_only(rates: RateTable) -> None:
    result = dividend_tax(100_000, allowance=20_000, rates=rates)
    # 80,000 × 1.72 × 22%
    assert result.dividend_tax == pytest.approx(30_272, abs=1)
    assert result.effective_rate == pytest.approx(0.30272)
    assert result.theoretical_max_rate == pytest.approx(0.3784)


def test_dividend_tax_allowance_never_makes_tax_negative(rates: RateTable) -> None:
    result = dividend_tax(10_000, allowance=50_000, rates=rates)
    assert result.taxable_dividend == 0
    assert result.dividend_tax == 0


def test_dividend_tax_zero_amount(rates: RateTable) -> None:
    result = dividend_tax(0, rates=rates)
    assert result.dividend_tax == 0
    assert result.effective_rate == 0


def test_combined_dividend_tax(rates: RateTable) -> None:
    result = combined_dividend_tax(1_000_000, rates=rates)
    assert result.total_tax == pytest.approx(515_152, abs=1)
    assert result.combined_effective_rate == pytest.approx(rates.combined_dividend_rate)


# ---------------------------------------------------------------------------
# Dividend scenario
# ---------------------------------------------------------------------------

def test_dividend_scenario_worked_example(rates: RateTable) -> None:
    expected = DIVIDEND_1M["expected"]
    result = dividend_scenario(DIVIDEND_1M["profit"], rates=rates)

    assert result.scenario_type == "dividend"
    assert result.tax_summary.corporate_tax == pytest.approx(expected["corporate_tax"], abs=5)
    assert result.tax_summary.dividend_tax == pytest.approx(expected["dividend_tax"], abs=5)
    assert result.results.net_private_payout == pytest.approx(expected["net_private_payout"], abs=5)
    assert result.results.total_tax_paid == pytest.approx(expected["total_tax"], abs=5)
    assert result.results.effective_tax_rate == pytest.approx(expected["effective_tax_rate"], abs=1e-3)


def test_dividend_scenario_allowance_saves_its_tax_effect(rates: RateTable) -> None:
    without = dividend_scenario(1_000_000, rates=rates)
    with_basis = dividend_scenario(1_000_000, ScenarioOptions(share_cost_basis=1_000_000), rates)
    # 50,000 allowance × 1.72 × 22%
    saved = with_basis.results.net_private_payout - without.results.net_private_payout
    assert saved == pytest.approx(18_920, abs=2)
    assert with_basis.personal.shareholder_allowance == 50_000


def test_dividend_scenario_allowance_capped_at_distributable(rates: RateTable) -> None:
    result = dividend_scenario(1_000_000, ScenarioOptions(share_cost_basis=1_000_000_000), rates)
    assert result.personal.shareholder_allowance == 780_000
    assert result.personal.dividend_tax == 0
    assert result.results.net_private_payout == 780_000


def test_dividend_scenario_retention_taxes_the_whole_profit(rates: RateTable) -> None:
    result = dividend_scenario(1_000_000, ScenarioOptions(retention_percentage=25), rates)
    assert result.company.corporate_tax == 220_000
    assert result.company.corporate_tax_on_retained == 55_000
    assert result.results.retained_in_company == 195_000
    assert result.company.dividend_distributed == 585_000


@pytest.mark.parametrize("profit", [0, 10_000, 1_000_000, 25_000_000])
@pytest.mark.parametrize("retention", [0, 40])
def test_dividend_scenario_reconciles(profit: float, retention: float, rates: RateTable) -> None:
    options = ScenarioOptions(retention_percentage=retention, share_cost_basis=200_000)
    result = dividend_scenario(profit, options, rates).results
    total = result.net_private_payout + result.total_tax_paid + result.retained_in_company
    assert total == pytest.approx(profit, abs=3)
    assert 0 <= result.effective_tax_rate < 1


def test_dividend_scenario_zero_profit(rates: RateTable) -> None:
    result = dividend_scenario(0, rates=rates).results
    assert result.net_private_payout == 0
    assert result.effective_tax_rate == 0
