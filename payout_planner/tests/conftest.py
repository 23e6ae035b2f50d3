"""
Shared fixtures for the Payout Planner test suite.

Calculators get the rate table explicitly so the tests never depend on
environment-driven settings.
"""
import pytest

from payout_planner.rates import RateTable, get_rate_table


@pytest.fixture
def rates() -> RateTable:
    return get_rate_table(2025)
