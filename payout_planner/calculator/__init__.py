"""
calculator/__init__.py — the Python entry points, one per calculator operation.

Routes live in calculator/routes.py and are NOT imported here, so importing the
calculators never pulls in FastAPI.
"""
from payout_planner.calculator.combination import combination_scenario
from payout_planner.calculator.comparison import (
    detailed_report,
    generate_all_scenarios,
    generate_recommendations,
    rank_scenarios,
)
from payout_planner.calculator.dividend import dividend_scenario
from payout_planner.calculator.optimizer import breakpoints, find_optimal_ratio
from payout_planner.calculator.salary import salary_scenario
from payout_planner.validation.validator import validate

__all__ = [
    "validate",
    "salary_scenario",
    "dividend_scenario",
    "combination_scenario",
    "find_optimal_ratio",
    "breakpoints",
    "rank_scenarios",
    "generate_recommendations",
    "generate_all_scenarios",
    "detailed_report",
]
