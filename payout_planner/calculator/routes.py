"""
Calculator HTTP routes — GET  /api/config
                          POST /api/calculate
                          POST /api/calculate/salary
                          POST /api/calculate/dividend
                          POST /api/calculate/combination
                          POST /api/optimize
                          GET  /api/breakpoints/{zone}

Thin boundary: every route validates, calls exactly one calculator function
and returns its model_dump(). Client mistakes surface as InputValidationError /
ValueError (→ 422 via main.py handlers); anything else is a 500.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from payout_planner.calculator.combination import combination_scenario
from payout_planner.calculator.comparison import generate_all_scenarios
from payout_planner.calculator.dividend import dividend_scenario
from payout_planner.calculator.optimizer import breakpoints, find_optimal_ratio
from payout_planner.calculator.salary import salary_scenario
from payout_planner.calculator.schemas import (
    CombinationRequest,
    DividendRequest,
    OptimizeRequest,
    SalaryRequest,
    ScenarioError,
)
from payout_planner.errors import InputValidationError
from payout_planner.rates import RateTable, available_tax_years, resolve_rates
from payout_planner.validation.schemas import ValidationResult
from payout_planner.validation.validator import validate, validate_employer_zone, validate_profit

router = APIRouter(prefix="/api", tags=["calculator"])
logger = logging.getLogger(__name__)

# Applied to /api/calculate bodies that leave the strategy out
_DEFAULT_STRATEGY = {"type": "combination", "salary_ratio": 50}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _raise_for_validation(result: ValidationResult) -> None:
    """Turn a failed ValidationResult into InputValidationError with per-field details."""
    if result.is_valid:
        return
    details = [
        {"field": field, "issue": issue}
        for field, issues in result.field_errors.items()
        for issue in issues
    ]
    raise InputValidationError(details or [{"field": None, "issue": e} for e in result.errors])


def _require_profit(profit: float, rates: RateTable) -> float:
    """Same ceiling and finiteness rules as the full comparison run."""
    check = validate_profit(profit, rates)
    if not check.is_valid:
        raise InputValidationError([{"field": "profit", "issue": e} for e in check.errors])
    return check.value


def _require_zone(zone: str, rates: RateTable) -> str:
    check = validate_employer_zone(zone, rates)
    if not check.is_valid:
        raise InputValidationError([{"field": "employer_zone", "issue": e} for e in check.errors])
    return check.value


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/config")
async def get_config() -> JSONResponse:
    """Tax year, zone rates and descriptions, and the sources of the active rate table."""
    rates = resolve_rates()
    zones = {
        zone: {
            "rate": rates.employer_rate(zone),
            "description": rates.zone_descriptions.get(zone, ""),
        }
        for zone in rates.zones
    }
    return JSONResponse(status_code=200, content={
        "tax_year": rates.tax_year,
        "available_tax_years": available_tax_years(),
        "last_updated": rates.last_updated,
        "zones": zones,
        "sources": [dict(source) for source in rates.sources],
        "notes": list(rates.notes),
    })


@router.post("/calculate")
async def calculate_all(request_body: dict) -> JSONResponse:
    """
    Full comparison: 100% salary, 100% dividend, 50/50, optimised and
    (without requested retention) a 30% retention variant, ranked.
    """
    rates = resolve_rates()
    payload = dict(request_body)
    payload.setdefault("withdrawal_strategy", dict(_DEFAULT_STRATEGY))

    _raise_for_validation(validate(payload, rates))

    result = generate_all_scenarios(payload, rates)
    failed = [k for k, s in result.scenarios.items() if isinstance(s, ScenarioError)]
    logger.info(
        "Scenario comparison done: %d scenarios, %d failed, best=%s",
        len(result.scenarios), len(failed),
        result.comparison.best_scenario if result.comparison else None,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/calculate/salary")
async def calculate_salary(body: SalaryRequest) -> JSONResponse:
    rates = resolve_rates()
    profit = _require_profit(body.profit, rates)
    zone = _require_zone(body.employer_zone, rates)
    result = salary_scenario(profit, zone, body.options, rates)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/calculate/dividend")
async def calculate_dividend(body: DividendRequest) -> JSONResponse:
    rates = resolve_rates()
    result = dividend_scenario(_require_profit(body.profit, rates), body.options, rates)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/calculate/combination")
async def calculate_combination(body: CombinationRequest) -> JSONResponse:
    rates = resolve_rates()
    profit = _require_profit(body.profit, rates)
    zone = _require_zone(body.employer_zone, rates)
    result = combination_scenario(profit, zone, body.salary_ratio, body.options, rates)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/optimize")
async def optimize(body: OptimizeRequest) -> JSONResponse:
    rates = resolve_rates()
    profit = _require_profit(body.profit, rates)
    zone = _require_zone(body.employer_zone, rates)
    result = find_optimal_ratio(profit, zone, body.options, rates, step=body.step)
    logger.info("Optimal salary ratio for zone %s: %s%%", zone, result.optimal_ratio)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.get("/breakpoints/{zone}")
async def get_breakpoints(zone: str) -> JSONResponse:
    rates = resolve_rates()
    result = breakpoints(_require_zone(zone, rates), rates)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))
