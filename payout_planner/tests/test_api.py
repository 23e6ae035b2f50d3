"""
End-to-end API tests — HTTP request → validation → calculators → HTTP response.

No live server: httpx AsyncClient over ASGITransport. raise_app_exceptions is
off so the 500 path returns the error envelope instead of re-raising.
"""
from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payout_planner.calculator import routes
from payout_planner.calculator.schemas import ScenarioOptions
from payout_planner.errors import OptimizationError
from payout_planner.main import app
from payout_planner.tests.scenario_fixtures import DIVIDEND_1M, FULL_REQUEST, SALARY_1M_ZONE_1
from payout_planner.validation.schemas import ErrorResponse


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client():
    """Async httpx client using ASGI transport — no live server needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac


def _assert_error_envelope(body: dict, code: str) -> None:
    ErrorResponse.model_validate(body)
    assert set(body) == {"error"}
    assert body["error"]["code"] == code
    assert isinstance(body["error"]["message"], str)
    assert isinstance(body["error"]["details"], list)


# ---------------------------------------------------------------------------
# System + config
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_config(client: AsyncClient) -> None:
    response = await client.get("/api/config")
    assert response.status_code == 200
    body = response.json()
    assert body["tax_year"] == 2025
    assert set(body["zones"]) == {"1", "1a", "2", "3", "4", "4a", "5"}
    assert body["zones"]["5"]["rate"] == 0
    assert body["sources"]


# ---------------------------------------------------------------------------
# POST /api/calculate
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_calculate_full_comparison(client: AsyncClient) -> None:
    response = await client.post("/api/calculate", json=FULL_REQUEST)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert set(body["scenarios"]) == {
        "all_salary", "all_dividend", "split_50_50", "optimised", "with_retention",
    }
    assert body["comparison"]["rows"][0]["rank"] == 1
    assert body["recommendations"]["primary"]["scenario"]


@pytest.mark.asyncio
async def test_calculate_defaults_strategy(client: AsyncClient) -> None:
    request = {k: v for k, v in FULL_REQUEST.items() if k != "withdrawal_strategy"}
    response = await client.post("/api/calculate", json=request)
    assert response.status_code == 200, response.text
    assert response.json()["input"]["withdrawal_strategy"]["salary_ratio"] == 50


@pytest.mark.asyncio
async def test_calculate_validation_error_lists_every_field(client: AsyncClient) -> None:
    request = dict(FULL_REQUEST, profit=-1, employer_zone="6")
    response = await client.post("/api/calculate", json=request)
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    fields = {d["field"] for d in body["error"]["details"]}
    assert fields == {"profit", "employer_zone"}


# ---------------------------------------------------------------------------
# Single-calculator endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_calculate_salary(client: AsyncClient) -> None:
    data = SALARY_1M_ZONE_1
    response = await client.post(
        "/api/calculate/salary",
        json={"profit": data["profit"], "employer_zone": data["zone"]},
    )
    assert response.status_code == 200, response.text
    net = response.json()["results"]["net_private_payout"]
    assert abs(net - data["expected"]["net_private_payout"]) <= 5


@pytest.mark.asyncio
async def test_calculate_salary_unknown_zone_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/salary", json={"profit": 1_000_000, "employer_zone": "1A"})
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert body["error"]["details"][0]["field"] == "employer_zone"


@pytest.mark.asyncio
async def test_calculate_salary_pension_outside_band_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/salary", json={
        "profit": 1_000_000,
        "employer_zone": "1",
        "options": {"include_pension": True, "pension_rate": 0.09},
    })
    assert response.status_code == 422
    _assert_error_envelope(response.json(), "VALIDATION_ERROR")


@pytest.mark.asyncio
async def test_calculate_salary_profit_above_ceiling_is_422(client: AsyncClient) -> None:
    response = await client.post(
        "/api/calculate/salary", json={"profit": 5e11, "employer_zone": "1"},
    )
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert body["error"]["details"][0]["field"] == "profit"


@pytest.mark.asyncio
async def test_calculate_salary_infinite_profit_is_422(client: AsyncClient) -> None:
    response = await client.post(
        "/api/calculate/salary",
        content=b'{"profit": Infinity, "employer_zone": "1"}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert body["error"]["details"][0]["field"] == "profit"


@pytest.mark.asyncio
async def test_internal_model_error_is_500(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(*args, **kwargs):
        return ScenarioOptions(retention_percentage="lots")

    monkeypatch.setattr(routes, "salary_scenario", broken)
    response = await client.post(
        "/api/calculate/salary", json={"profit": 1_000_000, "employer_zone": "1"},
    )
    assert response.status_code == 500
    _assert_error_envelope(response.json(), "INTERNAL_ERROR")


@pytest.mark.asyncio
async def test_calculate_dividend(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/dividend", json={"profit": DIVIDEND_1M["profit"]})
    assert response.status_code == 200, response.text
    tax = response.json()["tax_summary"]["dividend_tax"]
    assert abs(tax - DIVIDEND_1M["expected"]["dividend_tax"]) <= 5


@pytest.mark.asyncio
async def test_calculate_dividend_negative_profit_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/dividend", json={"profit": -5})
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert body["error"]["details"][0]["field"] == "profit"


@pytest.mark.asyncio
async def test_calculate_combination(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/combination", json={
        "profit": 1_000_000, "employer_zone": "1", "salary_ratio": 40,
    })
    assert response.status_code == 200, response.text
    assert response.json()["scenario_type"] == "combination"


@pytest.mark.asyncio
async def test_calculate_combination_invalid_ratio_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/calculate/combination", json={
        "profit": 1_000_000, "employer_zone": "1", "salary_ratio": 150,
    })
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert "between 0 and 100" in body["error"]["message"]


@pytest.mark.asyncio
async def test_optimize(client: AsyncClient) -> None:
    response = await client.post("/api/optimize", json={
        "profit": 1_000_000, "employer_zone": "3", "step": 5,
    })
    assert response.status_code == 200, response.text
    body = response.json()
    assert 0 <= body["optimal_ratio"] <= 100
    assert len(body["search_results"]) == 21


@pytest.mark.asyncio
async def test_optimize_pension_outside_band_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/optimize", json={
        "profit": 1_000_000,
        "employer_zone": "1",
        "options": {"include_pension": True, "pension_rate": 0.5},
    })
    assert response.status_code == 422
    body = response.json()
    _assert_error_envelope(body, "VALIDATION_ERROR")
    assert "Pension rate" in body["error"]["message"]


@pytest.mark.asyncio
async def test_optimize_profit_above_ceiling_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/optimize", json={"profit": 5e11, "employer_zone": "1"})
    assert response.status_code == 422
    _assert_error_envelope(response.json(), "VALIDATION_ERROR")


@pytest.mark.asyncio
async def test_optimize_failure_is_500(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(*args, **kwargs):
        raise OptimizationError("No salary ratio could be evaluated")

    monkeypatch.setattr(routes, "find_optimal_ratio", broken)
    response = await client.post("/api/optimize", json={"profit": 1_000_000, "employer_zone": "1"})
    assert response.status_code == 500
    _assert_error_envelope(response.json(), "INTERNAL_ERROR")


@pytest.mark.asyncio
async def test_breakpoints(client: AsyncClient) -> None:
    response = await client.get("/api/breakpoints/4a")
    assert response.status_code == 200
    body = response.json()
    assert body["zone"] == "4a"
    assert body["aga_rate"] == 0.079
    assert len(body["breakpoints"]) == 5


@pytest.mark.asyncio
async def test_breakpoints_unknown_zone_is_422(client: AsyncClient) -> None:
    response = await client.get("/api/breakpoints/7")
    assert response.status_code == 422
    _assert_error_envelope(response.json(), "VALIDATION_ERROR")
