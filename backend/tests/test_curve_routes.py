"""
Tests for launchpad/routes/curves.py, global_config.py and portfolio.py.

Strategy
--------
* Use a real TestClient backed by SQLite, same as conftest.py.
* The trade clock is pinned through the ``clock`` fixture so creator
  allowances are deterministic.
* Most curve tests switch the launchpad to a small, hand-checkable shape via
  PUT /global/params right after initialization.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit

# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

_PASSWORD = "SecurePass123!"

SMALL_PARAMS = {
    "initial_virtual_token_reserves": 2_000_000,
    "initial_virtual_sol_reserves": 1_000_000,
    "initial_real_token_reserves": 1_000_000,
    "initial_token_supply": 1_200_000,
    "fee_basis_points": 100,
}


def _make_headers(client: TestClient, address: str) -> dict:
    """Register + login and return Bearer auth headers."""
    client.post("/auth/register", json={"address": address, "password": _PASSWORD})
    resp = client.post("/auth/login", json={"address": address, "password": _PASSWORD})
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def _create_curve(client: TestClient, headers: dict, symbol: str = "TEST") -> dict:
    resp = client.post(
        "/curves", headers=headers, json={"name": f"{symbol} coin", "symbol": symbol}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def authority(client):
    headers = _make_headers(client, "authority")
    resp = client.post("/global/initialize", headers=headers)
    assert resp.status_code == 200, resp.text
    return headers


@pytest.fixture
def small_launchpad(client, authority):
    resp = client.put("/global/params", headers=authority, json=SMALL_PARAMS)
    assert resp.status_code == 200, resp.text
    return authority


@pytest.fixture
def creator(client):
    return _make_headers(client, "creator")


@pytest.fixture
def trader(client):
    return _make_headers(client, "trader")


# ──────────────────────────────────────────────────────────────────────────────
# /global
# ──────────────────────────────────────────────────────────────────────────────


def test_global_before_initialize(client):
    body = client.get("/global").json()
    assert body["initialized"] is False
    assert body["authority"] is None


def test_initialize_sets_authority(client, authority):
    body = client.get("/global").json()
    assert body["initialized"] is True
    assert body["authority"] == "authority"
    assert body["fee_recipient"] == "authority"
    assert body["fee_basis_points"] == 50


def test_initialize_twice_returns_409(client, authority, creator):
    resp = client.post("/global/initialize", headers=creator)
    assert resp.status_code == 409
    assert resp.json()["code"] == "AlreadyInitialized"


def test_set_params_by_non_authority_returns_403(client, authority, creator):
    resp = client.put("/global/params", headers=creator, json=SMALL_PARAMS)
    assert resp.status_code == 403
    assert resp.json()["code"] == "InvalidAuthority"


def test_set_params_with_unknown_fee_recipient_returns_404(client, authority):
    resp = client.put(
        "/global/params",
        headers=authority,
        json=dict(SMALL_PARAMS, fee_recipient="nobody"),
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "AccountNotFound"


def test_set_params_rejects_negative_amounts(client, authority):
    resp = client.put(
        "/global/params",
        headers=authority,
        json=dict(SMALL_PARAMS, initial_token_supply=-1),
    )
    assert resp.status_code == 422


# ──────────────────────────────────────────────────────────────────────────────
# /curves
# ──────────────────────────────────────────────────────────────────────────────


def test_create_curve_before_initialize_returns_409(client, creator):
    resp = client.post("/curves", headers=creator, json={"name": "x", "symbol": "X"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "NotInitialized"


def test_create_curve_with_default_params(client, authority, creator):
    body = _create_curve(client, creator)

    assert body["creator"] == "creator"
    assert body["virtual_sol_reserves"] == 30_000_000_000
    assert body["virtual_token_reserves"] == 1_073_000_000_000_000
    assert body["real_token_reserves"] == 793_100_000_000_000
    assert body["token_total_supply"] == 1_000_000_000_000_000
    assert body["complete"] is False
    assert body["team"] == "blue"
    assert body["price"] == 27


def test_get_unknown_curve_returns_404(client):
    resp = client.get(f"/curves/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "CurveNotFound"


def test_list_curves_filters_by_completion(client, small_launchpad, creator, trader):
    first = _create_curve(client, creator, "ONE")
    _create_curve(client, creator, "TWO")
    client.post(
        f"/curves/{first['id']}/buy",
        headers=trader,
        json={"token_amount": 1_000_000, "max_sol_cost": 1_010_000},
    )

    assert len(client.get("/curves").json()) == 2
    completed = client.get("/curves", params={"complete": True}).json()
    assert [c["symbol"] for c in completed] == ["ONE"]


# ──────────────────────────────────────────────────────────────────────────────
# Quotes
# ──────────────────────────────────────────────────────────────────────────────


def test_quote_buy_reference_value(client, authority, creator):
    curve = _create_curve(client, creator)
    resp = client.get(
        f"/curves/{curve['id']}/quote/buy", params={"amount": 1_000_000_000}
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "token_amount": 1_000_000_000,
        "sol_amount": 27_960,
        "fee": 139,
        "total": 28_099,
    }


def test_quote_zero_is_min_buy(client, authority, creator):
    curve = _create_curve(client, creator)
    resp = client.get(f"/curves/{curve['id']}/quote/buy", params={"amount": 0})
    assert resp.status_code == 400
    assert resp.json()["code"] == "MinBuy"


def test_quote_sell_on_fresh_curve_is_insufficient_liquidity(client, authority, creator):
    curve = _create_curve(client, creator)
    resp = client.get(f"/curves/{curve['id']}/quote/sell", params={"amount": 1_000})
    assert resp.status_code == 422
    assert resp.json()["code"] == "InsufficientLiquidity"


# ──────────────────────────────────────────────────────────────────────────────
# Trades
# ──────────────────────────────────────────────────────────────────────────────


def test_buy_without_auth_returns_401(client, small_launchpad, creator):
    curve = _create_curve(client, creator)
    resp = client.post(
        f"/curves/{curve['id']}/buy", json={"token_amount": 1, "max_sol_cost": 1}
    )
    assert resp.status_code == 401


def test_buy_returns_receipt_event_and_curve(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    resp = client.post(
        f"/curves/{curve['id']}/buy",
        headers=trader,
        json={"token_amount": 100_000, "max_sol_cost": 60_000},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["sol_amount"] == 52_632
    assert body["fee"] == 526
    assert body["event"]["user"] == "trader"
    assert body["event"]["is_buy"] is True
    assert body["event"]["timestamp"] == 1_700_000_000
    assert body["complete_event"] is None
    assert body["curve"]["real_token_reserves"] == 900_000

    me = client.get("/auth/me", headers=trader).json()
    assert me["sol_balance"] == 100_000_000_000 - 53_158


def test_buy_over_max_cost_returns_400(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    resp = client.post(
        f"/curves/{curve['id']}/buy",
        headers=trader,
        json={"token_amount": 100_000, "max_sol_cost": 53_157},
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "MaxCostExceeded"

    state = client.get(f"/curves/{curve['id']}").json()
    assert state["real_token_reserves"] == 1_000_000


def test_buy_amount_above_u64_is_rejected(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    resp = client.post(
        f"/curves/{curve['id']}/buy",
        headers=trader,
        json={"token_amount": 2**64, "max_sol_cost": 1},
    )
    assert resp.status_code == 422


def test_creator_buy_is_rate_limited(client, small_launchpad, creator, clock):
    curve = _create_curve(client, creator)
    url = f"/curves/{curve['id']}/buy"
    order = {"token_amount": 6_000, "max_sol_cost": 10_000_000}

    assert client.post(url, headers=creator, json=order).status_code == 200

    resp = client.post(url, headers=creator, json=order)
    assert resp.status_code == 429
    assert resp.json()["code"] == "RateLimited"
    assert resp.json()["details"]["max_allowed"] == 0

    clock.advance(3600)
    assert client.post(url, headers=creator, json=order).status_code == 200


def test_sell_round_trip(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    client.post(
        f"/curves/{curve['id']}/buy",
        headers=trader,
        json={"token_amount": 100_000, "max_sol_cost": 60_000},
    )
    resp = client.post(
        f"/curves/{curve['id']}/sell",
        headers=trader,
        json={"token_amount": 100_000, "min_sol_output": 52_106},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["sol_amount"] == 52_632
    assert body["event"]["is_buy"] is False
    assert body["curve"]["virtual_sol_reserves"] == 1_000_000
    assert body["curve"]["virtual_token_reserves"] == 2_000_000


def test_sell_with_wrong_fee_recipient_returns_400(
    client, small_launchpad, creator, trader
):
    curve = _create_curve(client, creator)
    resp = client.post(
        f"/curves/{curve['id']}/sell",
        headers=trader,
        json={"token_amount": 1, "min_sol_output": 0, "fee_recipient": "trader"},
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidFeeRecipient"


def test_trade_history_lists_trades_in_order(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    url = f"/curves/{curve['id']}"
    client.post(
        f"{url}/buy", headers=trader, json={"token_amount": 10_000, "max_sol_cost": 10**6}
    )
    client.post(
        f"{url}/sell", headers=trader, json={"token_amount": 5_000, "min_sol_output": 0}
    )

    history = client.get(f"{url}/trades").json()
    assert history["curve_id"] == curve["id"]
    assert [t["is_buy"] for t in history["trades"]] == [True, False]
    assert [t["token_amount"] for t in history["trades"]] == [10_000, 5_000]
    assert history["trades"][0]["user"] == "trader"


# ──────────────────────────────────────────────────────────────────────────────
# Withdraw
# ──────────────────────────────────────────────────────────────────────────────


def test_withdraw_requires_complete_curve(client, small_launchpad, creator):
    curve = _create_curve(client, creator)
    resp = client.post(f"/curves/{curve['id']}/withdraw", headers=small_launchpad)
    assert resp.status_code == 409
    assert resp.json()["code"] == "CurveNotComplete"


def test_withdraw_by_non_authority_returns_403(client, small_launchpad, creator):
    curve = _create_curve(client, creator)
    resp = client.post(f"/curves/{curve['id']}/withdraw", headers=creator)
    assert resp.status_code == 403
    assert resp.json()["code"] == "InvalidWithdrawAuthority"


# ──────────────────────────────────────────────────────────────────────────────
# /portfolio
# ──────────────────────────────────────────────────────────────────────────────


def test_portfolio_counts_holdings_and_trades(client, small_launchpad, creator, trader):
    curve = _create_curve(client, creator)
    client.post(
        f"/curves/{curve['id']}/buy",
        headers=trader,
        json={"token_amount": 100_000, "max_sol_cost": 60_000},
    )
    client.post(
        f"/curves/{curve['id']}/sell",
        headers=trader,
        json={"token_amount": 40_000, "min_sol_output": 0},
    )

    body = client.get("/portfolio", headers=trader).json()
    assert body["address"] == "trader"
    assert body["holdings"] == [
        {"curve_id": curve["id"], "symbol": "TEST", "amount": 60_000, "complete": False}
    ]
    assert body["buys"] == 1
    assert body["sells"] == 1
    assert body["total_trades"] == 2
    assert body["curves_created"] == 0

    assert client.get("/portfolio", headers=creator).json()["curves_created"] == 1
