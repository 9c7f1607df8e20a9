from __future__ import annotations

import pytest


def _account(client) -> int:
    return client.post("/api/baseline", json={"accountType": "Brokerage", "accountValue": 100}).json()["accountId"]


def _trade(client, account_id, **overrides):
    payload = {
        "accountId": account_id,
        "symbol": "QQQ",
        "transactionType": "BUY",
        "transactionDate": "2026-10-01",
        "shares": 10,
        "price": 400,
        "fees": 5,
    }
    payload.update(overrides)
    return client.post("/api/transactions", json=payload)


def test_buy_and_sell_update_the_holding(test_ctx) -> None:
    client = test_ctx["client"]
    account_id = _account(client)

    buy = _trade(client, account_id)
    assert buy.status_code == 200
    assert buy.json()["success"] is True
    assert buy.json()["transactionId"] > 0

    _trade(client, str(account_id), shares="10", price="500", fees=None)
    holding = client.get("/api/holdings/QQQ").json()["holding"]
    assert holding["totalShares"] == 20
    assert holding["totalCostBasis"] == pytest.approx(9005.0)
    assert holding["avgCostPerShare"] == pytest.approx(450.25)

    sell = _trade(client, account_id, transactionType="sell", shares=5, price=600, fees=1)
    assert sell.status_code == 200
    holding = client.get("/api/holdings/QQQ").json()["holding"]
    assert holding["totalShares"] == 15
    assert holding["totalCostBasis"] == pytest.approx(450.25 * 15)


def test_sell_more_than_held_is_rejected(test_ctx) -> None:
    client = test_ctx["client"]
    account_id = _account(client)
    _trade(client, account_id, shares=2)

    resp = _trade(client, account_id, transactionType="SELL", shares=3)

    assert resp.status_code == 400
    assert "only 2 held" in resp.json()["message"]
    rows = client.get("/api/transactions", params={"transactionType": "SELL"}).json()["transactions"]
    assert rows == []


def test_sell_without_position_is_rejected(test_ctx) -> None:
    client = test_ctx["client"]
    account_id = _account(client)

    resp = _trade(client, account_id, symbol="VTI", transactionType="SELL", shares=1)

    assert resp.status_code == 400


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"accountId": None}, "accountId, transactionType, and transactionDate are required."),
        ({"transactionDate": ""}, "accountId, transactionType, and transactionDate are required."),
        ({"symbol": None}, "symbol, shares, and price are required for non-baseline transactions."),
        ({"shares": -1}, "shares must be a positive number."),
        ({"price": 0}, "price must be a positive number."),
        ({"transactionType": "SWAP"}, "transactionType must be one of"),
        ({"transactionDate": "10/01/2026"}, "transactionDate must be a date"),
        ({"accountId": 9999}, "accountId does not match a known account."),
    ],
)
def test_transaction_validation(test_ctx, overrides, message) -> None:
    client = test_ctx["client"]
    account_id = _account(client)

    resp = _trade(client, account_id, **overrides)

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert message in resp.json()["message"]


def test_baseline_type_needs_no_symbol(test_ctx) -> None:
    client = test_ctx["client"]
    account_id = _account(client)

    resp = _trade(client, account_id, transactionType="BASELINE", symbol=None, shares=None, price=None)

    assert resp.status_code == 200


def test_ledger_listing_totals_and_filters(test_ctx) -> None:
    client = test_ctx["client"]
    account_id = _account(client)
    other_account = _account(client)
    _trade(client, account_id, shares=10, price=400, fees=5)
    _trade(client, account_id, transactionType="SELL", shares=4, price=500, fees=2, transactionDate="2026-10-05")
    _trade(client, other_account, symbol="VTI", shares=1, price=250, fees=0)

    rows = client.get("/api/transactions", params={"accountId": account_id}).json()["transactions"]
    by_type = {row["transactionType"]: row for row in rows}

    assert by_type["BUY"]["total"] == pytest.approx(4005.0)
    assert by_type["SELL"]["total"] == pytest.approx(1998.0)
    assert by_type["BASELINE"]["total"] is None
    assert rows[0]["transactionDate"] >= rows[-1]["transactionDate"]
    assert all(row["accountId"] == account_id for row in rows)

    buys = client.get("/api/transactions", params={"transactionType": "buy"}).json()["transactions"]
    assert {row["symbol"] for row in buys} == {"QQQ", "VTI"}
