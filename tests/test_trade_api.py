from __future__ import annotations

import asyncio

from starlette.testclient import TestClient

from tradesim.api.trade_api import create_app
from tradesim.core.auth.identity_store import IdentityStore
from tradesim.core.config.settings import Settings
from tradesim.core.session.controller import SessionController
from tradesim.core.session.timers import PolledTimer


class FixedRng:
    def uniform(self, a: float, b: float) -> float:
        return 0.01

    def random(self) -> float:
        return 0.48


class FakeAnalysisClient:
    def __init__(self, reply: str = "## Summary\nConcentrated in technology.", fail: bool = False) -> None:
        self.reply = reply
        self.fail = fail

    def invoke_text(self, prompt: str) -> str:
        if self.fail:
            raise RuntimeError("BEDROCK_UNAVAILABLE")
        return self.reply


def _client(analysis_client: FakeAnalysisClient | None = None) -> tuple[TestClient, SessionController]:
    controller = SessionController(
        Settings(),
        timer=PolledTimer(2.0),
        identity_store=IdentityStore({}),
        rng_factory=FixedRng,
    )
    app = create_app(
        controller_factory=lambda: controller,
        analysis_client_factory=lambda: analysis_client or FakeAnalysisClient(),
    )
    return TestClient(app), controller


def _login(client: TestClient) -> None:
    response = client.post("/api/session/login", json={"name": "Asha"})
    assert response.status_code == 200


def test_health() -> None:
    client, _ = _client()
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_routes_require_login() -> None:
    client, _ = _client()
    for path in ("/api/market", "/api/portfolio", "/api/market/TCS/history"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_LOGGED_IN"
    response = client.post("/api/trade", json={"ticker": "TCS", "shares": 1, "side": "BUY"})
    assert response.status_code == 401


def test_login_and_session_state() -> None:
    client, _ = _client()
    assert client.get("/api/session").json()["state"] == "LOGGED_OUT"

    response = client.post("/api/session/login", json={"name": "Asha"})
    body = response.json()
    assert body["identity"]["display_name"] == "Asha"
    assert body["identity"]["provider"] == "local"
    assert client.get("/api/session").json()["state"] == "LOGGED_IN"

    assert client.post("/api/session/login", json={"name": "  "}).status_code == 422


def test_google_login_rejects_bad_credential() -> None:
    client, controller = _client()
    response = client.post("/api/session/google", json={"credential": "garbage"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "IDENTITY_ASSERTION_FAILED"
    assert controller.identity is None


def test_market_listing_and_search() -> None:
    client, _ = _client()
    _login(client)
    data = client.get("/api/market").json()["data"]
    tickers = [row["ticker"] for row in data]
    assert "RELIANCE" in tickers
    reliance = next(row for row in data if row["ticker"] == "RELIANCE")
    assert reliance["price"] == 2950.5

    matches = client.get("/api/market/search", params={"q": "bank"}).json()["data"]
    assert matches
    assert all("bank" in (row["ticker"] + row["name"]).lower() for row in matches)


def test_price_history() -> None:
    client, _ = _client()
    _login(client)
    body = client.get("/api/market/infy/history").json()
    assert body["ticker"] == "INFY"
    assert len(body["data"]) == 181
    assert body["data"][-1]["price"] == 1610.25
    assert client.get("/api/market/NOPE/history").status_code == 404


def test_buy_then_portfolio() -> None:
    client, _ = _client()
    _login(client)
    response = client.post("/api/trade", json={"ticker": "TCS", "shares": 10, "side": "buy"})
    assert response.status_code == 200
    body = response.json()
    assert body["trade"]["accepted"] is True
    assert body["trade"]["side"] == "BUY"
    assert body["trade"]["price"] == 3850.75
    assert body["cash"] == 61492.5

    summary = client.get("/api/portfolio").json()["summary"]
    assert summary["holding_count"] == 1
    assert summary["rows"][0]["ticker"] == "TCS"
    assert summary["total_value"] == 100000.0


def test_declined_trades_return_conflict() -> None:
    client, controller = _client()
    _login(client)

    cases = [
        ({"ticker": "MARUTI", "shares": 1000, "side": "BUY"}, "INSUFFICIENT_CASH"),
        ({"ticker": "ITC", "shares": 1, "side": "SELL"}, "INSUFFICIENT_SHARES"),
        ({"ticker": "ITC", "shares": "abc", "side": "BUY"}, "INVALID_SHARES"),
        ({"ticker": "ITC", "shares": 0, "side": "BUY"}, "INVALID_SHARES"),
    ]
    for payload, code in cases:
        response = client.post("/api/trade", json=payload)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == code
    assert str(controller.ledger.cash) == "100000"


def test_trade_validation_errors() -> None:
    client, _ = _client()
    _login(client)
    assert client.post("/api/trade", json={"ticker": "TCS", "shares": 1, "side": "HOLD"}).status_code == 422
    assert client.post("/api/trade", json={"ticker": "bad ticker!", "shares": 1, "side": "BUY"}).status_code == 422
    assert client.post("/api/trade", json={"ticker": "ZZZ", "shares": 1, "side": "BUY"}).status_code == 404

    response = client.post("/api/trade", content=b"{nope", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_JSON"
    assert client.post("/api/trade", json=[1, 2]).status_code == 400


def test_analysis_flow() -> None:
    client, _ = _client()
    _login(client)
    empty = client.post("/api/analysis")
    assert empty.status_code == 422
    assert empty.json()["error"]["code"] == "EMPTY_PORTFOLIO"

    client.post("/api/trade", json={"ticker": "TCS", "shares": 2, "side": "BUY"})
    response = client.post("/api/analysis")
    assert response.status_code == 200
    assert response.json()["analysis"].startswith("## Summary")


def test_analysis_failure_maps_to_bad_gateway() -> None:
    client, _ = _client(FakeAnalysisClient(fail=True))
    _login(client)
    client.post("/api/trade", json={"ticker": "TCS", "shares": 2, "side": "BUY"})
    response = client.post("/api/analysis")
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "ANALYSIS_UNAVAILABLE"


def test_analysis_client_is_built_off_the_event_loop() -> None:
    calls: list[bool] = []

    def factory() -> FakeAnalysisClient:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            calls.append(True)
        else:
            calls.append(False)
        return FakeAnalysisClient()

    controller = SessionController(
        Settings(),
        timer=PolledTimer(2.0),
        identity_store=IdentityStore({}),
        rng_factory=FixedRng,
    )
    client = TestClient(create_app(controller_factory=lambda: controller, analysis_client_factory=factory))
    _login(client)

    assert client.post("/api/analysis").status_code == 422
    assert calls == []

    client.post("/api/trade", json={"ticker": "TCS", "shares": 2, "side": "BUY"})
    assert client.post("/api/analysis").status_code == 200
    assert calls == [True]


def test_logout_resets_state() -> None:
    client, _ = _client()
    _login(client)
    assert client.post("/api/session/logout").json()["state"] == "LOGGED_OUT"
    assert client.get("/api/portfolio").status_code == 401
