from __future__ import annotations

import base64
import json
from datetime import datetime
from decimal import Decimal

import pytest

from tradesim.core.auth.identity_store import IdentityStore
from tradesim.core.config.settings import Settings
from tradesim.core.errors import IdentityAssertionError, NotLoggedInError, UnknownTickerError
from tradesim.core.session.controller import SessionController, SessionState
from tradesim.core.session.timers import PolledTimer


class FixedRng:
    def __init__(self, delta: float = 0.01) -> None:
        self.delta = delta

    def uniform(self, a: float, b: float) -> float:
        return self.delta

    def random(self) -> float:
        return 0.48


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _controller(**settings_overrides) -> tuple[SessionController, FakeClock, dict]:
    clock = FakeClock()
    backing: dict = {}
    settings = Settings(**settings_overrides)
    controller = SessionController(
        settings,
        timer=PolledTimer(settings.tick_interval_seconds, clock=clock),
        identity_store=IdentityStore(backing),
        rng_factory=FixedRng,
    )
    return controller, clock, backing


def _id_token(claims: dict) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode("utf-8")).decode("ascii").rstrip("=")
    return f"e30.{payload}.signature"


def test_starts_logged_out() -> None:
    controller, _, _ = _controller()
    assert controller.state is SessionState.LOGGED_OUT
    assert controller.identity is None
    assert not controller.timer.running
    with pytest.raises(NotLoggedInError):
        controller.ledger
    with pytest.raises(NotLoggedInError):
        controller.instruments()


def test_local_login_creates_fresh_session() -> None:
    controller, _, backing = _controller()
    identity = controller.login_local("Asha")
    assert identity.display_name == "Asha"
    assert identity.provider == "local"
    assert controller.state is SessionState.LOGGED_IN
    assert controller.ledger.cash == Decimal("100000")
    assert controller.ledger.holdings == ()
    assert controller.history_points() == ()
    assert controller.timer.running
    assert backing


def test_logout_clears_session_and_stops_timer() -> None:
    controller, _, backing = _controller()
    controller.login_local("Asha")
    controller.logout()
    assert controller.state is SessionState.LOGGED_OUT
    assert not controller.timer.running
    assert backing == {}
    with pytest.raises(NotLoggedInError):
        controller.summary()


def test_relogin_resets_ledger_market_and_history() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    controller.buy("TCS", 2)
    controller.step()
    assert controller.market.get("TCS").price != Decimal("3850.75")

    controller.logout()
    controller.login_local("Asha")
    assert controller.ledger.cash == Decimal("100000")
    assert controller.ledger.holdings == ()
    assert controller.history_points() == ()
    assert controller.market.get("TCS").price == Decimal("3850.75")


def test_login_while_logged_in_starts_new_epoch() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    first_epoch = controller.epoch
    controller.login_local("Ravi")
    assert controller.epoch > first_epoch
    assert controller.identity.display_name == "Ravi"


def test_timer_poll_ticks_and_samples_history() -> None:
    controller, clock, _ = _controller()
    controller.login_local("Asha")
    assert controller.timer.poll() is None

    clock.advance(2.0)
    point = controller.timer.poll()
    assert point is not None
    assert len(controller.history_points()) == 1
    assert controller.market.get("TCS").price == Decimal("3889.26")
    assert point.value == Decimal("100000")


def test_stale_timer_callback_is_ignored() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    stale_epoch = controller.epoch
    controller.logout()
    controller.login_local("Asha")

    assert controller.on_timer(stale_epoch) is None
    assert controller.history_points() == ()
    assert controller.market.get("TCS").price == Decimal("3850.75")
    assert controller.on_timer(controller.epoch) is not None


def test_timer_callback_after_logout_is_ignored() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    epoch = controller.epoch
    controller.logout()
    assert controller.on_timer(epoch) is None


def test_step_labels_sample_with_clock_time() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    controller.buy("ITC", 10)
    point = controller.step(datetime(2026, 1, 5, 9, 30, 15))
    assert point.label == "09:30:15"
    assert point.value == controller.summary().total_value


def test_history_is_bounded_by_settings() -> None:
    controller, _, _ = _controller(history_limit=3)
    controller.login_local("Asha")
    for second in range(5):
        controller.step(datetime(2026, 1, 5, 10, 0, second))
    labels = [point.label for point in controller.history_points()]
    assert labels == ["10:00:02", "10:00:03", "10:00:04"]


def test_trade_uses_current_price() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    result = controller.trade("tcs", 10, "buy")
    assert result.accepted
    assert result.price == Decimal("3850.75")
    assert controller.ledger.cash == Decimal("100000") - Decimal("38507.50")

    declined = controller.sell("TCS", 11)
    assert not declined.accepted


def test_trade_rejects_unknown_ticker_and_side() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    with pytest.raises(UnknownTickerError) as excinfo:
        controller.buy("NOPE", 1)
    assert excinfo.value.ticker == "NOPE"
    with pytest.raises(ValueError):
        controller.trade("TCS", 1, "HOLD")
    with pytest.raises(UnknownTickerError):
        controller.instrument_history("NOPE")


def test_instrument_history_ends_at_current_price() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    points = controller.instrument_history("INFY")
    assert len(points) == 181
    assert points[-1].price == 1610.25


def test_failed_id_token_leaves_session_logged_out() -> None:
    controller, _, _ = _controller()
    with pytest.raises(IdentityAssertionError):
        controller.login_with_id_token("not-a-token")
    assert controller.state is SessionState.LOGGED_OUT
    assert not controller.timer.running


def test_id_token_login_uses_google_identity() -> None:
    controller, _, _ = _controller()
    token = _id_token({"sub": "g-42", "name": "Meera", "email": "meera@example.com", "picture": "https://x/p.png"})
    identity = controller.login_with_id_token(token)
    assert identity.provider == "google"
    assert identity.id == "g-42"
    assert identity.avatar_url == "https://x/p.png"
    assert controller.state is SessionState.LOGGED_IN


def test_restore_logs_in_from_stored_identity() -> None:
    first, _, backing = _controller()
    first.login_local("Asha")

    second = SessionController(Settings(), timer=PolledTimer(2.0), identity_store=IdentityStore(backing))
    identity = second.restore()
    assert identity is not None
    assert identity.display_name == "Asha"
    assert second.state is SessionState.LOGGED_IN
    assert second.ledger.cash == Decimal("100000")


def test_restore_without_stored_identity_stays_logged_out() -> None:
    controller, _, _ = _controller()
    assert controller.restore() is None
    assert controller.state is SessionState.LOGGED_OUT


def test_analysis_snapshot_lists_holdings_with_industry() -> None:
    controller, _, _ = _controller()
    controller.login_local("Asha")
    assert controller.analysis_snapshot() == []
    controller.buy("HDFCBANK", 3)
    assert controller.analysis_snapshot() == [
        {"ticker": "HDFCBANK", "shares": 3, "averageCost": 1520.4, "industry": "Banking"}
    ]


def test_id_token_for_another_client_is_rejected() -> None:
    controller, _, _ = _controller(auth={"google_client_id": "tradesim.apps.example"})
    with pytest.raises(IdentityAssertionError):
        controller.login_with_id_token(_id_token({"sub": "g-42", "aud": "other.apps.example"}))
    assert controller.state is SessionState.LOGGED_OUT

    identity = controller.login_with_id_token(_id_token({"sub": "g-42", "aud": "tradesim.apps.example"}))
    assert identity.id == "g-42"
