from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from tradesim.core.analysis.portfolio_analysis import build_analysis_rows
from tradesim.core.auth.identity import Identity, identity_from_claims, identity_from_id_token, local_identity
from tradesim.core.auth.identity_store import IdentityStore
from tradesim.core.config.settings import Settings
from tradesim.core.errors import IdentityAssertionError, NotLoggedInError, UnknownTickerError
from tradesim.core.history.recorder import HistoryPoint, HistoryRecorder
from tradesim.core.ledger.ledger import Ledger
from tradesim.core.ledger.schema import TradeResult, TradeSide
from tradesim.core.ledger.valuation import PortfolioSummary, recompute_value, summarize
from tradesim.core.market.catalog import build_catalog
from tradesim.core.market.market_model import MarketModel, RandomSource
from tradesim.core.market.schema import Instrument, PricePoint
from tradesim.core.orchestration.time_utils import clock_label, now_local
from tradesim.core.session.timers import PeriodicTimer, PolledTimer

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOGGED_OUT = "LOGGED_OUT"
    LOGGED_IN = "LOGGED_IN"


@dataclass
class ActiveSession:
    identity: Identity
    market: MarketModel
    ledger: Ledger
    history: HistoryRecorder
    epoch: int


class SessionController:
    """Owns one login's market, ledger and history, and the timer that advances them.

    Each login gets a new epoch; timer callbacks carry the epoch they were scheduled
    under and are ignored once that session has ended.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        timer: PeriodicTimer | None = None,
        identity_store: IdentityStore | None = None,
        rng_factory: Callable[[], RandomSource] | None = None,
        catalog_factory: Callable[[], tuple[Instrument, ...]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or Settings()
        self.timer: PeriodicTimer = timer or PolledTimer(self.settings.tick_interval_seconds)
        self.identity_store = identity_store or IdentityStore()
        self._rng_factory = rng_factory or random.Random
        self._catalog_factory = catalog_factory or build_catalog
        self._clock = clock or now_local
        self._epoch = 0
        self._session: ActiveSession | None = None

    @property
    def state(self) -> SessionState:
        return SessionState.LOGGED_IN if self._session is not None else SessionState.LOGGED_OUT

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def identity(self) -> Identity | None:
        return self._session.identity if self._session is not None else None

    @property
    def market(self) -> MarketModel:
        return self._require_session().market

    @property
    def ledger(self) -> Ledger:
        return self._require_session().ledger

    @property
    def history(self) -> HistoryRecorder:
        return self._require_session().history

    def login_local(self, name: str | None) -> Identity:
        return self.login(local_identity(name))

    def login_with_id_token(self, credential: str) -> Identity:
        try:
            identity = identity_from_id_token(credential, audience=self.settings.auth.google_client_id.strip() or None)
        except IdentityAssertionError:
            logger.warning("Identity assertion rejected; staying logged out")
            raise
        return self.login(identity)

    def login_with_claims(self, claims: Mapping[str, Any]) -> Identity:
        try:
            identity = identity_from_claims(claims)
        except IdentityAssertionError:
            logger.warning("Identity claims rejected; staying logged out")
            raise
        return self.login(identity)

    def login(self, identity: Identity) -> Identity:
        if self._session is not None:
            self.logout()

        self._epoch += 1
        epoch = self._epoch
        self._session = ActiveSession(
            identity=identity,
            market=MarketModel(self._catalog_factory(), rng=self._rng_factory()),
            ledger=Ledger(self.settings.initial_cash),
            history=HistoryRecorder(self.settings.history_limit),
            epoch=epoch,
        )
        self.identity_store.save(identity)
        self.timer.start(lambda: self.on_timer(epoch))
        logger.info("Login %s (%s), epoch=%d", identity.display_name, identity.provider, epoch)
        return identity

    def restore(self) -> Identity | None:
        if self._session is not None:
            return self._session.identity
        identity = self.identity_store.load()
        if identity is None:
            return None
        return self.login(identity)

    def logout(self) -> None:
        self.timer.stop()
        session = self._session
        self._session = None
        self._epoch += 1
        self.identity_store.clear()
        if session is not None:
            logger.info("Logout %s", session.identity.display_name)

    def on_timer(self, epoch: int) -> HistoryPoint | None:
        session = self._session
        if session is None or session.epoch != epoch:
            logger.debug("Ignoring stale timer callback for epoch %d", epoch)
            return None
        return self.step()

    def step(self, now: datetime | None = None) -> HistoryPoint:
        session = self._require_session()
        session.market.tick()
        value = recompute_value(session.ledger, session.market.price_map())
        return session.history.sample(clock_label(now or self._clock()), value)

    def trade(self, ticker: str, shares: Any, side: TradeSide | str) -> TradeResult:
        session = self._require_session()
        trade_side = TradeSide(str(getattr(side, "value", side)).strip().upper())
        instrument = session.market.get(ticker)
        if instrument is None:
            raise UnknownTickerError(ticker)
        if trade_side is TradeSide.BUY:
            return session.ledger.buy(instrument.ticker, shares, instrument.price)
        return session.ledger.sell(instrument.ticker, shares, instrument.price)

    def buy(self, ticker: str, shares: Any) -> TradeResult:
        return self.trade(ticker, shares, TradeSide.BUY)

    def sell(self, ticker: str, shares: Any) -> TradeResult:
        return self.trade(ticker, shares, TradeSide.SELL)

    def instruments(self) -> tuple[Instrument, ...]:
        return self._require_session().market.list_instruments()

    def instrument_history(self, ticker: str) -> list[PricePoint]:
        session = self._require_session()
        instrument = session.market.get(ticker)
        if instrument is None:
            raise UnknownTickerError(ticker)
        return session.market.get_history(instrument.price, days=self.settings.history_days)

    def summary(self) -> PortfolioSummary:
        session = self._require_session()
        return summarize(session.ledger, session.market.list_instruments())

    def history_points(self) -> tuple[HistoryPoint, ...]:
        return self._require_session().history.points()

    def analysis_snapshot(self) -> list[dict[str, Any]]:
        session = self._require_session()
        return build_analysis_rows(session.ledger.holdings, session.market.list_instruments())

    def _require_session(self) -> ActiveSession:
        if self._session is None:
            raise NotLoggedInError("No active session; log in first.")
        return self._session
