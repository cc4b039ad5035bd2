from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from tradesim.core.ledger.schema import DECLINE_MESSAGES, DeclineReason, Holding, TradeResult, TradeSide

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CASH = Decimal("100000")


class Ledger:
    """Cash balance plus at most one holding per ticker.

    Buys and sells either apply completely or are declined with the state untouched.
    No rounding is applied here; amounts are rounded only when displayed.
    """

    def __init__(self, initial_cash: Decimal | int | str = DEFAULT_INITIAL_CASH):
        self.initial_cash = to_decimal(initial_cash)
        if self.initial_cash < 0:
            raise ValueError("initial_cash must be >= 0")
        self.cash = self.initial_cash
        self._holdings: dict[str, Holding] = {}

    @property
    def holdings(self) -> tuple[Holding, ...]:
        return tuple(self._holdings.values())

    def holding(self, ticker: str) -> Holding | None:
        return self._holdings.get(_normalize_ticker(ticker))

    def buy(self, ticker: str, shares: Any, current_price: Decimal | int | str) -> TradeResult:
        symbol = _normalize_ticker(ticker)
        price = _positive_price(current_price)
        if not _is_positive_int(shares):
            return _declined(TradeSide.BUY, symbol, shares, price, DeclineReason.INVALID_SHARES)

        cost = price * shares
        if cost > self.cash:
            return _declined(TradeSide.BUY, symbol, shares, price, DeclineReason.INSUFFICIENT_CASH)

        existing = self._holdings.get(symbol)
        if existing is None:
            updated = Holding(ticker=symbol, shares=shares, average_cost=price)
        else:
            total_shares = existing.shares + shares
            total_cost = existing.average_cost * existing.shares + cost
            updated = Holding(ticker=symbol, shares=total_shares, average_cost=total_cost / total_shares)

        self.cash -= cost
        self._holdings[symbol] = updated
        logger.info("BUY %s x%d @ %s; cash=%s", symbol, shares, price, self.cash)
        return TradeResult(accepted=True, side=TradeSide.BUY, ticker=symbol, shares=shares, price=price)

    def sell(self, ticker: str, shares: Any, current_price: Decimal | int | str) -> TradeResult:
        symbol = _normalize_ticker(ticker)
        price = _positive_price(current_price)
        if not _is_positive_int(shares):
            return _declined(TradeSide.SELL, symbol, shares, price, DeclineReason.INVALID_SHARES)

        existing = self._holdings.get(symbol)
        if existing is None or existing.shares < shares:
            return _declined(TradeSide.SELL, symbol, shares, price, DeclineReason.INSUFFICIENT_SHARES)

        self.cash += price * shares
        if existing.shares == shares:
            # Closing the position drops its cost basis; a later buy starts fresh.
            del self._holdings[symbol]
        else:
            self._holdings[symbol] = existing.model_copy(update={"shares": existing.shares - shares})
        logger.info("SELL %s x%d @ %s; cash=%s", symbol, shares, price, self.cash)
        return TradeResult(accepted=True, side=TradeSide.SELL, ticker=symbol, shares=shares, price=price)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _positive_price(value: Decimal | int | str) -> Decimal:
    price = to_decimal(value)
    if not price.is_finite() or price <= 0:
        raise ValueError(f"current_price must be positive, got {value!r}")
    return price


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _normalize_ticker(ticker: str) -> str:
    return str(ticker or "").strip().upper()


def _declined(side: TradeSide, ticker: str, shares: Any, price: Decimal, reason: DeclineReason) -> TradeResult:
    shares_value = shares if _is_positive_int(shares) else 0
    logger.info("Declined %s %s x%r: %s", side.value, ticker, shares, reason.value)
    return TradeResult(
        accepted=False,
        side=side,
        ticker=ticker,
        shares=shares_value,
        price=price,
        reason=reason,
        message=DECLINE_MESSAGES[reason],
    )
