from __future__ import annotations


class TradeSimError(Exception):
    """Base class for caller-facing errors raised by the simulation core."""


class CatalogError(TradeSimError):
    pass


class UnknownTickerError(TradeSimError):
    def __init__(self, ticker: str):
        self.ticker = str(ticker)
        super().__init__(f"Unknown ticker: {self.ticker}")


class NotLoggedInError(TradeSimError):
    pass


class IdentityAssertionError(TradeSimError):
    pass
