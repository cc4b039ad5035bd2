from __future__ import annotations

from tradesim.core.ledger.ledger import DEFAULT_INITIAL_CASH, Ledger, to_decimal
from tradesim.core.ledger.schema import DECLINE_MESSAGES, DeclineReason, Holding, TradeResult, TradeSide
from tradesim.core.ledger.valuation import (
    HoldingRow,
    PortfolioSummary,
    market_value,
    recompute_value,
    summarize,
    total_pl,
    total_pl_percent,
    total_value,
    unrealized_pl,
)

__all__ = [
    "DECLINE_MESSAGES",
    "DEFAULT_INITIAL_CASH",
    "DeclineReason",
    "Holding",
    "HoldingRow",
    "Ledger",
    "PortfolioSummary",
    "TradeResult",
    "TradeSide",
    "market_value",
    "recompute_value",
    "summarize",
    "to_decimal",
    "total_pl",
    "total_pl_percent",
    "total_value",
    "unrealized_pl",
]
