from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

from tradesim.core.history.recorder import HistoryPoint
from tradesim.core.ledger.valuation import PortfolioSummary
from tradesim.core.market.schema import Instrument, PricePoint
from tradesim.ui.utils.formatting import format_money, format_pct, format_signed_money

HOLDINGS_COLUMNS = ["Ticker", "Name", "Shares", "Avg Cost", "Price", "Market Value", "Unrealized P/L", "P/L %"]


def build_summary_cards(summary: PortfolioSummary, *, currency: str = "INR") -> list[dict[str, Any]]:
    positive = summary.total_pl >= 0
    return [
        {
            "title": "Total Value",
            "value": format_money(summary.total_value, currency=currency),
            "change": f"{format_signed_money(summary.total_pl, currency=currency)} ({float(summary.total_pl_percent):.2f}%)",
            "tone": "up" if positive else "down",
        },
        {"title": "Portfolio Value", "value": format_money(summary.market_value, currency=currency), "change": "", "tone": "flat"},
        {"title": "Cash Available", "value": format_money(summary.cash, currency=currency), "change": "", "tone": "flat"},
        {"title": "Holdings", "value": str(summary.holding_count), "change": "", "tone": "flat"},
    ]


def build_holdings_frame(summary: PortfolioSummary, *, currency: str = "INR") -> pd.DataFrame:
    rows = [
        {
            "Ticker": row.ticker,
            "Name": row.name,
            "Shares": row.shares,
            "Avg Cost": format_money(row.average_cost, currency=currency),
            "Price": format_money(row.current_price, currency=currency),
            "Market Value": format_money(row.market_value, currency=currency),
            "Unrealized P/L": format_signed_money(row.unrealized_pl, currency=currency),
            "P/L %": format_pct(row.unrealized_pl_percent),
        }
        for row in summary.rows
    ]
    return pd.DataFrame(rows, columns=HOLDINGS_COLUMNS)


def build_history_frame(points: Sequence[HistoryPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"time": point.label, "value": float(point.value)} for point in points],
        columns=["time", "value"],
    )


def build_price_history_frame(points: Sequence[PricePoint]) -> pd.DataFrame:
    frame = pd.DataFrame([point.model_dump() for point in points], columns=["date", "price"])
    return frame.sort_values("date").reset_index(drop=True)


def build_ticker_strip(instruments: Sequence[Instrument], *, currency: str = "INR") -> list[dict[str, Any]]:
    strip: list[dict[str, Any]] = []
    for item in instruments:
        up = item.change >= 0
        strip.append(
            {
                "ticker": item.ticker,
                "price": format_money(item.price, currency=currency),
                "change": f"{'▲' if up else '▼'} {float(item.change):.2f} ({float(item.change_percent):.2f}%)",
                "tone": "up" if up else "down",
            }
        )
    return strip
