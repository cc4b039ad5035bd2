from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from tradesim.core.ledger.ledger import Ledger
from tradesim.core.ledger.schema import Holding
from tradesim.core.market.schema import Instrument

PriceSource = Mapping[str, Decimal] | Iterable[Instrument]

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class HoldingRow:
    ticker: str
    name: str
    industry: str
    shares: int
    average_cost: Decimal
    current_price: Decimal | None
    market_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal


@dataclass(frozen=True)
class PortfolioSummary:
    cash: Decimal
    initial_cash: Decimal
    market_value: Decimal
    total_value: Decimal
    total_pl: Decimal
    total_pl_percent: Decimal
    holding_count: int
    rows: tuple[HoldingRow, ...]


def price_lookup(prices: PriceSource) -> dict[str, Decimal]:
    if isinstance(prices, Mapping):
        return {str(k).upper(): Decimal(v) for k, v in prices.items()}
    return {item.ticker: item.price for item in prices}


def market_value(holdings: Iterable[Holding], prices: PriceSource) -> Decimal:
    lookup = price_lookup(prices)
    total = _ZERO
    for holding in holdings:
        price = lookup.get(holding.ticker)
        if price is None:
            continue
        total += price * holding.shares
    return total


def unrealized_pl(holding: Holding, prices: PriceSource) -> Decimal:
    price = price_lookup(prices).get(holding.ticker)
    if price is None:
        return _ZERO
    return holding.shares * price - holding.shares * holding.average_cost


def total_value(cash: Decimal, holdings: Iterable[Holding], prices: PriceSource) -> Decimal:
    return cash + market_value(holdings, prices)


def total_pl(value: Decimal, initial_cash: Decimal) -> Decimal:
    return value - initial_cash


def total_pl_percent(value: Decimal, initial_cash: Decimal) -> Decimal:
    if initial_cash == 0:
        return _ZERO
    return (value - initial_cash) / initial_cash * _HUNDRED


def recompute_value(ledger: Ledger, prices: PriceSource) -> Decimal:
    return total_value(ledger.cash, ledger.holdings, prices)


def summarize(ledger: Ledger, instruments: Sequence[Instrument]) -> PortfolioSummary:
    by_ticker = {item.ticker: item for item in instruments}
    lookup = price_lookup(instruments)

    rows: list[HoldingRow] = []
    for holding in ledger.holdings:
        instrument = by_ticker.get(holding.ticker)
        price = lookup.get(holding.ticker)
        value = price * holding.shares if price is not None else _ZERO
        pl = unrealized_pl(holding, lookup)
        cost_basis = holding.average_cost * holding.shares
        pl_pct = pl / cost_basis * _HUNDRED if cost_basis > 0 and price is not None else _ZERO
        rows.append(
            HoldingRow(
                ticker=holding.ticker,
                name=instrument.name if instrument else holding.ticker,
                industry=instrument.industry if instrument else "Unknown",
                shares=holding.shares,
                average_cost=holding.average_cost,
                current_price=price,
                market_value=value,
                unrealized_pl=pl,
                unrealized_pl_percent=pl_pct,
            )
        )

    holdings_value = market_value(ledger.holdings, lookup)
    value = ledger.cash + holdings_value
    return PortfolioSummary(
        cash=ledger.cash,
        initial_cash=ledger.initial_cash,
        market_value=holdings_value,
        total_value=value,
        total_pl=total_pl(value, ledger.initial_cash),
        total_pl_percent=total_pl_percent(value, ledger.initial_cash),
        holding_count=len(rows),
        rows=tuple(rows),
    )
