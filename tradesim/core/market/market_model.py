from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from tradesim.core.errors import CatalogError
from tradesim.core.market.catalog import build_catalog
from tradesim.core.market.schema import Instrument, PricePoint
from tradesim.core.orchestration.time_utils import today_local

TICK_MAX_DELTA = 0.01
HISTORY_DRIFT_CENTER = 0.48
HISTORY_FLUCTUATION_SCALE = 0.055
HISTORY_JUMP_THRESHOLD = 0.98
HISTORY_JUMP_SCALE = 0.1

_CENT = Decimal("0.01")


class RandomSource(Protocol):
    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...


class MarketModel:
    """Fixed set of instruments whose prices drift by a bounded random step on every tick."""

    def __init__(self, instruments: Iterable[Instrument] | None = None, rng: RandomSource | None = None):
        catalog = tuple(instruments) if instruments is not None else build_catalog()
        if not catalog:
            raise CatalogError("Instrument catalog is empty.")
        self._instruments: tuple[Instrument, ...] = catalog
        self._rng: RandomSource = rng if rng is not None else random.Random()

    def list_instruments(self) -> tuple[Instrument, ...]:
        return self._instruments

    def get(self, ticker: str) -> Instrument | None:
        return find_instrument(self._instruments, ticker)

    def price_map(self) -> dict[str, Decimal]:
        return {instrument.ticker: instrument.price for instrument in self._instruments}

    def tick(self) -> tuple[Instrument, ...]:
        self._instruments = tuple(_tick_instrument(item, self._draw_delta()) for item in self._instruments)
        return self._instruments

    def get_history(
        self,
        current_price: Decimal | float,
        *,
        days: int = 180,
        today: date | None = None,
    ) -> list[PricePoint]:
        return generate_history(current_price, rng=self._rng, days=days, today=today)

    def _draw_delta(self) -> Decimal:
        delta = float(self._rng.uniform(-TICK_MAX_DELTA, TICK_MAX_DELTA))
        delta = max(-TICK_MAX_DELTA, min(TICK_MAX_DELTA, delta))
        return Decimal(str(delta))


def generate_history(
    current_price: Decimal | float,
    *,
    rng: RandomSource,
    days: int = 180,
    today: date | None = None,
) -> list[PricePoint]:
    anchor = today or today_local()
    price = float(current_price)
    points = [PricePoint(date=anchor.isoformat(), price=round(price, 2))]

    # Walk backwards: today's price tends to sit above the synthetic past.
    for offset in range(1, int(days) + 1):
        fluctuation = (rng.random() - HISTORY_DRIFT_CENTER) * HISTORY_FLUCTUATION_SCALE
        price = price / (1 + fluctuation)
        if rng.random() > HISTORY_JUMP_THRESHOLD:
            price = price / (1 + (rng.random() - 0.5) * HISTORY_JUMP_SCALE)
        day = anchor - timedelta(days=offset)
        points.append(PricePoint(date=day.isoformat(), price=round(price, 2)))

    points.reverse()
    return points


def _tick_instrument(instrument: Instrument, delta: Decimal) -> Instrument:
    new_price = instrument.price * (Decimal(1) + delta)
    change = new_price - instrument.price
    rounded_price = _round_cents(new_price)
    if rounded_price <= 0:
        rounded_price = _CENT
    return instrument.model_copy(
        update={
            "price": rounded_price,
            "change": _round_cents(change),
            "change_percent": _round_cents(delta * 100),
        }
    )


def _round_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def find_instrument(instruments: Sequence[Instrument], ticker: str) -> Instrument | None:
    symbol = str(ticker or "").strip().upper()
    return next((item for item in instruments if item.ticker == symbol), None)
