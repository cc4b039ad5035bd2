from __future__ import annotations

from tradesim.core.market.catalog import SEED_CATALOG, build_catalog
from tradesim.core.market.market_model import MarketModel, RandomSource, find_instrument, generate_history
from tradesim.core.market.schema import Instrument, PricePoint
from tradesim.core.market.search import search_instruments

__all__ = [
    "Instrument",
    "MarketModel",
    "PricePoint",
    "RandomSource",
    "SEED_CATALOG",
    "build_catalog",
    "find_instrument",
    "generate_history",
    "search_instruments",
]
