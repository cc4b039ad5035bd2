from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tradesim.core.errors import CatalogError
from tradesim.core.market.schema import Instrument

# Fictional BSE listings; prices are starting points for the simulation only.
SEED_CATALOG: tuple[dict[str, Any], ...] = (
    {"ticker": "RELIANCE", "name": "Reliance Industries", "industry": "Energy", "price": "2950.50"},
    {"ticker": "TCS", "name": "Tata Consultancy Services", "industry": "Technology", "price": "3850.75"},
    {"ticker": "HDFCBANK", "name": "HDFC Bank", "industry": "Banking", "price": "1520.40"},
    {"ticker": "INFY", "name": "Infosys", "industry": "Technology", "price": "1610.25"},
    {"ticker": "ICICIBANK", "name": "ICICI Bank", "industry": "Banking", "price": "1085.60"},
    {"ticker": "HINDUNILVR", "name": "Hindustan Unilever", "industry": "Consumer Goods", "price": "2480.90"},
    {"ticker": "ITC", "name": "ITC Limited", "industry": "Consumer Goods", "price": "430.15"},
    {"ticker": "SBIN", "name": "State Bank of India", "industry": "Banking", "price": "765.30"},
    {"ticker": "BHARTIARTL", "name": "Bharti Airtel", "industry": "Telecom", "price": "1210.80"},
    {"ticker": "SUNPHARMA", "name": "Sun Pharmaceutical", "industry": "Healthcare", "price": "1495.00"},
    {"ticker": "TATAMOTORS", "name": "Tata Motors", "industry": "Automobile", "price": "940.65"},
    {"ticker": "LT", "name": "Larsen & Toubro", "industry": "Infrastructure", "price": "3520.20"},
    {"ticker": "MARUTI", "name": "Maruti Suzuki", "industry": "Automobile", "price": "11250.00"},
    {"ticker": "ASIANPAINT", "name": "Asian Paints", "industry": "Materials", "price": "2875.45"},
    {"ticker": "NTPC", "name": "NTPC Limited", "industry": "Utilities", "price": "355.70"},
)


def build_catalog(entries: Iterable[dict[str, Any]] | None = None) -> tuple[Instrument, ...]:
    raw = list(SEED_CATALOG if entries is None else entries)
    instruments = tuple(Instrument.model_validate(item) for item in raw)
    if not instruments:
        raise CatalogError("Instrument catalog is empty.")

    seen: set[str] = set()
    for instrument in instruments:
        if instrument.ticker in seen:
            raise CatalogError(f"Duplicate ticker in catalog: {instrument.ticker}")
        seen.add(instrument.ticker)
    return instruments
