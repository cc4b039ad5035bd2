from __future__ import annotations

from collections.abc import Sequence

from tradesim.core.market.schema import Instrument


def search_instruments(instruments: Sequence[Instrument], query: str, limit: int = 7) -> list[Instrument]:
    needle = str(query or "").strip().lower()
    if not needle or limit <= 0:
        return []
    matches = [
        item
        for item in instruments
        if needle in item.ticker.lower() or needle in item.name.lower()
    ]
    return matches[:limit]
