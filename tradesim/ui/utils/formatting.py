from __future__ import annotations

import math
from decimal import Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]

_CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$"}


def format_money(value: Optional[Number], *, currency: str = "INR", decimals: int = 2) -> str:
    v = _to_float(value)
    if v is None:
        return "—"
    symbol = _CURRENCY_SYMBOLS.get(currency, "")
    sign = "-" if v < 0 else ""
    text = f"{abs(v):.{decimals}f}"
    whole, _, frac = text.partition(".")
    grouped = group_indian(whole) if currency == "INR" else f"{int(whole):,}"
    return f"{sign}{symbol}{grouped}{'.' + frac if frac else ''}"


def format_signed_money(value: Optional[Number], *, currency: str = "INR") -> str:
    v = _to_float(value)
    if v is None:
        return "—"
    prefix = "+" if v >= 0 else ""
    return f"{prefix}{format_money(v, currency=currency)}"


def format_pct(value: Optional[Number], *, signed: bool = True) -> str:
    v = _to_float(value)
    if v is None:
        return "—"
    sign = "+" if signed and v > 0 else ""
    return f"{sign}{v:.2f}%"


def group_indian(digits: str) -> str:
    """Lakh/crore grouping: 10000000 -> 1,00,00,000."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def _to_float(value: Optional[Number]) -> float | None:
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v
