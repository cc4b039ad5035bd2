from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

DEFAULT_HISTORY_LIMIT = 100


class HistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: Decimal


def append_sample(series: Sequence[HistoryPoint], point: HistoryPoint, limit: int) -> tuple[HistoryPoint, ...]:
    if limit <= 0:
        raise ValueError("limit must be positive")
    combined = (*series, point)
    return combined[-limit:]


class HistoryRecorder:
    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if int(limit) <= 0:
            raise ValueError("limit must be positive")
        self.limit = int(limit)
        self._points: tuple[HistoryPoint, ...] = ()

    def sample(self, label: str, total_value: Decimal) -> HistoryPoint:
        point = HistoryPoint(label=str(label), value=total_value)
        self._points = append_sample(self._points, point, self.limit)
        return point

    def points(self) -> tuple[HistoryPoint, ...]:
        return self._points

    def clear(self) -> None:
        self._points = ()

    def __len__(self) -> int:
        return len(self._points)
