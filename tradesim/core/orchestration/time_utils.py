from __future__ import annotations

from datetime import date, datetime, timezone


def now_local() -> datetime:
    return datetime.now(timezone.utc).astimezone()


def now_iso() -> str:
    return now_local().isoformat()


def today_local() -> date:
    return now_local().date()


def clock_label(moment: datetime) -> str:
    return moment.strftime("%H:%M:%S")
