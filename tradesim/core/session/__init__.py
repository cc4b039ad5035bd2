from __future__ import annotations

from tradesim.core.session.controller import ActiveSession, SessionController, SessionState
from tradesim.core.session.timers import AsyncioPeriodicTimer, PeriodicTimer, PolledTimer

__all__ = [
    "ActiveSession",
    "AsyncioPeriodicTimer",
    "PeriodicTimer",
    "PolledTimer",
    "SessionController",
    "SessionState",
]
