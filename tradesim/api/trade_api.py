from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tradesim.core.analysis.portfolio_analysis import (
    AnalysisResult,
    TextClient,
    analyze_portfolio,
    client_from_settings,
)
from tradesim.core.config.settings import load_settings
from tradesim.core.errors import IdentityAssertionError, NotLoggedInError, UnknownTickerError
from tradesim.core.ledger.schema import TradeSide
from tradesim.core.market.search import search_instruments
from tradesim.core.orchestration.time_utils import now_iso
from tradesim.core.session.controller import SessionController
from tradesim.core.session.timers import AsyncioPeriodicTimer

logger = logging.getLogger(__name__)

_TICKER_PATTERN = re.compile(r"^[A-Z0-9.\-&]+$")
_MAX_SHARES = 10_000_000


def create_app(
    controller_factory: Callable[[], SessionController] | None = None,
    analysis_client_factory: Callable[[], TextClient | None] | None = None,
) -> Starlette:
    app = Starlette(debug=False, routes=[
        Route("/api/health", endpoint=_health, methods=["GET"]),
        Route("/api/session", endpoint=_session, methods=["GET"]),
        Route("/api/session/login", endpoint=_login, methods=["POST"]),
        Route("/api/session/google", endpoint=_login_google, methods=["POST"]),
        Route("/api/session/logout", endpoint=_logout, methods=["POST"]),
        Route("/api/market", endpoint=_market, methods=["GET"]),
        Route("/api/market/search", endpoint=_market_search, methods=["GET"]),
        Route("/api/market/{ticker}/history", endpoint=_market_history, methods=["GET"]),
        Route("/api/portfolio", endpoint=_portfolio, methods=["GET"]),
        Route("/api/trade", endpoint=_trade, methods=["POST"]),
        Route("/api/analysis", endpoint=_analysis, methods=["POST"]),
    ])
    app.state.controller_factory = controller_factory or _default_controller_factory
    app.state.analysis_client_factory = analysis_client_factory or _default_analysis_client
    app.state.controller_singleton = None
    return app


async def _health(request: Request) -> JSONResponse:
    return JSONResponse({"ok": True, "service": "tradesim-api", "as_of": now_iso()})


async def _session(request: Request) -> JSONResponse:
    controller = _get_controller(request)
    identity = controller.identity
    return JSONResponse({
        "ok": True,
        "state": controller.state.value,
        "identity": identity.model_dump(mode="json") if identity else None,
    })


async def _login(request: Request) -> JSONResponse:
    payload, error = await _read_payload(request)
    if error:
        return error
    name = str(payload.get("name", "") or "").strip()
    if not name:
        return _error(422, "INVALID_NAME", "A display name is required.")
    identity = _get_controller(request).login_local(name)
    return JSONResponse({"ok": True, "state": "LOGGED_IN", "identity": identity.model_dump(mode="json")})


async def _login_google(request: Request) -> JSONResponse:
    payload, error = await _read_payload(request)
    if error:
        return error
    credential = str(payload.get("credential", "") or "").strip()
    if not credential:
        return _error(422, "INVALID_CREDENTIAL", "A credential is required.")
    try:
        identity = _get_controller(request).login_with_id_token(credential)
    except IdentityAssertionError as exc:
        return _error(401, "IDENTITY_ASSERTION_FAILED", str(exc))
    return JSONResponse({"ok": True, "state": "LOGGED_IN", "identity": identity.model_dump(mode="json")})


async def _logout(request: Request) -> JSONResponse:
    _get_controller(request).logout()
    return JSONResponse({"ok": True, "state": "LOGGED_OUT"})


async def _market(request: Request) -> JSONResponse:
    controller = _get_controller(request)
    try:
        instruments = controller.instruments()
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))
    return JSONResponse({
        "ok": True,
        "generated_at": now_iso(),
        "data": [_jsonable(item.model_dump()) for item in instruments],
    })


async def _market_search(request: Request) -> JSONResponse:
    controller = _get_controller(request)
    try:
        instruments = controller.instruments()
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))
    query = str(request.query_params.get("q", "") or "")
    matches = search_instruments(instruments, query, limit=controller.settings.search_limit)
    return JSONResponse({"ok": True, "query": query, "data": [_jsonable(item.model_dump()) for item in matches]})


async def _market_history(request: Request) -> JSONResponse:
    ticker = _normalize_ticker(request.path_params.get("ticker"))
    if not ticker:
        return _error(422, "INVALID_TICKER", "Ticker must contain A-Z, 0-9, '.', '-' or '&'.")
    controller = _get_controller(request)
    try:
        points = controller.instrument_history(ticker)
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))
    except UnknownTickerError as exc:
        return _error(404, "UNKNOWN_TICKER", str(exc))
    return JSONResponse({
        "ok": True,
        "ticker": ticker,
        "data": [point.model_dump() for point in points],
    })


async def _portfolio(request: Request) -> JSONResponse:
    controller = _get_controller(request)
    try:
        summary = controller.summary()
        history = controller.history_points()
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))
    return JSONResponse({
        "ok": True,
        "generated_at": now_iso(),
        "summary": _jsonable(summary),
        "history": [_jsonable(point.model_dump()) for point in history],
    })


async def _trade(request: Request) -> JSONResponse:
    payload, error = await _read_payload(request)
    if error:
        return error

    ticker = _normalize_ticker(payload.get("ticker"))
    if not ticker:
        return _error(422, "INVALID_TICKER", "Ticker must contain A-Z, 0-9, '.', '-' or '&'.")
    side_raw = str(payload.get("side", "") or "").strip().upper()
    if side_raw not in {side.value for side in TradeSide}:
        return _error(422, "INVALID_SIDE", "Side must be BUY or SELL.")
    shares = _parse_shares(payload.get("shares"))

    controller = _get_controller(request)
    try:
        result = controller.trade(ticker, shares, TradeSide(side_raw))
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))
    except UnknownTickerError as exc:
        return _error(404, "UNKNOWN_TICKER", str(exc))

    if not result.accepted:
        reason = result.reason.value if result.reason else "DECLINED"
        return _error(409, reason, result.message)
    return JSONResponse({
        "ok": True,
        "trade": _jsonable(result),
        "cash": float(controller.ledger.cash),
    })


async def _analysis(request: Request) -> JSONResponse:
    controller = _get_controller(request)
    try:
        rows = controller.analysis_snapshot()
    except NotLoggedInError as exc:
        return _error(401, "NOT_LOGGED_IN", str(exc))

    client_factory = getattr(request.app.state, "analysis_client_factory", None)
    result = await run_in_threadpool(_run_analysis, rows, client_factory)
    if not result.ok and not rows:
        return _error(422, "EMPTY_PORTFOLIO", result.error or "")
    if not result.ok:
        return _error(502, "ANALYSIS_UNAVAILABLE", result.error or "")
    return JSONResponse({"ok": True, "generated_at": now_iso(), "analysis": result.text})


def _run_analysis(
    rows: list[dict[str, Any]], client_factory: Callable[[], TextClient | None] | None
) -> AnalysisResult:
    # Client construction may resolve AWS credentials over the network; keep it off the event loop.
    client = client_factory() if callable(client_factory) and rows else None
    return analyze_portfolio(rows, client)


def _default_controller_factory() -> SessionController:
    settings = load_settings()
    return SessionController(settings, timer=AsyncioPeriodicTimer(settings.tick_interval_seconds))


def _default_analysis_client() -> TextClient | None:
    return client_from_settings(load_settings().analysis)


def _get_controller(request: Request) -> SessionController:
    cached = getattr(request.app.state, "controller_singleton", None)
    if isinstance(cached, SessionController):
        return cached

    controller_factory = getattr(request.app.state, "controller_factory", None)
    if not callable(controller_factory):
        raise RuntimeError("controller_factory_unavailable")
    controller = controller_factory()
    if not isinstance(controller, SessionController):
        raise RuntimeError("controller_factory_invalid")
    request.app.state.controller_singleton = controller
    return controller


async def _read_payload(request: Request) -> tuple[dict[str, Any], JSONResponse | None]:
    try:
        payload = await request.json()
    except Exception:
        return {}, _error(400, "INVALID_JSON", "Request body must be valid JSON.")
    if not isinstance(payload, dict):
        return {}, _error(400, "INVALID_PAYLOAD", "Request body must be a JSON object.")
    if len(payload) > 8:
        return {}, _error(400, "PAYLOAD_TOO_LARGE", "Payload has too many fields.")
    return payload, None


def _normalize_ticker(value: Any) -> str | None:
    text = str(value or "").strip().upper()
    if not text:
        return None
    if not _TICKER_PATTERN.fullmatch(text):
        return None
    return text


def _parse_shares(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        shares = value
    elif isinstance(value, str) and value.strip().isdigit():
        shares = int(value.strip())
    else:
        return None
    if shares > _MAX_SHARES:
        return None
    return shares


def _jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return _jsonable(asdict(value))
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if hasattr(value, "model_dump"):
        return _jsonable(value.model_dump())
    return str(value)


def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "error": {"code": str(code), "message": str(message)}},
        status_code=int(status),
    )


app = create_app()
