from __future__ import annotations

import html

import pandas as pd
import streamlit as st

from tradesim.core.errors import UnknownTickerError
from tradesim.core.market.search import search_instruments
from tradesim.core.session.controller import SessionController
from tradesim.ui.components.trade_widget import render_trade_widget
from tradesim.ui.utils.formatting import format_money
from tradesim.ui.viewmodels.dashboard_vm import build_price_history_frame

_HISTORY_CACHE_KEY = "detail_history"


def render_search_bar(controller: SessionController) -> None:
    query = st.text_input(
        "Search stocks",
        key="search_query",
        placeholder="Search by ticker or name…",
        label_visibility="collapsed",
    )
    matches = search_instruments(controller.instruments(), query, limit=controller.settings.search_limit)
    if query.strip() and not matches:
        st.caption("No matching stocks.")
    for item in matches:
        st.button(
            f"{item.ticker} · {item.name}",
            key=f"search_pick_{item.ticker}",
            on_click=_select_ticker,
            args=(item.ticker,),
        )


def _select_ticker(ticker: str) -> None:
    # Widget-bound state can only be reset from a callback.
    st.session_state["selected_ticker"] = ticker
    st.session_state["search_query"] = ""


def render_stock_detail(controller: SessionController, ticker: str) -> None:
    instrument = controller.market.get(ticker)
    if instrument is None:
        st.warning(f"Unknown ticker: {ticker}")
        st.session_state["selected_ticker"] = None
        return

    if st.button("← Back to Portfolio", key="detail_back"):
        st.session_state["selected_ticker"] = None
        st.rerun()

    currency = controller.settings.currency
    tone = "up" if instrument.change >= 0 else "down"
    arrow = "▲" if instrument.change >= 0 else "▼"
    st.markdown(
        "<div class='card'>"
        f"<div class='section-title'>{html.escape(instrument.name)} ({html.escape(instrument.ticker)})</div>"
        f"<div class='muted tiny'>{html.escape(instrument.industry)}</div>"
        f"<div class='summary-value'>{format_money(instrument.price, currency=currency)}</div>"
        f"<div class='tone-{tone}'>{arrow} {float(instrument.change):.2f} ({float(instrument.change_percent):.2f}%)</div>"
        "</div>",
        unsafe_allow_html=True,
    )

    chart_col, trade_col = st.columns([2.0, 1.0], gap="medium")
    with chart_col:
        frame = _history_frame(controller, instrument.ticker)
        figure = _build_price_figure(frame, positive=instrument.change >= 0)
        if figure is None:
            st.line_chart(frame.set_index("date")["price"])
        else:
            st.plotly_chart(figure, width="stretch", config={"displayModeBar": False})
    with trade_col:
        render_trade_widget(controller, default_ticker=instrument.ticker, key=f"detail_trade_{instrument.ticker}")


def _history_frame(controller: SessionController, ticker: str) -> pd.DataFrame:
    # Generated once per selected ticker, not on every tick.
    cached = st.session_state.get(_HISTORY_CACHE_KEY)
    if isinstance(cached, tuple) and len(cached) == 3 and cached[0] == ticker and cached[1] == controller.epoch:
        return cached[2]
    try:
        points = controller.instrument_history(ticker)
    except UnknownTickerError:
        points = []
    frame = build_price_history_frame(points)
    st.session_state[_HISTORY_CACHE_KEY] = (ticker, controller.epoch, frame)
    return frame


def _build_price_figure(frame: pd.DataFrame, *, positive: bool):
    try:
        import plotly.graph_objects as go
    except Exception:
        return None

    color = "#10b981" if positive else "#ef4444"
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=frame["date"],
            y=frame["price"],
            mode="lines",
            name="Price",
            line={"color": color, "width": 2},
        )
    )
    if not frame.empty:
        low = float(frame["price"].min())
        high = float(frame["price"].max())
        fig.update_yaxes(range=[low * 0.95, high * 1.05])
    fig.update_layout(
        margin={"l": 10, "r": 10, "t": 10, "b": 10},
        paper_bgcolor="#101826",
        plot_bgcolor="#101826",
        font={"color": "#dce7f3", "size": 12},
        xaxis={"gridcolor": "rgba(255,255,255,0.04)"},
        yaxis={"gridcolor": "rgba(255,255,255,0.04)", "side": "right"},
        height=360,
    )
    return fig
