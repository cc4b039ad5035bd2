from __future__ import annotations

import html
from collections.abc import Sequence

import pandas as pd
import streamlit as st

from tradesim.core.history.recorder import HistoryPoint
from tradesim.core.ledger.valuation import PortfolioSummary
from tradesim.ui.viewmodels.dashboard_vm import build_history_frame, build_holdings_frame, build_summary_cards


def render_summary_cards(summary: PortfolioSummary, *, currency: str = "INR") -> None:
    cards = build_summary_cards(summary, currency=currency)
    columns = st.columns(len(cards), gap="medium")
    for column, card in zip(columns, cards):
        with column:
            change = ""
            if card["change"]:
                change = f"<div class='tiny tone-{card['tone']}'>{html.escape(card['change'])}</div>"
            st.markdown(
                "<div class='card'>"
                f"<div class='summary-title'>{html.escape(card['title'])}</div>"
                f"<div class='summary-value'>{html.escape(card['value'])}</div>"
                f"{change}</div>",
                unsafe_allow_html=True,
            )


def render_portfolio_chart(points: Sequence[HistoryPoint]) -> None:
    st.markdown("<div class='section-title'>Portfolio Performance</div>", unsafe_allow_html=True)
    frame = build_history_frame(points)
    if frame.empty:
        st.info("Waiting for the first market tick…")
        return
    figure = _build_value_figure(frame)
    if figure is None:
        st.line_chart(frame.set_index("time")["value"])
        return
    st.plotly_chart(figure, width="stretch", config={"displayModeBar": False})


def render_holdings_table(summary: PortfolioSummary, *, currency: str = "INR") -> None:
    st.markdown("<div class='section-title'>My Holdings</div>", unsafe_allow_html=True)
    if not summary.rows:
        st.info("You don't have any holdings yet. Buy some stocks to get started.")
        return
    st.dataframe(build_holdings_frame(summary, currency=currency), hide_index=True, width="stretch")


def _build_value_figure(frame: pd.DataFrame):
    try:
        import plotly.graph_objects as go
    except Exception:
        return None

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=frame["time"],
            y=frame["value"],
            mode="lines",
            name="Total Value",
            line={"color": "#6366f1", "width": 2},
            fill="tozeroy",
            fillcolor="rgba(99, 102, 241, 0.15)",
        )
    )
    low = float(frame["value"].min())
    high = float(frame["value"].max())
    fig.update_layout(
        margin={"l": 10, "r": 10, "t": 10, "b": 10},
        paper_bgcolor="#101826",
        plot_bgcolor="#101826",
        font={"color": "#dce7f3", "size": 12},
        xaxis={"gridcolor": "rgba(255,255,255,0.04)"},
        yaxis={"gridcolor": "rgba(255,255,255,0.04)", "side": "right", "range": [low * 0.99, high * 1.01]},
        height=300,
    )
    return fig
