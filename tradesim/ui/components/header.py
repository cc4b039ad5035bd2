from __future__ import annotations

import html
from collections.abc import Sequence
from decimal import Decimal

import streamlit as st

from tradesim.core.auth.identity import Identity
from tradesim.core.market.schema import Instrument
from tradesim.ui.utils.formatting import format_money
from tradesim.ui.viewmodels.dashboard_vm import build_ticker_strip


def render_header(identity: Identity, cash: Decimal, *, currency: str = "INR") -> None:
    left, right = st.columns([3.0, 2.0], vertical_alignment="center")
    with left:
        st.markdown('<div class="app-title">TradeSim</div>', unsafe_allow_html=True)
    with right:
        avatar = ""
        if identity.avatar_url:
            avatar = f"<img class='avatar' src='{html.escape(identity.avatar_url)}'/>"
        st.markdown(
            f"<div style='text-align:right'>{avatar}<b>{html.escape(identity.display_name)}</b>"
            f" <span class='muted'>| Cash {format_money(cash, currency=currency)}</span></div>",
            unsafe_allow_html=True,
        )


def render_market_ticker(instruments: Sequence[Instrument], *, currency: str = "INR") -> None:
    items = []
    for entry in build_ticker_strip(instruments, currency=currency):
        items.append(
            f"<span class='ticker-item'><b>{html.escape(entry['ticker'])}</b> {entry['price']} "
            f"<span class='tone-{entry['tone']}'>{entry['change']}</span></span>"
        )
    st.markdown(f"<div class='ticker-strip'>{''.join(items)}</div>", unsafe_allow_html=True)
