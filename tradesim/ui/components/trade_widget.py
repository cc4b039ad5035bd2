from __future__ import annotations

import streamlit as st

from tradesim.core.errors import UnknownTickerError
from tradesim.core.ledger.schema import TradeSide
from tradesim.core.session.controller import SessionController
from tradesim.ui.utils.formatting import format_money


def render_trade_widget(controller: SessionController, *, default_ticker: str | None = None, key: str = "trade") -> None:
    instruments = controller.instruments()
    tickers = [item.ticker for item in instruments]
    names = {item.ticker: item.name for item in instruments}
    prices = {item.ticker: item.price for item in instruments}
    currency = controller.settings.currency
    notice_key = f"{key}_notice"

    with st.container(border=True):
        st.markdown("<div class='section-title'>Trade Stocks</div>", unsafe_allow_html=True)
        index = tickers.index(default_ticker) if default_ticker in tickers else 0
        ticker = st.selectbox(
            "Stock",
            options=tickers,
            index=index,
            format_func=lambda t: f"{t} - {names.get(t, t)}",
            disabled=default_ticker is not None,
            key=f"{key}_ticker",
        )
        shares = st.number_input("Shares", min_value=0, step=1, value=0, key=f"{key}_shares")
        side = st.radio(
            "Side",
            options=[TradeSide.BUY.value, TradeSide.SELL.value],
            horizontal=True,
            key=f"{key}_side",
        )
        price = prices.get(ticker)
        if price is not None and shares:
            st.caption(f"Estimated Total: {format_money(price * int(shares), currency=currency)}")

        if st.button("Execute Trade", key=f"{key}_submit", width="stretch"):
            try:
                result = controller.trade(ticker, int(shares), side)
            except UnknownTickerError as exc:
                st.session_state[notice_key] = ("error", str(exc))
            else:
                if result.accepted:
                    verb = "Bought" if result.side is TradeSide.BUY else "Sold"
                    message = (
                        f"{verb} {result.shares} {result.ticker} @ {format_money(result.price, currency=currency)}"
                    )
                    st.session_state[notice_key] = ("success", message)
                else:
                    st.session_state[notice_key] = ("warning", result.message)

        notice = st.session_state.get(notice_key)
        if isinstance(notice, tuple) and len(notice) == 2:
            level, message = notice
            {"success": st.success, "warning": st.warning}.get(level, st.error)(message)
        st.caption(f"Cash available: {format_money(controller.ledger.cash, currency=currency)}")
