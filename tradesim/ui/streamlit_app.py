from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Ensure repository root is importable when Streamlit runs this file directly.
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tradesim.core.config.settings import Settings, load_settings
from tradesim.core.orchestration.log_setup import setup_logging
from tradesim.core.session.controller import SessionController, SessionState
from tradesim.ui.components.analysis_panel import render_analysis_panel
from tradesim.ui.components.dashboard import render_holdings_table, render_portfolio_chart, render_summary_cards
from tradesim.ui.components.header import render_header, render_market_ticker
from tradesim.ui.components.login_screen import render_login_screen
from tradesim.ui.components.stock_detail import render_search_bar, render_stock_detail
from tradesim.ui.components.trade_widget import render_trade_widget
from tradesim.ui.session_factory import get_or_create_controller
from tradesim.ui.theme import inject_global_css

st.set_page_config(page_title="TradeSim", layout="wide")


@st.cache_resource(show_spinner=False)
def _cached_settings() -> Settings:
    settings = load_settings()
    setup_logging(settings.log_level)
    return settings


def _render_dashboard(controller: SessionController) -> None:
    currency = controller.settings.currency
    summary = controller.summary()
    render_summary_cards(summary, currency=currency)

    chart_col, trade_col = st.columns([2.0, 1.0], gap="medium")
    with chart_col:
        render_portfolio_chart(controller.history_points())
    with trade_col:
        render_trade_widget(controller, key="dashboard_trade")

    render_holdings_table(summary, currency=currency)
    render_analysis_panel(controller)


def _render_session(controller: SessionController) -> None:
    # Full interval elapsed since the last tick: advance prices and sample the portfolio value.
    controller.timer.poll()
    if controller.state is not SessionState.LOGGED_IN:
        return

    currency = controller.settings.currency
    render_header(controller.identity, controller.ledger.cash, currency=currency)
    render_market_ticker(controller.instruments(), currency=currency)
    render_search_bar(controller)

    selected = st.session_state.get("selected_ticker")
    if selected:
        render_stock_detail(controller, selected)
    else:
        _render_dashboard(controller)


def _logout(controller: SessionController) -> None:
    controller.logout()
    stale = [key for key in st.session_state if str(key).endswith("_notice")]
    for key in ("selected_ticker", "analysis_result", "detail_history", *stale):
        st.session_state.pop(key, None)
    user = getattr(st, "user", None)
    if user is not None and bool(getattr(user, "is_logged_in", False)):
        st.logout()
    st.rerun()


def main() -> None:
    settings = _cached_settings()
    inject_global_css()
    controller = get_or_create_controller(settings, st.session_state, st.query_params)
    controller.restore()

    if controller.state is SessionState.LOGGED_OUT:
        render_login_screen(controller)
        return

    st.fragment(run_every=settings.tick_interval_seconds)(_render_session)(controller)

    st.divider()
    footer_left, footer_right = st.columns([5.0, 1.0], vertical_alignment="center")
    with footer_left:
        st.markdown(
            "<div class='tiny muted'>Simulated prices for fictional BSE-listed stocks. No real money is traded.</div>",
            unsafe_allow_html=True,
        )
    with footer_right:
        if st.button("Logout", key="logout", width="stretch"):
            _logout(controller)


if __name__ == "__main__":
    main()
