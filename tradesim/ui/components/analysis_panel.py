from __future__ import annotations

import streamlit as st

from tradesim.core.analysis.portfolio_analysis import AnalysisResult, analyze_portfolio, client_from_settings
from tradesim.core.session.controller import SessionController

_RESULT_KEY = "analysis_result"


def render_analysis_panel(controller: SessionController) -> None:
    with st.container(border=True):
        head_left, head_right = st.columns([4.0, 1.0], vertical_alignment="center")
        with head_left:
            st.markdown("<div class='section-title'>AI Portfolio Analysis</div>", unsafe_allow_html=True)
            st.caption("Get insights on your portfolio's diversification.")
        with head_right:
            clicked = st.button("Analyze", key="analysis_run", width="stretch")

        if clicked:
            rows = controller.analysis_snapshot()
            with st.spinner("Analyzing…"):
                client = client_from_settings(controller.settings.analysis) if rows else None
                st.session_state[_RESULT_KEY] = analyze_portfolio(rows, client)

        result = st.session_state.get(_RESULT_KEY)
        if not isinstance(result, AnalysisResult):
            return
        if not result.ok:
            st.error(result.error or "Failed to get analysis. Please try again.")
            return
        with st.expander("Portfolio Analysis", expanded=True):
            st.markdown(result.text)
