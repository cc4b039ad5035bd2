from __future__ import annotations

from typing import Any

import streamlit as st

from tradesim.core.errors import IdentityAssertionError
from tradesim.core.session.controller import SessionController


def render_login_screen(controller: SessionController) -> None:
    st.markdown('<div class="app-title">TradeSim</div>', unsafe_allow_html=True)
    st.markdown(
        "<div class='muted'>A fictional stock trading simulator. Trade with play money on a mock market.</div>",
        unsafe_allow_html=True,
    )

    _consume_oidc_login(controller)
    if controller.identity is not None:
        st.rerun()

    with st.container(border=True):
        with st.form("login_form"):
            username = st.text_input("Trader name", placeholder="Demo Trader")
            submitted = st.form_submit_button("Start Trading", width="stretch")
        if submitted:
            if not username.strip():
                st.warning("Enter a name to start.")
            else:
                controller.login_local(username)
                st.rerun()

        if _oidc_configured(controller.settings.auth.oidc_provider):
            st.markdown("<div class='tiny muted'>or</div>", unsafe_allow_html=True)
            if st.button("Sign in with Google", key="login_google", width="stretch"):
                st.login(controller.settings.auth.oidc_provider)


def _consume_oidc_login(controller: SessionController) -> None:
    claims = _oidc_claims()
    if not claims:
        return
    try:
        controller.login_with_claims(claims)
    except IdentityAssertionError:
        st.error("Google sign-in failed. Please try again.")


def _oidc_claims() -> dict[str, Any] | None:
    user = getattr(st, "user", None)
    if user is None or not bool(getattr(user, "is_logged_in", False)):
        return None
    to_dict = getattr(user, "to_dict", None)
    return dict(to_dict()) if callable(to_dict) else None


def _oidc_configured(provider: str) -> bool:
    # st.secrets raises when no secrets.toml exists.
    try:
        auth = st.secrets.get("auth") or {}
    except Exception:
        return False
    if not hasattr(auth, "get"):
        return False
    return bool(auth.get(provider) or auth.get("client_id"))
