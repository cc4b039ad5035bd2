from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from tradesim.core.auth.identity_store import IdentityStore
from tradesim.core.config.settings import Settings
from tradesim.core.session.controller import SessionController
from tradesim.core.session.timers import PolledTimer

CONTROLLER_KEY = "tradesim_controller"


def get_or_create_controller(
    settings: Settings,
    session_state: MutableMapping[str, Any],
    url_params: MutableMapping[str, str],
) -> SessionController:
    """One controller per browser session, with the identity kept in the page URL.

    ``st.session_state`` is dropped on a browser reload but ``st.query_params`` is not,
    so a fresh controller can ``restore()`` the signed-in user from the URL.
    """
    controller = session_state.get(CONTROLLER_KEY)
    if isinstance(controller, SessionController):
        return controller
    controller = SessionController(
        settings,
        timer=PolledTimer(settings.tick_interval_seconds),
        identity_store=IdentityStore(url_params),
    )
    session_state[CONTROLLER_KEY] = controller
    return controller
