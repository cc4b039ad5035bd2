from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from typing import Any

from pydantic import ValidationError

from tradesim.core.auth.identity import Identity

logger = logging.getLogger(__name__)

USER_SESSION_KEY = "tradesim-user"


class IdentityStore:
    """Keeps the signed-in identity as a JSON string in a mapping such as ``st.query_params``."""

    def __init__(self, backing: MutableMapping[str, Any] | None = None, key: str = USER_SESSION_KEY):
        self._backing: MutableMapping[str, Any] = backing if backing is not None else {}
        self.key = key

    def save(self, identity: Identity) -> None:
        self._backing[self.key] = json.dumps(identity.model_dump(mode="json"), sort_keys=True)

    def load(self) -> Identity | None:
        raw = self._backing.get(self.key)
        if raw is None:
            return None
        try:
            return Identity.model_validate(json.loads(raw))
        except (TypeError, json.JSONDecodeError, ValidationError):
            logger.warning("Discarding unreadable identity under %r", self.key)
            return None

    def clear(self) -> None:
        self._backing.pop(self.key, None)
