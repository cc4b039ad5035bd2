from __future__ import annotations

from tradesim.core.auth.identity import Identity, identity_from_claims, identity_from_id_token, local_identity
from tradesim.core.auth.identity_store import USER_SESSION_KEY, IdentityStore

__all__ = [
    "Identity",
    "IdentityStore",
    "USER_SESSION_KEY",
    "identity_from_claims",
    "identity_from_id_token",
    "local_identity",
]
