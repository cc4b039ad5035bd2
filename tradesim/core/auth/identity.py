from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from tradesim.core.errors import IdentityAssertionError

DEFAULT_DISPLAY_NAME = "Demo Trader"
LOCAL_USER_ID = "user-123"
LOCAL_USER_EMAIL = "trader@example.com"


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    email: str | None = None
    avatar_url: str | None = None
    provider: Literal["local", "google"] = "local"


def local_identity(name: str | None) -> Identity:
    display_name = str(name or "").strip() or DEFAULT_DISPLAY_NAME
    return Identity(id=LOCAL_USER_ID, display_name=display_name, email=LOCAL_USER_EMAIL, provider="local")


def identity_from_id_token(credential: str, *, audience: str | None = None) -> Identity:
    """Read the claims of a Google ID token.

    The signature is not verified; the token only supplies display data for a play-money session.
    When ``audience`` is given (the app's Google client id), the token's ``aud`` must match it.
    """
    parts = str(credential or "").split(".")
    if len(parts) != 3 or not parts[1]:
        raise IdentityAssertionError("Credential is not a JWT.")

    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise IdentityAssertionError("Credential payload could not be decoded.") from exc
    if not isinstance(payload, dict):
        raise IdentityAssertionError("Credential payload must be a JSON object.")
    if audience and not _audience_matches(payload.get("aud"), audience):
        raise IdentityAssertionError("Credential was issued for a different client.")
    return identity_from_claims(payload)


def identity_from_claims(claims: Mapping[str, Any]) -> Identity:
    subject = str(claims.get("sub", "") or "").strip()
    if not subject:
        raise IdentityAssertionError("Identity claims are missing 'sub'.")
    name = str(claims.get("name", "") or "").strip()
    email = str(claims.get("email", "") or "").strip() or None
    picture = str(claims.get("picture", "") or "").strip() or None
    try:
        return Identity(
            id=subject,
            display_name=name or email or subject,
            email=email,
            avatar_url=picture,
            provider="google",
        )
    except ValidationError as exc:
        raise IdentityAssertionError("Identity claims are invalid.") from exc


def _audience_matches(claim: Any, audience: str) -> bool:
    if isinstance(claim, str):
        return claim == audience
    if isinstance(claim, list):
        return audience in claim
    return False
