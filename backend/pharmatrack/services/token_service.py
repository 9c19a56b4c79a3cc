# Overview: Signed, time-limited credentials carrying {user_id, shop_id, role}.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..errors import AuthError


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    shop_id: int | None
    role: str


def issue_token(*, user_id: int, shop_id: int | None, role: str, now: datetime | None = None) -> str:
    """
    Sign a credential for the given identity.

    shop_id is embedded once here and never re-derived; every tenant decision
    downstream reads it back from the token.
    """
    issued = now or datetime.now(timezone.utc)
    if issued.tzinfo is None:
        issued = issued.replace(tzinfo=timezone.utc)
    payload = {
        "user_id": user_id,
        "shop_id": shop_id,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> TokenClaims:
    """Verify signature and expiry. Raises AuthError on any failure."""
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "user_id", "role"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired. Please login again.")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

    try:
        user_id = int(payload["user_id"])
    except (TypeError, ValueError):
        raise AuthError("Invalid token")

    shop_id = payload.get("shop_id")
    return TokenClaims(
        user_id=user_id,
        shop_id=int(shop_id) if shop_id is not None else None,
        role=str(payload["role"]),
    )
