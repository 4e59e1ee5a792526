"""Signed access tokens carrying a user id as their subject."""

from datetime import datetime, timedelta, timezone

import jwt

from prep_backend.core import config


class InvalidTokenSubject(jwt.InvalidTokenError):
    """Token verified, but its subject is not a user id."""


def create_access_token(subject: int | str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    claims = {"sub": str(subject), "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )


def user_id_from_token(token: str) -> int:
    """Verify signature and expiry, then return the user id in ``sub``."""
    subject = decode_access_token(token)["sub"]
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise InvalidTokenSubject(f"Token subject {subject!r} is not a user id") from exc
