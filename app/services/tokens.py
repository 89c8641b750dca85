import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from app import config
from app.errors import InvalidToken


def new_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def expires_in(minutes: int) -> datetime:
    return utcnow() + timedelta(minutes=minutes)


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _secret() -> str:
    if not config.JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not set")
    return config.JWT_SECRET


def create_access_token(user_id: uuid.UUID, minutes: int | None = None) -> str:
    """Short-lived signed assertion of identity; never stored server-side."""
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "typ": "access",
        "iat": now,
        "exp": now + timedelta(minutes=minutes if minutes is not None else config.ACCESS_TOKEN_MINUTES),
    }
    return jwt.encode(payload, _secret(), algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidToken() from e

    if payload.get("typ") != "access":
        raise InvalidToken()

    try:
        return uuid.UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidToken() from e
