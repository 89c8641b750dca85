import logging
import uuid
from datetime import timedelta

from fastapi import Request, Response
from sqlalchemy import delete, select
from sqlalchemy.orm import Session as DbSession

from app import config
from app.errors import InvalidSession, SessionExpired
from app.models.session import Session
from .tokens import as_utc, create_access_token, hash_token, new_token, utcnow

logger = logging.getLogger(__name__)


def new_session_token() -> str:
    return new_token()


def hash_session_token(token: str) -> str:
    return hash_token(token)


def _set_cookie(resp: Response, key: str, value: str, max_age: int):
    resp.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=config.IS_PROD,
        samesite=config.COOKIE_SAMESITE,
        domain=config.COOKIE_DOMAIN,
        max_age=max_age,
        path="/",
    )


def set_access_cookie(resp: Response, token: str, minutes: int = config.ACCESS_TOKEN_MINUTES):
    _set_cookie(resp, config.ACCESS_COOKIE, token, minutes * 60)


def set_session_cookie(resp: Response, token: str, days: int = config.SESSION_DAYS):
    _set_cookie(resp, config.SESSION_COOKIE, token, days * 24 * 60 * 60)


def clear_auth_cookies(resp: Response):
    for key in (config.ACCESS_COOKIE, config.SESSION_COOKIE):
        resp.delete_cookie(
            key,
            path="/",
            domain=config.COOKIE_DOMAIN,
            secure=config.IS_PROD,
            httponly=True,
            samesite=config.COOKIE_SAMESITE,
        )


def _evict_oldest(db: DbSession, user_id: uuid.UUID, keep: int) -> int:
    """Delete the user's oldest sessions so that at most `keep` remain."""
    ids = db.execute(
        select(Session.id)
        .where(Session.user_id == user_id)
        .order_by(Session.created_at.desc(), Session.expires_at.desc())
        .offset(keep)
    ).scalars().all()
    if ids:
        db.execute(delete(Session).where(Session.id.in_(ids)))
        logger.info("Evicted %d old sessions for user %s", len(ids), user_id)
    return len(ids)


def issue_session(db: DbSession, user_id: uuid.UUID, req: Request | None = None) -> str:
    """Insert a new session row and return the raw token for the cookie."""
    if config.MAX_SESSIONS_PER_USER > 0:
        _evict_oldest(db, user_id, config.MAX_SESSIONS_PER_USER - 1)

    user_agent = req.headers.get("user-agent") if req else None

    st = new_session_token()
    sess = Session(
        user_id=user_id,
        session_token=hash_session_token(st),
        expires_at=utcnow() + timedelta(days=config.SESSION_DAYS),
        user_agent=user_agent[:255] if user_agent else None,
        ip_address=req.client.host if req and req.client else None,
    )
    db.add(sess)
    db.commit()
    return st


def issue_credentials(resp: Response, db: DbSession, user_id: uuid.UUID, req: Request | None = None) -> None:
    """Start a session for user_id and attach both auth cookies to resp."""
    st = issue_session(db, user_id, req)
    set_session_cookie(resp, st)
    set_access_cookie(resp, create_access_token(user_id))


def find_session(db: DbSession, raw: str) -> Session | None:
    return db.execute(
        select(Session).where(Session.session_token == hash_session_token(raw))
    ).scalar_one_or_none()


def resolve_session(db: DbSession, raw: str) -> Session:
    """Return the live session for a cookie value; expired rows are removed."""
    sess = find_session(db, raw)
    if not sess:
        raise InvalidSession()

    if as_utc(sess.expires_at) < utcnow():
        db.delete(sess)
        db.commit()
        raise SessionExpired()
    return sess


def revoke_session(db: DbSession, raw: str) -> bool:
    result = db.execute(delete(Session).where(Session.session_token == hash_session_token(raw)))
    db.commit()
    return result.rowcount > 0


def purge_expired(db: DbSession) -> int:
    result = db.execute(delete(Session).where(Session.expires_at < utcnow()))
    db.commit()
    return result.rowcount
