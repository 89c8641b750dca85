# tests/test_sessions.py

import uuid
from datetime import timedelta

from sqlalchemy import func, select

from app import config
from app.models.session import Session
from app.services.sessions import hash_session_token, issue_session, purge_expired
from app.services.tokens import create_access_token, utcnow


def _sessions(db_session, user_id):
    db_session.expire_all()
    return db_session.execute(select(Session).where(Session.user_id == user_id)).scalars().all()


def test_session_token_is_stored_hashed(client, create_user, login, db_session):
    user = create_user()
    resp = login(user.email)
    raw = resp.cookies[config.SESSION_COOKIE]

    (sess,) = _sessions(db_session, user.id)
    assert sess.session_token == hash_session_token(raw)
    assert sess.session_token != raw


def test_refresh_issues_new_access_cookie(client, create_user, login, db_session):
    user = create_user()
    login(user.email)
    before = _sessions(db_session, user.id)[0].expires_at

    client.cookies.delete(config.ACCESS_COOKIE)
    assert client.get("/auth/me").status_code == 401

    resp = client.post("/auth/refresh")
    assert resp.status_code == 200
    assert config.ACCESS_COOKIE in resp.cookies
    assert config.SESSION_COOKIE not in resp.cookies

    assert client.get("/auth/me").status_code == 200

    # fixed window: refresh does not push the expiry out
    assert _sessions(db_session, user.id)[0].expires_at == before


def test_refresh_without_session_cookie(client):
    resp = client.post("/auth/refresh")
    assert resp.status_code == 401


def test_refresh_with_unknown_session(client):
    client.cookies.set(config.SESSION_COOKIE, "made-up-session-id")
    resp = client.post("/auth/refresh")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid session"
    assert config.ACCESS_COOKIE not in resp.cookies


def test_refresh_with_expired_session(client, create_user, login, db_session):
    user = create_user()
    login(user.email)

    (sess,) = _sessions(db_session, user.id)
    sess.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    resp = client.post("/auth/refresh")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Session expired"
    assert config.ACCESS_COOKIE not in resp.cookies
    assert _sessions(db_session, user.id) == []


def test_refresh_after_logout_fails(client, create_user, login):
    user = create_user()
    resp = login(user.email)
    raw = resp.cookies[config.SESSION_COOKIE]

    assert client.post("/auth/logout").status_code == 200

    client.cookies.set(config.SESSION_COOKIE, raw)
    resp = client.post("/auth/refresh")
    assert resp.status_code == 403


def test_logout_is_idempotent(client, create_user, login, db_session):
    user = create_user()
    resp = login(user.email)
    raw = resp.cookies[config.SESSION_COOKIE]

    first = client.post("/auth/logout")
    assert first.status_code == 200
    assert _sessions(db_session, user.id) == []
    assert config.ACCESS_COOKIE not in client.cookies
    assert config.SESSION_COOKIE not in client.cookies

    client.cookies.set(config.SESSION_COOKIE, raw)
    second = client.post("/auth/logout")
    assert second.status_code == 200

    client.cookies.clear()
    assert client.post("/auth/logout").status_code == 200


def test_expired_access_token_is_rejected(client, create_user):
    user = create_user()
    client.cookies.set(config.ACCESS_COOKIE, create_access_token(user.id, minutes=-1))

    resp = client.get("/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired token"


def test_session_cap_evicts_oldest(create_user, db_session):
    user = create_user()
    tokens = [issue_session(db_session, user.id) for _ in range(config.MAX_SESSIONS_PER_USER + 2)]

    rows = _sessions(db_session, user.id)
    assert len(rows) == config.MAX_SESSIONS_PER_USER

    kept = {r.session_token for r in rows}
    assert {hash_session_token(t) for t in tokens[-config.MAX_SESSIONS_PER_USER:]} == kept


def test_purge_expired(create_user, db_session):
    user = create_user()
    issue_session(db_session, user.id)
    db_session.add(Session(
        user_id=user.id,
        session_token=hash_session_token(str(uuid.uuid4())),
        expires_at=utcnow() - timedelta(days=1),
    ))
    db_session.commit()

    assert purge_expired(db_session) == 1
    assert db_session.execute(select(func.count()).select_from(Session)).scalar_one() == 1
