import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from app import config
from app.database import get_db
from app.errors import AccountNotVerified, AlreadyExists, InvalidCredentials, Unauthenticated, UserNotFound
from app.models.user import User
from app.schemas.auth import LoginIn, RegisterIn, SendOtpIn, UserOut, VerifyOtpIn
from app.services import otp
from app.services.authz import get_current_user_id
from app.services.otp_store import OtpStore, get_otp_store
from app.services.passwords import hash_password, verify_password
from app.services.sessions import (
    clear_auth_cookies,
    issue_credentials,
    resolve_session,
    revoke_session,
    set_access_cookie,
)
from app.services.tokens import create_access_token
from app.utils.constants import VERIFICATION_EMAIL_VERIFIED

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp")
async def send_otp(payload: SendOtpIn, store: OtpStore = Depends(get_otp_store)):
    await otp.send_otp(store, payload.email)
    return {"message": "OTP sent"}


@router.post("/verify-otp")
def verify_otp(payload: VerifyOtpIn, store: OtpStore = Depends(get_otp_store)):
    otp.verify_otp(store, payload.email, payload.otp)
    return {"message": "Email verified"}


@router.post("/register")
def register(
    payload: RegisterIn,
    req: Request,
    resp: Response,
    db: DbSession = Depends(get_db),
    store: OtpStore = Depends(get_otp_store),
):
    email = otp.normalize_email(payload.email)
    otp.require_verified(store, email)

    exists = db.execute(select(User.id).where(User.email == email)).first()
    if exists:
        raise AlreadyExists()

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        verification_status=VERIFICATION_EMAIL_VERIFIED,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    otp.consume(store, email)
    issue_credentials(resp, db, user.id, req)
    logger.info("Registered user %s", user.id)

    return {"message": "User registered successfully", "user": UserOut.of(user)}


@router.post("/login")
def login(payload: LoginIn, req: Request, resp: Response, db: DbSession = Depends(get_db)):
    email = otp.normalize_email(payload.email)
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    if not verify_password(payload.password, user.password_hash if user else None):
        raise InvalidCredentials()

    if user.verification_status != VERIFICATION_EMAIL_VERIFIED:
        raise AccountNotVerified()

    issue_credentials(resp, db, user.id, req)
    logger.info("User %s logged in", user.id)
    return {"message": "Login successful", "user": UserOut.of(user)}


@router.post("/refresh")
def refresh(req: Request, resp: Response, db: DbSession = Depends(get_db)):
    raw = req.cookies.get(config.SESSION_COOKIE)
    if not raw:
        raise Unauthenticated()

    sess = resolve_session(db, raw)
    set_access_cookie(resp, create_access_token(sess.user_id))
    return {"message": "Token refreshed"}


@router.post("/logout")
def logout(req: Request, resp: Response, db: DbSession = Depends(get_db)):
    raw = req.cookies.get(config.SESSION_COOKIE)
    if raw and revoke_session(db, raw):
        logger.info("Session revoked on logout")
    clear_auth_cookies(resp)
    return {"message": "Logged out"}


@router.get("/me")
def me(user_id=Depends(get_current_user_id), db: DbSession = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return {"user": UserOut.of(user)}
