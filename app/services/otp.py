import logging
import secrets
from datetime import timedelta

from fastapi.concurrency import run_in_threadpool

from app import config
from app.errors import EmailNotVerified, OtpExpired, OtpMismatch, OtpNotFound
from app.services import mailer
from app.services.otp_store import OtpRecord, OtpStore
from app.services.tokens import utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.lower().strip()


def generate_otp() -> str:
    return str(secrets.randbelow(900_000) + 100_000)


async def send_otp(store: OtpStore, email: str) -> None:
    """Issue a fresh code for email, replacing any earlier one, and mail it."""
    key = normalize_email(email)
    code = generate_otp()
    record = OtpRecord(code=code, expires_at=utcnow() + timedelta(minutes=config.OTP_TTL_MINUTES))
    # the redis client blocks
    await run_in_threadpool(store.set, key, record)
    await mailer.send_otp_email(key, code)
    logger.info("OTP sent to %s", key)


def verify_otp(store: OtpStore, email: str, code: str) -> None:
    key = normalize_email(email)
    record = store.get(key)
    if record is None:
        raise OtpNotFound()

    if record.expires_at < utcnow():
        store.delete(key)
        logger.info("Expired OTP presented for %s", key)
        raise OtpExpired()

    if not secrets.compare_digest(record.code, code.strip()):
        logger.info("Wrong OTP presented for %s", key)
        raise OtpMismatch()

    if record.verified:
        return

    if not store.compare_and_set(key, record, record.mark_verified()):
        # replaced by a newer send-otp or removed while we were checking
        raise OtpMismatch()


def require_verified(store: OtpStore, email: str) -> None:
    record = store.get(normalize_email(email))
    if record is None or not record.verified:
        raise EmailNotVerified()


def consume(store: OtpStore, email: str) -> None:
    store.delete(normalize_email(email))
