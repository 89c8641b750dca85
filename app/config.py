import os

from dotenv import load_dotenv

load_dotenv()

ENV = os.getenv("ENV", "development").strip()
IS_PROD = ENV == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./unalone.db").strip()

# access assertions
JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256").strip()
ACCESS_TOKEN_MINUTES = int(os.getenv("ACCESS_TOKEN_MINUTES", "15"))

# server-side sessions
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
MAX_SESSIONS_PER_USER = int(os.getenv("MAX_SESSIONS_PER_USER", "10"))  # 0 = unlimited

# one-time codes
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "5"))
OTP_STORE_TTL_SECONDS = int(os.getenv("OTP_STORE_TTL_SECONDS", str(OTP_TTL_MINUTES * 60 * 2)))
OTP_BACKEND = os.getenv("OTP_BACKEND", "memory").strip().lower()  # memory | redis
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0").strip()

# mail (Resend HTTP API)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
MAIL_FROM = os.getenv("MAIL_FROM", "Unalone <no-reply@unalone.app>").strip()

# cookies
ACCESS_COOKIE = "ua_access"
SESSION_COOKIE = "ua_session"
COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN", "").strip() or None
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax").strip().lower()

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
