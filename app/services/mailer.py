import logging

import httpx

from app import config
from app.errors import DeliveryError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


async def send_email(to: str, subject: str, html: str, text: str | None = None):
    if not config.RESEND_API_KEY:
        raise DeliveryError("Email delivery is not configured")

    body = {"from": config.MAIL_FROM, "to": [to], "subject": subject, "html": html}
    if text:
        body["text"] = text

    try:
        async with httpx.AsyncClient(timeout=20) as client:
            r = await client.post(
                RESEND_URL,
                headers={
                    "Authorization": f"Bearer {config.RESEND_API_KEY}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
            r.raise_for_status()
            return r.json()
    except httpx.HTTPError as e:
        logger.error("Email delivery to %s failed: %s", to, e)
        raise DeliveryError() from e


async def send_otp_email(to: str, code: str):
    return await send_email(
        to=to,
        subject="Your verification code",
        html=(
            "<div style='font-family:Arial,sans-serif;line-height:1.5'>"
            "<h2>Verify your email</h2>"
            f"<p>Your Unalone verification code is <strong style='font-size:20px'>{code}</strong>.</p>"
            f"<p style='color:#666;font-size:12px'>It expires in {config.OTP_TTL_MINUTES} minutes.</p>"
            "</div>"
        ),
        text=f"Your OTP is {code}",
    )
