VERIFICATION_UNVERIFIED = "unverified"
VERIFICATION_EMAIL_VERIFIED = "email_verified"
VERIFICATION_STATUSES = {VERIFICATION_UNVERIFIED, VERIFICATION_EMAIL_VERIFIED}

NEARBY_FILTERS = {"all", "today", "soon"}
NEARBY_LIMIT = 50
DEFAULT_RADIUS_M = 5000

MAX_PARTICIPANTS = 10

JOIN_PENDING = "pending"
JOIN_ACCEPTED = "accepted"
JOIN_DECLINED = "declined"
JOIN_CANCELLED = "cancelled"

JOIN_STATES = {
    JOIN_PENDING,
    JOIN_ACCEPTED,
    JOIN_DECLINED,
    JOIN_CANCELLED,
}
