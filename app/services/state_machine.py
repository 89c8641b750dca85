from app.errors import ValidationError
from app.utils.constants import (
    JOIN_ACCEPTED,
    JOIN_CANCELLED,
    JOIN_DECLINED,
    JOIN_PENDING,
    JOIN_STATES,
)

ALLOWED_TRANSITIONS = {
    JOIN_PENDING: [JOIN_ACCEPTED, JOIN_DECLINED, JOIN_CANCELLED],
    JOIN_DECLINED: [JOIN_PENDING],
    JOIN_CANCELLED: [JOIN_PENDING],
    JOIN_ACCEPTED: [JOIN_CANCELLED],
}


def ensure_transition(current: str, target: str) -> None:
    if current not in JOIN_STATES:
        raise ValueError(f"Unknown state: {current}")
    if target not in JOIN_STATES:
        raise ValueError(f"Unknown target state: {target}")

    allowed = ALLOWED_TRANSITIONS.get(current, [])
    if target not in allowed:
        raise ValidationError(f"Cannot move request from {current} to {target}")
