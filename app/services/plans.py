from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.orm import Session

from app.errors import (
    ConflictError,
    ForbiddenError,
    JoinRequestNotFound,
    PlanNotFound,
    ValidationError,
)
from app.models.join_request import JoinRequest
from app.models.plan import Plan
from app.models.types import point_ewkt
from app.models.user import User
from app.schemas.plan import PlanCreate
from app.services.state_machine import ensure_transition
from app.services.tokens import as_utc, utcnow
from app.utils.constants import (
    JOIN_ACCEPTED,
    JOIN_CANCELLED,
    JOIN_DECLINED,
    JOIN_PENDING,
    NEARBY_LIMIT,
    VERIFICATION_EMAIL_VERIFIED,
)

logger = logging.getLogger(__name__)

TIME_FILTERS = {
    "all": "",
    "today": "AND p.time < NOW() + INTERVAL '24 hours'",
    "soon": "AND p.time < NOW() + INTERVAL '3 hours'",
}

NEARBY_SQL = """
    SELECT
      p.id,
      p.title,
      p.description,
      p.category,
      p.location_name,
      p.time,
      p.max_people,
      p.current_people,
      u.name AS creator_name,
      u.verification_status,
      ST_Y(p.location::geometry) AS lat,
      ST_X(p.location::geometry) AS lng,
      ST_Distance(
        p.location,
        ST_SetSRID(ST_MakePoint(:lng, :lat), 4326)::geography
      ) AS distance_m
    FROM plans p
    JOIN users u ON u.id = p.user_id
    WHERE ST_DWithin(
      p.location,
      ST_SetSRID(ST_MakePoint(:lng, :lat), 4326)::geography,
      :radius
    )
    {time_filter}
    ORDER BY distance_m ASC
    LIMIT :limit
"""


def initials(name: str) -> str:
    return "".join(part[0] for part in (name or "").split() if part)


def creator_view(name: str, verification_status: str) -> dict[str, Any]:
    return {
        "name": name,
        "verified": verification_status == VERIFICATION_EMAIL_VERIFIED,
        "initials": initials(name),
    }


def format_km(meters: float | None) -> str:
    return f"{(meters or 0) / 1000:.1f}"


def build_nearby_query(filter: str):
    if filter not in TIME_FILTERS:
        raise ValidationError(f"Invalid filter: {filter}")
    return text(NEARBY_SQL.format(time_filter=TIME_FILTERS[filter]))


def nearby_row_to_plan(row) -> dict[str, Any]:
    return {
        "id": str(row["id"]),
        "title": row["title"],
        "description": row["description"],
        "category": row["category"],
        "location": {
            "lat": row["lat"],
            "lng": row["lng"],
            "placeName": row["location_name"],
        },
        "datetime": row["time"],
        "participants": row["current_people"],
        "maxParticipants": row["max_people"],
        "distance": format_km(row["distance_m"]),
        "creator": creator_view(row["creator_name"], row["verification_status"]),
    }


def nearby_plans(db: Session, lat: float, lng: float, radius: int, filter: str = "all") -> list[dict[str, Any]]:
    """
    Plans within `radius` meters of (lat, lng), closest first.

    PostGIS does the distance math; this only shapes the rows.
    """
    q = build_nearby_query(filter)
    rows = db.execute(
        q,
        {"lat": lat, "lng": lng, "radius": radius, "limit": NEARBY_LIMIT},
    ).mappings().all()
    return [nearby_row_to_plan(r) for r in rows]


def create_plan(db: Session, user: User, payload: PlanCreate) -> dict[str, Any]:
    plan = Plan(
        user_id=user.id,
        title=payload.title.strip(),
        description=payload.description,
        category=payload.category,
        location=point_ewkt(payload.lat, payload.lng),
        location_name=payload.place_name.strip(),
        time=payload.starts_at,
        max_people=payload.max_participants,
        current_people=1,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    logger.info("Plan %s created by %s", plan.id, user.id)

    return {
        "id": str(plan.id),
        "title": plan.title,
        "description": plan.description,
        "category": plan.category,
        "location": {
            "lat": payload.lat,
            "lng": payload.lng,
            "placeName": plan.location_name,
        },
        "datetime": plan.time,
        "participants": plan.current_people,
        "maxParticipants": plan.max_people,
        "distance": 0,
        "creator": creator_view(user.name, user.verification_status),
        "status": "active",
        "createdAt": plan.created_at,
    }


# ---------- join requests ----------

def request_view(jr: JoinRequest, requester: User | None = None) -> dict[str, Any]:
    out = {
        "id": str(jr.id),
        "planId": str(jr.plan_id),
        "userId": str(jr.user_id),
        "status": jr.status,
        "createdAt": jr.created_at,
        "updatedAt": jr.updated_at,
    }
    if requester is not None:
        out["user"] = creator_view(requester.name, requester.verification_status)
    return out


def _get_plan(db: Session, plan_id: uuid.UUID) -> Plan:
    plan = db.get(Plan, plan_id)
    if not plan:
        raise PlanNotFound()
    return plan


def _get_owned_plan(db: Session, plan_id: uuid.UUID, user_id: uuid.UUID) -> Plan:
    plan = _get_plan(db, plan_id)
    if plan.user_id != user_id:
        raise ForbiddenError("Only the plan creator can manage requests")
    return plan


def request_join(db: Session, plan_id: uuid.UUID, user_id: uuid.UUID) -> JoinRequest:
    plan = _get_plan(db, plan_id)

    if plan.user_id == user_id:
        raise ValidationError("You cannot join your own plan")
    if as_utc(plan.time) <= utcnow():
        raise ValidationError("This plan has already started")
    if plan.current_people >= plan.max_people:
        raise ValidationError("This plan is full")

    jr = db.execute(
        select(JoinRequest).where(JoinRequest.plan_id == plan_id, JoinRequest.user_id == user_id)
    ).scalar_one_or_none()

    if jr is None:
        jr = JoinRequest(plan_id=plan_id, user_id=user_id, status=JOIN_PENDING)
        db.add(jr)
    elif jr.status in (JOIN_PENDING, JOIN_ACCEPTED):
        raise ConflictError("You already requested to join this plan")
    else:
        ensure_transition(jr.status, JOIN_PENDING)
        jr.status = JOIN_PENDING

    db.commit()
    db.refresh(jr)
    logger.info("User %s requested to join plan %s", user_id, plan_id)
    return jr


def cancel_join(db: Session, plan_id: uuid.UUID, user_id: uuid.UUID) -> JoinRequest:
    plan = _get_plan(db, plan_id)
    jr = db.execute(
        select(JoinRequest).where(JoinRequest.plan_id == plan_id, JoinRequest.user_id == user_id)
    ).scalar_one_or_none()
    if not jr:
        raise JoinRequestNotFound()

    was_accepted = jr.status == JOIN_ACCEPTED
    ensure_transition(jr.status, JOIN_CANCELLED)
    jr.status = JOIN_CANCELLED
    if was_accepted:
        plan.current_people = max(1, plan.current_people - 1)

    db.commit()
    db.refresh(jr)
    return jr


def list_requests(db: Session, plan_id: uuid.UUID, user_id: uuid.UUID) -> list[dict[str, Any]]:
    _get_owned_plan(db, plan_id, user_id)
    rows = db.execute(
        select(JoinRequest, User)
        .join(User, User.id == JoinRequest.user_id)
        .where(JoinRequest.plan_id == plan_id)
        .order_by(JoinRequest.created_at.asc())
    ).all()
    return [request_view(jr, u) for jr, u in rows]


def decide_request(
    db: Session,
    plan_id: uuid.UUID,
    request_id: uuid.UUID,
    user_id: uuid.UUID,
    decision: str,
) -> JoinRequest:
    if decision not in (JOIN_ACCEPTED, JOIN_DECLINED):
        raise ValidationError(f"Invalid decision: {decision}")

    plan = _get_owned_plan(db, plan_id, user_id)
    jr = db.get(JoinRequest, request_id)
    if not jr or jr.plan_id != plan.id:
        raise JoinRequestNotFound()

    ensure_transition(jr.status, decision)

    if decision == JOIN_ACCEPTED:
        if plan.current_people >= plan.max_people:
            raise ValidationError("This plan is full")
        plan.current_people += 1

    jr.status = decision
    db.commit()
    db.refresh(jr)
    logger.info("Join request %s on plan %s %s", jr.id, plan_id, decision)
    return jr
