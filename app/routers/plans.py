import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import ValidationError
from app.models.user import User
from app.schemas.plan import PlanCreate
from app.services import plans as plans_service
from app.services.authz import get_current_user, get_current_user_id
from app.utils.constants import DEFAULT_RADIUS_M, JOIN_ACCEPTED, JOIN_DECLINED

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("/nearby")
def nearby(
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius: int = Query(DEFAULT_RADIUS_M, gt=0),
    filter: str = "all",
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if lat is None or lng is None:
        raise ValidationError("lat and lng required")

    return plans_service.nearby_plans(db, lat=lat, lng=lng, radius=radius, filter=filter)


@router.post("/create", status_code=201)
def create(payload: PlanCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    plan = plans_service.create_plan(db, user, payload)
    return {"success": True, "message": "Plan created successfully", "plan": plan}


@router.post("/{plan_id}/join", status_code=201)
def join(plan_id: uuid.UUID, user_id: uuid.UUID = Depends(get_current_user_id), db: Session = Depends(get_db)):
    jr = plans_service.request_join(db, plan_id, user_id)
    return {"message": "Join request sent", "request": plans_service.request_view(jr)}


@router.post("/{plan_id}/join/cancel")
def cancel_join(plan_id: uuid.UUID, user_id: uuid.UUID = Depends(get_current_user_id), db: Session = Depends(get_db)):
    jr = plans_service.cancel_join(db, plan_id, user_id)
    return {"message": "Join request cancelled", "request": plans_service.request_view(jr)}


@router.get("/{plan_id}/requests")
def list_requests(plan_id: uuid.UUID, user_id: uuid.UUID = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return plans_service.list_requests(db, plan_id, user_id)


@router.post("/{plan_id}/requests/{request_id}/accept")
def accept_request(
    plan_id: uuid.UUID,
    request_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    jr = plans_service.decide_request(db, plan_id, request_id, user_id, JOIN_ACCEPTED)
    return {"message": "Request accepted", "request": plans_service.request_view(jr)}


@router.post("/{plan_id}/requests/{request_id}/decline")
def decline_request(
    plan_id: uuid.UUID,
    request_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    jr = plans_service.decide_request(db, plan_id, request_id, user_id, JOIN_DECLINED)
    return {"message": "Request declined", "request": plans_service.request_view(jr)}
