import uuid

from fastapi import Depends, Request
from sqlalchemy.orm import Session as DbSession

from app import config
from app.database import get_db
from app.errors import Unauthenticated, UserNotFound
from app.models.user import User
from app.services.tokens import decode_access_token


def get_current_user_id(req: Request) -> uuid.UUID:
    raw = req.cookies.get(config.ACCESS_COOKIE)
    if not raw:
        raise Unauthenticated()

    user_id = decode_access_token(raw)
    req.state.user_id = user_id
    return user_id


def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: DbSession = Depends(get_db),
) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user
