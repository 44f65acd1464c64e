"""Restaurant account profile routes."""

import logging

from fastapi import APIRouter, Request
from sqlalchemy import func

from restopos.core.exceptions import ConflictError, NotFoundError
from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireAdmin
from restopos.core.responses import dump, success_response
from restopos.db.session import DbSession
from restopos.models.user import RestaurantPreferences, User
from restopos.schemas.restaurant import RestaurantResponse, RestaurantUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_user(db, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/me")
@limiter.limit("60/minute")
def get_profile(request: Request, db: DbSession, current_user: CurrentUser):
    """Account fields and support/licensing preferences of the caller."""
    user = _load_user(db, current_user.user_id)
    return success_response(restaurant=dump(RestaurantResponse, user))


@router.put("/me")
@limiter.limit("20/minute")
def update_profile(request: Request, payload: RestaurantUpdate, db: DbSession, current_user: RequireAdmin):
    user = _load_user(db, current_user.user_id)
    data = payload.model_dump(exclude_unset=True, exclude={"preferences"})

    if data.get("email"):
        email = str(data["email"]).lower()
        taken = (
            db.query(User.id)
            .filter(func.lower(User.email) == email, User.id != user.id)
            .first()
        )
        if taken is not None:
            raise ConflictError("Email already in use")
        data["email"] = email

    for key, value in data.items():
        if value is not None:
            setattr(user, key, value)

    if payload.preferences is not None:
        if user.preferences is None:
            user.preferences = RestaurantPreferences()
        for key, value in payload.preferences.model_dump(exclude_unset=True).items():
            setattr(user.preferences, key, value)

    db.commit()
    db.refresh(user)
    logger.info(f"Restaurant profile updated for user {user.id}")
    return success_response("Profile updated successfully", restaurant=dump(RestaurantResponse, user))
