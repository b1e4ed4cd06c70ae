from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status

from duty_roster.domain.eligibility import (
    can_edit_schedule,
    has_role,
    is_within_edit_window,
)
from duty_roster.models.dc_models import DutyCategory, UserModel, UserRole

EDIT_WINDOW_CLOSED = "Schedule edits are closed until Monday"


def forbid_unless(allowed: bool, detail: str = "Not allowed") -> None:
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_admin(user: Optional[UserModel]) -> None:
    forbid_unless(has_role(user, UserRole.Admin), "Admin role required")


def require_edit_window(now: datetime) -> None:
    forbid_unless(is_within_edit_window(now), EDIT_WINDOW_CLOSED)


def require_edit(user: Optional[UserModel], category: DutyCategory, now: datetime) -> None:
    """403 unless the user may edit the category right now.

    An admin outside the window gets the closed-window message.
    """
    if can_edit_schedule(user, category, now):
        return
    require_admin(user)
    require_edit_window(now)
    forbid_unless(False, f"{category.value} schedules cannot be edited")


def not_found(error: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


def server_error(error: RuntimeError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
