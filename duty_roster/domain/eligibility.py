"""Duty eligibility and access rules that are independent from HTTP and DB.

Every function here is a total predicate: an absent user or absent context
yields the conservative answer (False, or the login route). The current time
is always passed in by the caller.

Rule of thumb:
- OK: role checks, weekday/hour arithmetic, ordered lookups.
- Not OK: touching DB sessions, Redis, FastAPI, datetime.now(), etc.
"""

import math
from datetime import date, datetime
from typing import Optional, Tuple

from duty_roster.models.dc_models import DutyCategory, UserModel, UserRole

SUNDAY = 0
FRIDAY = 5
SATURDAY = 6

EDIT_WINDOW_CLOSING_HOUR = 18
REMINDER_WINDOW_MINUTES = 15

LOGIN_ROUTE = "/login"

# Highest priority first.
DASHBOARD_ROUTES: Tuple[Tuple[UserRole, str], ...] = (
    (UserRole.Admin, "/admin"),
    (UserRole.Chef, "/chef"),
    (UserRole.WorkDutyManager, "/work-duty"),
    (UserRole.Missionary, "/missionary"),
    (UserRole.DTS, "/dts"),
    (UserRole.Staff, "/staff"),
)

# Categories a role may view. Roles not listed see nothing.
SCHEDULE_ACCESS = {
    UserRole.Admin: frozenset(DutyCategory),
    UserRole.Missionary: frozenset(DutyCategory),
    UserRole.Chef: frozenset({DutyCategory.cooking}),
    UserRole.WorkDutyManager: frozenset({DutyCategory.workDuty}),
    # Meant to be "own schedule only"; currently full access.
    UserRole.Staff: frozenset(DutyCategory),
    UserRole.DTS: frozenset({DutyCategory.cooking, DutyCategory.workDuty}),
}

# Roles allowed to create a schedule of each category.
SCHEDULE_CREATORS = {
    DutyCategory.meditation: frozenset({UserRole.Admin}),
    DutyCategory.cooking: frozenset({UserRole.Chef, UserRole.Admin}),
    DutyCategory.workDuty: frozenset({UserRole.WorkDutyManager, UserRole.Admin}),
}

EDITABLE_CATEGORIES = frozenset({DutyCategory.cooking, DutyCategory.workDuty})


def day_of_week(value: date) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


def _as_category(category) -> Optional[DutyCategory]:
    try:
        return DutyCategory(category)
    except ValueError:
        return None


# ==============================================================================
# ==== Roles ===================================================================
# ==============================================================================


def has_role(user: Optional[UserModel], role) -> bool:
    """Return True iff the user holds the role. No user never holds a role."""
    if user is None:
        return False
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return role in user.roles


def get_dashboard_for_user(user: Optional[UserModel]) -> str:
    """Return the landing route of the user's highest-priority role."""
    for role, route in DASHBOARD_ROUTES:
        if has_role(user, role):
            return route
    return LOGIN_ROUTE


# ==============================================================================
# ==== Schedule permissions ====================================================
# ==============================================================================


def can_access_schedule(user: Optional[UserModel], category) -> bool:
    category = _as_category(category)
    if user is None or category is None:
        return False
    return any(
        category in SCHEDULE_ACCESS.get(role, frozenset()) for role in user.roles
    )


def can_create_schedule(user: Optional[UserModel], category) -> bool:
    category = _as_category(category)
    if user is None or category is None:
        return False
    return any(has_role(user, role) for role in SCHEDULE_CREATORS[category])


def is_within_edit_window(now: datetime) -> bool:
    """Edits are open from Monday 00:00 until Friday 18:00 (local time of now)."""
    weekday = day_of_week(now.date())
    if weekday in (SATURDAY, SUNDAY):
        return False
    if weekday == FRIDAY and now.hour >= EDIT_WINDOW_CLOSING_HOUR:
        return False
    return True


def can_edit_schedule(user: Optional[UserModel], category, now: datetime) -> bool:
    """Admin only, and only while the weekly edit window is open.

    The window is checked against now (when the edit is submitted), not
    against the date of the duty being edited.
    """
    if _as_category(category) not in EDITABLE_CATEGORIES:
        return False
    if not has_role(user, UserRole.Admin):
        return False
    return is_within_edit_window(now)


# ==============================================================================
# ==== Duty assignment =========================================================
# ==============================================================================


def can_assign_to_kitchen_duty(user: Optional[UserModel], duty_date: date) -> bool:
    """Return False when any held role excludes the user on that date.

    Exclusions are absolute: no other role can lift them.
    """
    if user is None:
        return False

    weekday = day_of_week(duty_date)

    if weekday == SATURDAY and has_role(user, UserRole.PraiseTeam):
        return False

    if weekday in (SATURDAY, SUNDAY) and has_role(user, UserRole.DTS):
        return False

    if has_role(user, UserRole.Missionary):
        return False

    return True


# ==============================================================================
# ==== Reminders ===============================================================
# ==============================================================================


def minutes_until(scheduled_time: datetime, now: datetime) -> int:
    """Whole minutes from now to scheduled_time, rounded half up."""
    seconds = (scheduled_time - now).total_seconds()
    return math.floor(seconds / 60 + 0.5)


def should_send_reminder(scheduled_time: datetime, now: datetime) -> bool:
    """True while the event is at most 15 minutes away and not yet passed."""
    return 0 <= minutes_until(scheduled_time, now) <= REMINDER_WINDOW_MINUTES
