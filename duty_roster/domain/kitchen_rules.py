"""Kitchen rotation rules: who may cook or wash, and weekly auto-assignment.

The configurable rules (KitchenRulesModel) narrow the pool further than
can_assign_to_kitchen_duty; they never widen it.
"""

import random
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

from duty_roster.domain.eligibility import (
    SATURDAY,
    SUNDAY,
    can_assign_to_kitchen_duty,
    day_of_week,
)
from duty_roster.models.dc_models import (
    KitchenRulesModel,
    MealModel,
    MealTypeModel,
    UserModel,
    UserRole,
)
from duty_roster.models.schema_models import MealSchema

SUNDAY_SKIPPED_MEALS = (MealTypeModel.Breakfast, MealTypeModel.Lunch)


def can_user_cook(user: UserModel, duty_date: date, rules: KitchenRulesModel) -> bool:
    if not can_assign_to_kitchen_duty(user, duty_date):
        return False

    if any(role in user.roles for role in rules.exclude_roles_cooking):
        return False

    weekday = day_of_week(duty_date)
    for role in user.roles:
        restriction = rules.day_restrictions.get(role)
        if restriction and weekday in restriction.exclude_days:
            # DTS restrictions only apply to washing.
            if role == UserRole.DTS:
                continue
            return False

    return True


def can_user_wash_dishes(
    user: UserModel, duty_date: date, meal_type: MealTypeModel, rules: KitchenRulesModel
) -> bool:
    if not can_assign_to_kitchen_duty(user, duty_date):
        return False

    if any(role in user.roles for role in rules.exclude_roles_washing):
        return False

    weekday = day_of_week(duty_date)
    meal_name = MealTypeModel(meal_type).value.lower()
    for role in user.roles:
        restriction = rules.day_restrictions.get(role)
        if restriction is None:
            continue
        # exclude_days only limits washing for DTS, and only Monday to Friday.
        if role == UserRole.DTS and weekday in restriction.exclude_days and 1 <= weekday <= 5:
            return False
        if weekday == SATURDAY and meal_name in restriction.exclude_meals:
            return False

    return True


def _pick(candidates: Sequence[UserModel], rng: random.Random) -> Optional[UserModel]:
    if not candidates:
        return None
    return candidates[rng.randrange(len(candidates))]


def auto_assign_kitchen_duties(
    meals: List[Union[MealModel, MealSchema]],
    users: List[UserModel],
    rules: KitchenRulesModel,
    rng: random.Random,
) -> List[Union[MealModel, MealSchema]]:
    """Return copies of the meals with a random eligible cook and washer.

    Sunday breakfast and lunch are returned unchanged. The washer is never
    the cook; a slot with no eligible user is left empty.
    """
    assigned = []
    for meal in meals:
        if day_of_week(meal.date) == SUNDAY and meal.meal_type in SUNDAY_SKIPPED_MEALS:
            assigned.append(meal)
            continue

        cooks = [u for u in users if can_user_cook(u, meal.date, rules)]
        cook = _pick(cooks, rng)
        cook_id = cook.user_id if cook else None

        washers = [
            u
            for u in users
            if u.user_id != cook_id
            and can_user_wash_dishes(u, meal.date, meal.meal_type, rules)
        ]
        washer = _pick(washers, rng)

        assigned.append(
            meal.model_copy(
                update={
                    "cook_id": cook_id,
                    "washer_id": washer.user_id if washer else None,
                }
            )
        )
    return assigned


def publication_time(now: datetime, rules: KitchenRulesModel) -> datetime:
    """Publish moment of the week (Monday-based) that contains now."""
    publish = rules.publish_time
    # publish.day uses 0=Sunday; Sunday is the last day of a Monday-based week.
    offset = (publish.day - 1) % 7
    monday = now.date() - timedelta(days=now.weekday())
    publish_date = monday + timedelta(days=offset)
    return now.replace(
        year=publish_date.year,
        month=publish_date.month,
        day=publish_date.day,
        hour=publish.hour,
        minute=publish.minute,
        second=0,
        microsecond=0,
    )


def is_schedule_published(now: datetime, rules: KitchenRulesModel) -> bool:
    return now >= publication_time(now, rules)
