"""Personal weekly participation schedule, laid out as plain table rows.

The rows feed both the JSON endpoint and the PDF export.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from duty_roster.domain.formatting import DAY_NAMES, day_name, end_of_week
from duty_roster.models.dc_models import PersonalScheduleModel, UserModel
from duty_roster.models.schema_models import MealSchema, MeditationSchema, WorkDutySchema

MEDITATION_HEADERS = ["Day", "Bible Verse", "Leader"]
COOKING_HEADERS = ["Day", "Time", "Menu", "Cook", "Washing Dishes"]
WORK_DUTY_HEADERS = ["Day", "Time", "Task", "Participants"]

UNKNOWN_USER = "..."


def _display_name(user_id: Optional[UUID], me: UserModel, people: Dict[UUID, UserModel]) -> str:
    if user_id is None:
        return UNKNOWN_USER
    if user_id == me.user_id:
        return "you"
    person = people.get(user_id)
    if person is None:
        return UNKNOWN_USER
    return person.full_name


def _in_week(value: date, week_start: date) -> bool:
    return week_start <= value <= end_of_week(week_start)


def build_personal_schedule(
    user: UserModel,
    week_start: date,
    meditations: List[MeditationSchema],
    meals: List[MealSchema],
    work_duties: List[WorkDutySchema],
    users: List[UserModel],
) -> PersonalScheduleModel:
    """Build the three tables of the personal schedule for one week.

    Args:
        user (UserModel): The member the schedule is for
        week_start (date): Monday of the week
        meditations (List[MeditationSchema]): Meditation sessions (any dates)
        meals (List[MealSchema]): Meals (any dates)
        work_duties (List[WorkDutySchema]): Work duties (any dates)
        users (List[UserModel]): Everyone, to resolve names

    Returns:
        PersonalScheduleModel: Rows for meditation, cooking and work duties
    """
    people = {u.user_id: u for u in users}

    meditation_by_date = {m.date: m for m in meditations if _in_week(m.date, week_start)}
    meditation_rows = []
    for offset, name in enumerate(DAY_NAMES):
        meditation = meditation_by_date.get(week_start + timedelta(days=offset))
        if meditation is None:
            meditation_rows.append([name, "-", "-"])
        else:
            leader = "-"
            if meditation.user_id == user.user_id or meditation.user_id in people:
                leader = _display_name(meditation.user_id, user, people)
            meditation_rows.append([name, meditation.bible_verse, leader])

    cooking_rows = [
        [
            day_name(meal.date),
            meal.meal_type.value,
            meal.meal_name,
            _display_name(meal.cook_id, user, people),
            _display_name(meal.washer_id, user, people),
        ]
        for meal in sorted(meals, key=lambda m: (m.date, m.prep_time))
        if _in_week(meal.date, week_start)
        and user.user_id in (meal.cook_id, meal.washer_id)
    ]
    if not cooking_rows:
        cooking_rows.append(["-", "-", "No cooking duties assigned", "-", "-"])

    work_duty_rows = [
        [
            day_name(duty.date),
            duty.time,
            duty.task_name,
            ", ".join(_display_name(i, user, people) for i in duty.assigned_user_ids),
        ]
        for duty in sorted(work_duties, key=lambda d: (d.date, d.time))
        if _in_week(duty.date, week_start) and user.user_id in duty.assigned_user_ids
    ]
    if not work_duty_rows:
        work_duty_rows.append(["-", "-", "No work duties assigned", "-"])

    return PersonalScheduleModel(
        user_name=user.full_name,
        week_start=week_start,
        week_end=end_of_week(week_start),
        meditation_rows=meditation_rows,
        cooking_rows=cooking_rows,
        work_duty_rows=work_duty_rows,
    )
