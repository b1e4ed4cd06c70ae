"""Message templates and scheduled-message recurrence."""

import re
from datetime import date
from typing import Dict, List, Optional

from duty_roster.models.dc_models import (
    MessageFrequencyModel,
    MessageScheduleModel,
    TemplateModel,
)

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

MEDITATION_REMINDER = "meditation-reminder"
COOKING_REMINDER = "cooking-reminder"
WORK_DUTY_REMINDER = "work-duty-reminder"
MEAL_READY = "meal-ready"
GENERAL_ANNOUNCEMENT = "general-announcement"

DEFAULT_TEMPLATES: List[TemplateModel] = [
    TemplateModel(
        template_id=MEDITATION_REMINDER,
        name="Meditation Reminder",
        content="Hi {{firstName}}, meditation session starts in 15 minutes. "
        "Today's passage: {{bibleVerse}}. See you there! - YWAM DAR",
    ),
    TemplateModel(
        template_id=COOKING_REMINDER,
        name="Cooking Duty Reminder",
        content="Hi {{firstName}}, your {{role}} duty for {{mealType}} starts in "
        "15 minutes. Menu: {{mealName}}. - YWAM DAR",
    ),
    TemplateModel(
        template_id=MEAL_READY,
        name="Meal Ready Notification",
        content="{{mealType}} is ready! Please come to the dining hall. "
        "Menu: {{mealName}} - YWAM DAR",
    ),
    TemplateModel(
        template_id=WORK_DUTY_REMINDER,
        name="Work Duty Reminder",
        content="Hi {{firstName}}, work duty reminder: {{taskName}} starts in "
        "15 minutes at {{time}}. - YWAM DAR",
    ),
    TemplateModel(
        template_id=GENERAL_ANNOUNCEMENT,
        name="General Announcement",
        content="Hi {{firstName}}, {{message}} - YWAM DAR",
    ),
    TemplateModel(
        template_id="birthday-wish",
        name="Birthday Wish",
        content="Happy Birthday {{firstName}}! May God's blessings be upon you "
        "today and always. - YWAM DAR Family",
    ),
    TemplateModel(
        template_id="welcome-message",
        name="Welcome Message",
        content="Welcome to YWAM DAR, {{firstName}}! We're excited to have you join "
        "our community. Your login details will be shared separately. - YWAM DAR",
    ),
    TemplateModel(
        template_id="login-credentials",
        name="Login Credentials",
        content="Hi {{firstName}}, your YWAM DAR login: Username: {{username}}, "
        "Password: {{password}}. Please change your password after first login. "
        "- YWAM DAR",
    ),
    TemplateModel(
        template_id="meeting-reminder",
        name="Meeting Reminder",
        content="Hi {{firstName}}, reminder: {{meetingTitle}} starts in "
        "{{timeUntil}} at {{location}}. - YWAM DAR",
    ),
]


def extract_variables(content: str) -> List[str]:
    """Placeholder names in order of first appearance."""
    seen = []
    for name in PLACEHOLDER.findall(content):
        if name not in seen:
            seen.append(name)
    return seen


def personalize_message(content: str, variables: Dict[str, object]) -> str:
    """Replace every {{key}} with its value. Unknown placeholders stay as-is."""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        return match.group(0)

    return PLACEHOLDER.sub(replace, content)


def is_message_due(
    schedule: MessageScheduleModel, today: date, last_sent_on: Optional[date]
) -> bool:
    """Whether a scheduled message should go out on today."""
    if today < schedule.start_date:
        return False
    if schedule.end_date is not None and today > schedule.end_date:
        return False
    if last_sent_on is not None and last_sent_on >= today:
        return False

    frequency = schedule.frequency
    if frequency == MessageFrequencyModel.once:
        return last_sent_on is None
    if frequency == MessageFrequencyModel.daily:
        return True
    if frequency == MessageFrequencyModel.weekly:
        return today.weekday() == schedule.start_date.weekday()
    if frequency == MessageFrequencyModel.monthly:
        return today.day == schedule.start_date.day
    return False
