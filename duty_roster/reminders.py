"""Duty reminders and scheduled messages.

dispatch() runs every minute from the APScheduler job in main.py. A redis
key is claimed (SET NX EX) before every send so that overlapping runs or
several workers remind each person once.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from redis.asyncio import Redis

from duty_roster.converter import DataConverter
from duty_roster.domain.eligibility import REMINDER_WINDOW_MINUTES, should_send_reminder
from duty_roster.domain.templates import (
    COOKING_REMINDER,
    MEDITATION_REMINDER,
    WORK_DUTY_REMINDER,
    is_message_due,
)
from duty_roster.models.dc_models import SmsMessageModel, UserModel
from duty_roster.services.roster_db import RosterRepository
from duty_roster.sms_gateway import SmsGateway

CLAIM_SECONDS = 24 * 60 * 60

data_converter = DataConverter()


class DueReminderModel(BaseModel):
    key: str
    template_id: str
    scheduled_time: datetime
    recipient_ids: List[UUID]
    variables: Dict[str, str] = Field(default_factory=dict)


def _at(day: date, hhmm: str, now: datetime) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hour, minute), tzinfo=now.tzinfo)


class ReminderService:
    def __init__(self, repository: RosterRepository, gateway: SmsGateway, redis: Redis):
        self.repository = repository
        self.gateway = gateway
        self.redis = redis

    async def collect_due_reminders(self, now: datetime) -> List[DueReminderModel]:
        """Every duty starting within the reminder window of now

        Args:
            now (datetime): Current time in the roster timezone

        Returns:
            List[DueReminderModel]: One entry per duty and recipient group
        """
        start = now.date()
        # A duty just after midnight is already due late the previous evening.
        end = (now + timedelta(minutes=REMINDER_WINDOW_MINUTES)).date()
        due: List[DueReminderModel] = []

        for meditation in await self.repository.list_meditations(start, end):
            scheduled = _at(meditation.date, meditation.time, now)
            if should_send_reminder(scheduled, now):
                due.append(
                    DueReminderModel(
                        key=f"reminder:meditation:{meditation.meditation_id}",
                        template_id=MEDITATION_REMINDER,
                        scheduled_time=scheduled,
                        recipient_ids=[meditation.user_id],
                        variables={"bibleVerse": meditation.bible_verse},
                    )
                )

        for meal in await self.repository.list_meals(start, end):
            variables = {"mealType": meal.meal_type.value, "mealName": meal.meal_name}
            cook_time = _at(meal.date, meal.prep_time, now)
            if meal.cook_id is not None and should_send_reminder(cook_time, now):
                due.append(
                    DueReminderModel(
                        key=f"reminder:cook:{meal.meal_id}",
                        template_id=COOKING_REMINDER,
                        scheduled_time=cook_time,
                        recipient_ids=[meal.cook_id],
                        variables={**variables, "role": "cooking"},
                    )
                )
            wash_time = _at(meal.date, meal.serve_time, now)
            if meal.washer_id is not None and should_send_reminder(wash_time, now):
                due.append(
                    DueReminderModel(
                        key=f"reminder:wash:{meal.meal_id}",
                        template_id=COOKING_REMINDER,
                        scheduled_time=wash_time,
                        recipient_ids=[meal.washer_id],
                        variables={**variables, "role": "dish washing"},
                    )
                )

        for work_duty in await self.repository.list_work_duties(start, end):
            scheduled = _at(work_duty.date, work_duty.time, now)
            if work_duty.assigned_user_ids and should_send_reminder(scheduled, now):
                due.append(
                    DueReminderModel(
                        key=f"reminder:work-duty:{work_duty.work_duty_id}",
                        template_id=WORK_DUTY_REMINDER,
                        scheduled_time=scheduled,
                        recipient_ids=work_duty.assigned_user_ids,
                        variables={"taskName": work_duty.task_name, "time": work_duty.time},
                    )
                )

        return due

    async def _claim(self, key: str) -> bool:
        claimed = await self.redis.set(key, "1", nx=True, ex=CLAIM_SECONDS)
        return bool(claimed)

    async def _send_reminder(
        self, reminder: DueReminderModel, people: Dict[UUID, UserModel]
    ) -> List[SmsMessageModel]:
        try:
            template = await self.repository.get_template(reminder.template_id)
        except LookupError:
            logging.error(f"Reminder template {reminder.template_id} is missing")
            return []
        if not template.is_active:
            logging.debug(f"Template {template.template_id} is inactive, skipping {reminder.key}")
            return []

        recipients = []
        for user_id in reminder.recipient_ids:
            user: Optional[UserModel] = people.get(user_id)
            if user is None or not user.phone_number:
                continue
            if await self._claim(f"{reminder.key}:{user_id}"):
                recipients.append(user)
        if not recipients:
            return []
        return await self.gateway.send_templated(template, recipients, reminder.variables)

    async def _send_scheduled_messages(
        self, now: datetime, people: Dict[UUID, UserModel]
    ) -> List[SmsMessageModel]:
        today = now.date()
        sent: List[SmsMessageModel] = []
        for message in await self.repository.list_scheduled_messages():
            schedule = data_converter.convert_messageschema_to_schedule(message)
            if schedule is None or not is_message_due(schedule, today, message.last_sent_on):
                continue
            if not await self._claim(f"message:{message.message_id}:{today.isoformat()}"):
                continue
            phones = [
                people[user_id].phone_number
                for user_id in message.recipients
                if user_id in people and people[user_id].phone_number
            ]
            sent += await self.gateway.send_bulk(phones, message.content)
            await self.repository.mark_message_sent(message.message_id, now.replace(tzinfo=None))
            logging.info(f"Sent scheduled message {message.message_id} to {len(phones)} recipients")
        return sent

    async def dispatch(self, now: datetime) -> List[SmsMessageModel]:
        """Send every due reminder and scheduled message once"""
        people = {user.user_id: user for user in await self.repository.list_users()}
        sent: List[SmsMessageModel] = []
        for reminder in await self.collect_due_reminders(now):
            sent += await self._send_reminder(reminder, people)
        sent += await self._send_scheduled_messages(now, people)
        if sent:
            logging.info(f"Reminder run at {now.isoformat()} sent {len(sent)} SMS")
        return sent
