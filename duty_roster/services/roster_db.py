"""DB service layer for the roster.

- Routers should not touch DB sessions directly; they call RosterRepository.
- This layer owns session boundaries. Each call opens its own session.
- Failed writes raise RuntimeError, missing rows raise LookupError.
"""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from duty_roster.authentication.basic_authentication_crud import (
    CreateAuthentication,
    ReadAuthentication,
)
from duty_roster.converter import DataConverter
from duty_roster.crud import CreateData, DeleteData, ReadData, UpdateData
from duty_roster.domain.templates import DEFAULT_TEMPLATES
from duty_roster.models.dc_models import KitchenRulesModel, TemplateModel, UserModel
from duty_roster.models.schema_models import (
    MealSchema,
    MeditationSchema,
    MessageSchema,
    NotificationTemplateSchema,
    UserCredentialSchema,
    WorkDutySchema,
)

data_converter = DataConverter()


class RosterRepository:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.Session = sessionmaker

    # ---------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------
    async def list_users(self) -> List[UserModel]:
        async with self.Session() as session:
            return await ReadData.read_all_user_data(session)

    async def get_user(self, user_id: UUID) -> UserModel:
        async with self.Session() as session:
            user = await ReadData.read_user_data(user_id, session)
        if user is None:
            raise LookupError(f"User {user_id} not found")
        return user

    async def find_user(self, user_id: Optional[UUID]) -> Optional[UserModel]:
        if user_id is None:
            return None
        async with self.Session() as session:
            return await ReadData.read_user_data(user_id, session)

    async def get_user_by_username(self, username: str) -> Optional[UserModel]:
        async with self.Session() as session:
            row = await ReadData.read_user_by_username(username, session)
        if row is None:
            return None
        return UserModel.model_validate(row)

    async def read_credentials(self, username: str) -> Optional[UserCredentialSchema]:
        async with self.Session() as session:
            return await ReadAuthentication.read_user_credentials(username, session)

    async def create_user(self, user: UserModel, password: Optional[str] = None) -> UserModel:
        async with self.Session() as session:
            success = await CreateAuthentication.create_user_data(user, password, session)
        if not success:
            raise RuntimeError("Failed to create user data")
        logging.info(f"Created user {user.user_id} with roles {sorted(r.value for r in user.roles)}")
        return user

    async def update_user(self, user: UserModel) -> UserModel:
        async with self.Session() as session:
            success = await UpdateData.update_user_data(user, session)
        if not success:
            raise LookupError(f"User {user.user_id} not found")
        return user

    async def delete_user(self, user_id: UUID) -> None:
        async with self.Session() as session:
            if not await DeleteData.delete_user_data(user_id, session):
                raise LookupError(f"User {user_id} not found")

    # ---------------------------------------------------------------
    # Meditation
    # ---------------------------------------------------------------
    async def list_meditations(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[MeditationSchema]:
        async with self.Session() as session:
            return await ReadData.read_meditation_data_between(start, end, session)

    async def get_meditation(self, meditation_id: UUID) -> MeditationSchema:
        async with self.Session() as session:
            meditation = await ReadData.read_meditation_data(meditation_id, session)
        if meditation is None:
            raise LookupError(f"Meditation {meditation_id} not found")
        return meditation

    async def create_meditation(self, meditation: MeditationSchema) -> MeditationSchema:
        async with self.Session() as session:
            if not await CreateData.create_meditation_data(meditation, session):
                raise RuntimeError("Failed to create meditation data")
        return meditation

    async def update_meditation(self, meditation: MeditationSchema) -> MeditationSchema:
        async with self.Session() as session:
            if not await UpdateData.update_meditation_data(meditation, session):
                raise LookupError(f"Meditation {meditation.meditation_id} not found")
        return meditation

    async def delete_meditation(self, meditation_id: UUID) -> None:
        async with self.Session() as session:
            if not await DeleteData.delete_meditation_data(meditation_id, session):
                raise LookupError(f"Meditation {meditation_id} not found")

    # ---------------------------------------------------------------
    # Meals
    # ---------------------------------------------------------------
    async def list_meals(self, start: Optional[date] = None, end: Optional[date] = None) -> List[MealSchema]:
        async with self.Session() as session:
            return await ReadData.read_meal_data_between(start, end, session)

    async def get_meal(self, meal_id: UUID) -> MealSchema:
        async with self.Session() as session:
            meal = await ReadData.read_meal_data(meal_id, session)
        if meal is None:
            raise LookupError(f"Meal {meal_id} not found")
        return meal

    async def create_meal(self, meal: MealSchema) -> MealSchema:
        async with self.Session() as session:
            if not await CreateData.create_meal_data(meal, session):
                raise RuntimeError("Failed to create meal data")
        return meal

    async def update_meal(self, meal: MealSchema) -> MealSchema:
        async with self.Session() as session:
            if not await UpdateData.update_meal_data(meal, session):
                raise LookupError(f"Meal {meal.meal_id} not found")
        return meal

    async def assign_meals(self, meals: List[MealSchema]) -> List[MealSchema]:
        """Save cook and washer of every meal, all or nothing"""
        async with self.Session() as session:
            missing = await UpdateData.update_meal_assignments(meals, session)
        if missing is None:
            raise RuntimeError("Failed to update meal assignments")
        if missing:
            raise LookupError(f"Meal {missing[0]} not found")
        return meals

    async def delete_meal(self, meal_id: UUID) -> None:
        async with self.Session() as session:
            if not await DeleteData.delete_meal_data(meal_id, session):
                raise LookupError(f"Meal {meal_id} not found")

    # ---------------------------------------------------------------
    # Work duties
    # ---------------------------------------------------------------
    async def list_work_duties(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[WorkDutySchema]:
        async with self.Session() as session:
            return await ReadData.read_work_duty_data_between(start, end, session)

    async def get_work_duty(self, work_duty_id: UUID) -> WorkDutySchema:
        async with self.Session() as session:
            work_duty = await ReadData.read_work_duty_data(work_duty_id, session)
        if work_duty is None:
            raise LookupError(f"Work duty {work_duty_id} not found")
        return work_duty

    async def create_work_duty(self, work_duty: WorkDutySchema) -> WorkDutySchema:
        async with self.Session() as session:
            if not await CreateData.create_work_duty_data(work_duty, session):
                raise RuntimeError("Failed to create work duty data")
        return work_duty

    async def update_work_duty(self, work_duty: WorkDutySchema) -> WorkDutySchema:
        async with self.Session() as session:
            if not await UpdateData.update_work_duty_data(work_duty, session):
                raise LookupError(f"Work duty {work_duty.work_duty_id} not found")
        return work_duty

    async def delete_work_duty(self, work_duty_id: UUID) -> None:
        async with self.Session() as session:
            if not await DeleteData.delete_work_duty_data(work_duty_id, session):
                raise LookupError(f"Work duty {work_duty_id} not found")

    # ---------------------------------------------------------------
    # Messages
    # ---------------------------------------------------------------
    async def list_messages(self) -> List[MessageSchema]:
        async with self.Session() as session:
            return await ReadData.read_all_message_data(session)

    async def list_scheduled_messages(self) -> List[MessageSchema]:
        async with self.Session() as session:
            return await ReadData.read_scheduled_message_data(session)

    async def create_message(self, message: MessageSchema) -> MessageSchema:
        async with self.Session() as session:
            if not await CreateData.create_message_data(message, session):
                raise RuntimeError("Failed to create message data")
        return message

    async def mark_message_sent(self, message_id: UUID, sent_at: datetime) -> None:
        async with self.Session() as session:
            if not await UpdateData.update_message_sent(message_id, sent_at, session):
                raise LookupError(f"Message {message_id} not found")

    # ---------------------------------------------------------------
    # Templates
    # ---------------------------------------------------------------
    async def list_templates(self) -> List[NotificationTemplateSchema]:
        async with self.Session() as session:
            return await ReadData.read_all_template_data(session)

    async def get_template(self, template_id: str) -> NotificationTemplateSchema:
        async with self.Session() as session:
            template = await ReadData.read_template_data(template_id, session)
        if template is None:
            raise LookupError(f"Template {template_id} not found")
        return template

    async def create_template(self, template: TemplateModel) -> NotificationTemplateSchema:
        schema = data_converter.convert_templatemodel_to_schema(template)
        async with self.Session() as session:
            if not await CreateData.create_template_data(schema, session):
                raise RuntimeError("Failed to create template data")
        return schema

    async def update_template(self, template: TemplateModel) -> NotificationTemplateSchema:
        current = await self.get_template(template.template_id)
        schema = data_converter.convert_templatemodel_to_schema(template, current.created_at)
        async with self.Session() as session:
            if not await UpdateData.update_template_data(schema, session):
                raise LookupError(f"Template {template.template_id} not found")
        return schema

    async def delete_template(self, template_id: str) -> None:
        async with self.Session() as session:
            if not await DeleteData.delete_template_data(template_id, session):
                raise LookupError(f"Template {template_id} not found")

    async def seed_default_templates(self) -> int:
        """Create the built-in templates that are missing. Returns how many were added."""
        existing = {template.template_id for template in await self.list_templates()}
        added = 0
        for template in DEFAULT_TEMPLATES:
            if template.template_id in existing:
                continue
            await self.create_template(template)
            added += 1
        return added

    # ---------------------------------------------------------------
    # Kitchen rules
    # ---------------------------------------------------------------
    async def get_kitchen_rules(self) -> KitchenRulesModel:
        async with self.Session() as session:
            return await ReadData.read_kitchen_rules(session)

    async def save_kitchen_rules(self, rules: KitchenRulesModel) -> KitchenRulesModel:
        async with self.Session() as session:
            if not await UpdateData.update_kitchen_rules(rules, session):
                raise RuntimeError("Failed to save kitchen rules")
        return rules
