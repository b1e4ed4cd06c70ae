from datetime import date, datetime
from typing import List, Optional
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from uuid import UUID

from duty_roster.models.dc_models import KitchenRulesModel, UserModel
from duty_roster.models.schema_models import (
    MealSchema,
    MeditationSchema,
    MessageSchema,
    NotificationTemplateSchema,
    WorkDutySchema,
)
from duty_roster.models.schemas import (
    Base,
    KitchenRules,
    Meal,
    MeditationSchedule,
    Message,
    NotificationTemplate,
    User,
    WorkDuty,
)

KITCHEN_RULES_ID = 1


def _uuid_list(values) -> List[str]:
    return [str(v) for v in values]


class CreateData:
    @staticmethod
    async def create_table(engine: AsyncEngine) -> None:
        """Create tables if not exists"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")

    @staticmethod
    async def create_user_data(
        user: UserModel,
        session: AsyncSession,
        hash_password: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> bool:
        """Create user data

        Args:
            user (UserModel): Profile and roles of the new member
            hash_password (Optional[str]): Hashed password, None for members without login
            salt (Optional[str]): Salt used for the password hash
        """
        async with session:
            try:
                new_user = User(
                    user_id=user.user_id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    username=user.username,
                    email=user.email,
                    phone_number=user.phone_number,
                    gender=user.gender.value if user.gender else None,
                    university=user.university,
                    course=user.course,
                    date_of_birth=user.date_of_birth,
                    roles=sorted(role.value for role in user.roles),
                    hash_password=hash_password,
                    salt=salt,
                    created_at=user.created_at or datetime.now(),
                )
                session.add(new_user)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create user data: {e}")
                return False

    @staticmethod
    async def create_meditation_data(meditation: MeditationSchema, session: AsyncSession) -> bool:
        async with session:
            try:
                session.add(MeditationSchedule(**meditation.model_dump()))
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create meditation data: {e}")
                return False

    @staticmethod
    async def create_meal_data(meal: MealSchema, session: AsyncSession) -> bool:
        async with session:
            try:
                new_meal = Meal(**meal.model_dump())
                new_meal.meal_type = meal.meal_type.value
                session.add(new_meal)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create meal data: {e}")
                return False

    @staticmethod
    async def create_work_duty_data(work_duty: WorkDutySchema, session: AsyncSession) -> bool:
        async with session:
            try:
                new_work_duty = WorkDuty(**work_duty.model_dump())
                new_work_duty.assigned_user_ids = _uuid_list(work_duty.assigned_user_ids)
                session.add(new_work_duty)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create work duty data: {e}")
                return False

    @staticmethod
    async def create_message_data(message: MessageSchema, session: AsyncSession) -> bool:
        async with session:
            try:
                new_message = Message(**message.model_dump())
                new_message.recipients = _uuid_list(message.recipients)
                if message.schedule_frequency is not None:
                    new_message.schedule_frequency = message.schedule_frequency.value
                session.add(new_message)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create message data: {e}")
                return False

    @staticmethod
    async def create_template_data(
        template: NotificationTemplateSchema, session: AsyncSession
    ) -> bool:
        async with session:
            try:
                session.add(NotificationTemplate(**template.model_dump()))
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create template data: {e}")
                return False


class ReadData:
    @staticmethod
    async def read_user_data(user_id: UUID, session: AsyncSession) -> Optional[UserModel]:
        async with session:
            try:
                result = await session.execute(select(User).where(User.user_id == user_id))
                result = result.scalars().first()
                if result is None:
                    return None
                return UserModel.model_validate(result)
            except Exception as e:
                logging.error(f"Failed to read user data: {e}")
                return None

    @staticmethod
    async def read_user_by_username(username: str, session: AsyncSession) -> Optional[User]:
        """Read the full user row, credentials included

        Args:
            username (str): Login name

        Returns:
            Optional[User]: The row, or None if no such user
        """
        async with session:
            try:
                result = await session.execute(select(User).where(User.username == username))
                return result.scalars().first()
            except Exception as e:
                logging.error(f"Failed to read user by username: {e}")
                return None

    @staticmethod
    async def read_all_user_data(session: AsyncSession) -> List[UserModel]:
        async with session:
            try:
                stmt = select(User).order_by(User.first_name, User.last_name)
                result = await session.execute(stmt)
                return [UserModel.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read all user data: {e}")
                return []

    @staticmethod
    async def read_meditation_data(meditation_id: UUID, session: AsyncSession) -> Optional[MeditationSchema]:
        async with session:
            try:
                stmt = select(MeditationSchedule).where(MeditationSchedule.meditation_id == meditation_id)
                result = await session.execute(stmt)
                result = result.scalars().first()
                if result is None:
                    return None
                return MeditationSchema.model_validate(result)
            except Exception as e:
                logging.error(f"Failed to read meditation data: {e}")
                return None

    @staticmethod
    async def read_meditation_data_between(
        start: Optional[date], end: Optional[date], session: AsyncSession
    ) -> List[MeditationSchema]:
        """Read meditation sessions with start <= date <= end (open bounds if None)"""
        async with session:
            try:
                stmt = select(MeditationSchedule).order_by(MeditationSchedule.date)
                if start is not None:
                    stmt = stmt.where(MeditationSchedule.date >= start)
                if end is not None:
                    stmt = stmt.where(MeditationSchedule.date <= end)
                result = await session.execute(stmt)
                return [MeditationSchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read meditation data: {e}")
                return []

    @staticmethod
    async def read_meal_data(meal_id: UUID, session: AsyncSession) -> Optional[MealSchema]:
        async with session:
            try:
                result = await session.execute(select(Meal).where(Meal.meal_id == meal_id))
                result = result.scalars().first()
                if result is None:
                    return None
                return MealSchema.model_validate(result)
            except Exception as e:
                logging.error(f"Failed to read meal data: {e}")
                return None

    @staticmethod
    async def read_meal_data_between(
        start: Optional[date], end: Optional[date], session: AsyncSession
    ) -> List[MealSchema]:
        async with session:
            try:
                stmt = select(Meal).order_by(Meal.date, Meal.prep_time)
                if start is not None:
                    stmt = stmt.where(Meal.date >= start)
                if end is not None:
                    stmt = stmt.where(Meal.date <= end)
                result = await session.execute(stmt)
                return [MealSchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read meal data: {e}")
                return []

    @staticmethod
    async def read_work_duty_data(work_duty_id: UUID, session: AsyncSession) -> Optional[WorkDutySchema]:
        async with session:
            try:
                stmt = select(WorkDuty).where(WorkDuty.work_duty_id == work_duty_id)
                result = await session.execute(stmt)
                result = result.scalars().first()
                if result is None:
                    return None
                return WorkDutySchema.model_validate(result)
            except Exception as e:
                logging.error(f"Failed to read work duty data: {e}")
                return None

    @staticmethod
    async def read_work_duty_data_between(
        start: Optional[date], end: Optional[date], session: AsyncSession
    ) -> List[WorkDutySchema]:
        async with session:
            try:
                stmt = select(WorkDuty).order_by(WorkDuty.date, WorkDuty.time)
                if start is not None:
                    stmt = stmt.where(WorkDuty.date >= start)
                if end is not None:
                    stmt = stmt.where(WorkDuty.date <= end)
                result = await session.execute(stmt)
                return [WorkDutySchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read work duty data: {e}")
                return []

    @staticmethod
    async def read_all_message_data(session: AsyncSession) -> List[MessageSchema]:
        async with session:
            try:
                stmt = select(Message).order_by(Message.message_id.desc())
                result = await session.execute(stmt)
                return [MessageSchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read message data: {e}")
                return []

    @staticmethod
    async def read_scheduled_message_data(session: AsyncSession) -> List[MessageSchema]:
        async with session:
            try:
                stmt = select(Message).where(Message.schedule_start_date.is_not(None))
                result = await session.execute(stmt)
                return [MessageSchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read scheduled message data: {e}")
                return []

    @staticmethod
    async def read_template_data(
        template_id: str, session: AsyncSession
    ) -> Optional[NotificationTemplateSchema]:
        async with session:
            try:
                stmt = select(NotificationTemplate).where(NotificationTemplate.template_id == template_id)
                result = await session.execute(stmt)
                result = result.scalars().first()
                if result is None:
                    return None
                return NotificationTemplateSchema.model_validate(result)
            except Exception as e:
                logging.error(f"Failed to read template data: {e}")
                return None

    @staticmethod
    async def read_all_template_data(session: AsyncSession) -> List[NotificationTemplateSchema]:
        async with session:
            try:
                stmt = select(NotificationTemplate).order_by(NotificationTemplate.name)
                result = await session.execute(stmt)
                return [NotificationTemplateSchema.model_validate(row) for row in result.scalars().all()]
            except Exception as e:
                logging.error(f"Failed to read template data: {e}")
                return []

    @staticmethod
    async def read_kitchen_rules(session: AsyncSession) -> KitchenRulesModel:
        """Read kitchen rules. Falls back to the defaults if none were saved"""
        async with session:
            try:
                stmt = select(KitchenRules).where(KitchenRules.rules_id == KITCHEN_RULES_ID)
                result = await session.execute(stmt)
                result = result.scalars().first()
                if result is None:
                    return KitchenRulesModel()
                return KitchenRulesModel.model_validate(result.data)
            except Exception as e:
                logging.error(f"Failed to read kitchen rules: {e}")
                return KitchenRulesModel()


class UpdateData:
    @staticmethod
    async def update_user_data(user: UserModel, session: AsyncSession) -> bool:
        """Update profile fields and roles of an existing user

        Args:
            user (UserModel): The user with updated values
        """
        async with session:
            try:
                result = await session.execute(select(User).where(User.user_id == user.user_id))
                result = result.scalars().first()

                if result is None:
                    return False

                result.first_name = user.first_name
                result.last_name = user.last_name
                result.username = user.username
                result.email = user.email
                result.phone_number = user.phone_number
                result.gender = user.gender.value if user.gender else None
                result.university = user.university
                result.course = user.course
                result.date_of_birth = user.date_of_birth
                result.roles = sorted(role.value for role in user.roles)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update user data: {e}")
                return False

    @staticmethod
    async def update_meditation_data(meditation: MeditationSchema, session: AsyncSession) -> bool:
        async with session:
            try:
                stmt = select(MeditationSchedule).where(
                    MeditationSchedule.meditation_id == meditation.meditation_id
                )
                result = await session.execute(stmt)
                result = result.scalars().first()

                if result is None:
                    return False

                result.date = meditation.date
                result.time = meditation.time
                result.user_id = meditation.user_id
                result.bible_verse = meditation.bible_verse
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update meditation data: {e}")
                return False

    @staticmethod
    async def update_meal_assignments(meals: List[MealSchema], session: AsyncSession) -> Optional[List[UUID]]:
        """Set cook and washer of several meals in one commit

        Args:
            meals (List[MealSchema]): Meals carrying the new cook_id and washer_id

        Returns:
            Optional[List[UUID]]: ids that were not found (nothing is written then),
                None when the database failed
        """
        async with session:
            try:
                missing = []
                for meal in meals:
                    result = await session.execute(select(Meal).where(Meal.meal_id == meal.meal_id))
                    result = result.scalars().first()
                    if result is None:
                        missing.append(meal.meal_id)
                        continue
                    result.cook_id = meal.cook_id
                    result.washer_id = meal.washer_id

                if missing:
                    await session.rollback()
                    return missing
                await session.commit()
                return []
            except Exception as e:
                await session.rollback()
                logging.error(f"Failed to update meal assignments: {e}")
                return None

    @staticmethod
    async def update_meal_data(meal: MealSchema, session: AsyncSession) -> bool:
        async with session:
            try:
                result = await session.execute(select(Meal).where(Meal.meal_id == meal.meal_id))
                result = result.scalars().first()

                if result is None:
                    return False

                result.date = meal.date
                result.meal_type = meal.meal_type.value
                result.meal_name = meal.meal_name
                result.cook_id = meal.cook_id
                result.washer_id = meal.washer_id
                result.prep_time = meal.prep_time
                result.serve_time = meal.serve_time
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update meal data: {e}")
                return False

    @staticmethod
    async def update_work_duty_data(work_duty: WorkDutySchema, session: AsyncSession) -> bool:
        async with session:
            try:
                stmt = select(WorkDuty).where(WorkDuty.work_duty_id == work_duty.work_duty_id)
                result = await session.execute(stmt)
                result = result.scalars().first()

                if result is None:
                    return False

                result.task_name = work_duty.task_name
                result.is_light = work_duty.is_light
                result.is_group = work_duty.is_group
                result.people_count = work_duty.people_count
                result.date = work_duty.date
                result.time = work_duty.time
                result.assigned_user_ids = _uuid_list(work_duty.assigned_user_ids)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update work duty data: {e}")
                return False

    @staticmethod
    async def update_message_sent(
        message_id: UUID, sent_at: datetime, session: AsyncSession
    ) -> bool:
        """Record that a message went out

        Args:
            message_id (UUID): To identify the message
            sent_at (datetime): When it was sent; its date becomes last_sent_on
        """
        async with session:
            try:
                result = await session.execute(select(Message).where(Message.message_id == message_id))
                result = result.scalars().first()

                if result is None:
                    return False

                result.sent_at = sent_at
                result.last_sent_on = sent_at.date()
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update message data: {e}")
                return False

    @staticmethod
    async def update_template_data(
        template: NotificationTemplateSchema, session: AsyncSession
    ) -> bool:
        async with session:
            try:
                stmt = select(NotificationTemplate).where(
                    NotificationTemplate.template_id == template.template_id
                )
                result = await session.execute(stmt)
                result = result.scalars().first()

                if result is None:
                    return False

                result.name = template.name
                result.content = template.content
                result.variables = template.variables
                result.is_active = template.is_active
                result.updated_at = template.updated_at
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update template data: {e}")
                return False

    @staticmethod
    async def update_kitchen_rules(rules: KitchenRulesModel, session: AsyncSession) -> bool:
        """Insert or replace the single kitchen rules row"""
        async with session:
            try:
                stmt = select(KitchenRules).where(KitchenRules.rules_id == KITCHEN_RULES_ID)
                result = await session.execute(stmt)
                result = result.scalars().first()

                data = rules.model_dump(mode="json")
                if result is None:
                    session.add(KitchenRules(rules_id=KITCHEN_RULES_ID, data=data))
                else:
                    result.data = data
                    result.updated_at = datetime.now()
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to update kitchen rules: {e}")
                return False


class DeleteData:
    @staticmethod
    async def delete_row(table, key_column, key, session: AsyncSession) -> bool:
        """Delete one row by primary key

        Returns:
            bool: True if a row was deleted
        """
        async with session:
            try:
                result = await session.execute(delete(table).where(key_column == key))
                await session.commit()
                return result.rowcount > 0
            except Exception as e:
                logging.error(f"Failed to delete from {table.__tablename__}: {e}")
                return False

    @staticmethod
    async def delete_user_data(user_id: UUID, session: AsyncSession) -> bool:
        return await DeleteData.delete_row(User, User.user_id, user_id, session)

    @staticmethod
    async def delete_meditation_data(meditation_id: UUID, session: AsyncSession) -> bool:
        return await DeleteData.delete_row(
            MeditationSchedule, MeditationSchedule.meditation_id, meditation_id, session
        )

    @staticmethod
    async def delete_meal_data(meal_id: UUID, session: AsyncSession) -> bool:
        return await DeleteData.delete_row(Meal, Meal.meal_id, meal_id, session)

    @staticmethod
    async def delete_work_duty_data(work_duty_id: UUID, session: AsyncSession) -> bool:
        return await DeleteData.delete_row(WorkDuty, WorkDuty.work_duty_id, work_duty_id, session)

    @staticmethod
    async def delete_template_data(template_id: str, session: AsyncSession) -> bool:
        return await DeleteData.delete_row(
            NotificationTemplate, NotificationTemplate.template_id, template_id, session
        )
